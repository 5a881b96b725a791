"""
SecGate - Account Pool Validation API Endpoints

Lets operators see, before a run, whether the stored accounts can supply
every account-sourced variable under the chosen mutation strategy.
"""
from fastapi import APIRouter, Depends

from secgate.core.account_pool import VariableConfig
from secgate.schemas.account_pool import AccountPoolValidationRequest
from secgate.services.account_pools import prepare_stored_account_pools
from secgate.services.data_store import DataStore, get_data_store

router = APIRouter()


@router.post("/validate")
async def validate_account_pools(
    payload: AccountPoolValidationRequest,
    store: DataStore = Depends(get_data_store),
):
    variables = [VariableConfig(**v.model_dump()) for v in payload.variables]
    prepared = await prepare_stored_account_pools(
        store,
        variables,
        payload.strategy,
        attacker_account_id=payload.attacker_account_id,
        account_ids=payload.account_ids,
    )
    return {"data": prepared.to_dict(), "error": None}
