"""
SecGate - Account pool preparation against stored accounts

Loads accounts through the DataStore and runs the mutation-role validator
over them. Executors call this before replaying mutated requests; the API
exposes it so operators can check coverage before saving a workflow.
"""
import logging
from typing import List, Optional

from secgate.core.account_pool import Account, VariableConfig
from secgate.core.mutation_roles import PreparedAccountPools, prepare_account_pools
from secgate.services.data_store import DataStore

logger = logging.getLogger(__name__)


async def load_accounts(store: DataStore, account_ids: Optional[List[str]] = None) -> List[Account]:
    """Stored accounts, restricted to account_ids (in that order) when given."""
    rows = await store.accounts.find_all()
    accounts = [Account.from_dict(row) for row in rows]
    if not account_ids:
        return accounts

    by_id = {a.id: a for a in accounts}
    missing = [i for i in account_ids if i not in by_id]
    if missing:
        logger.warning(f"Unknown account ids ignored: {', '.join(missing)}")
    return [by_id[i] for i in account_ids if i in by_id]


async def prepare_stored_account_pools(
    store: DataStore,
    variable_configs: List[VariableConfig],
    strategy: str,
    attacker_account_id: Optional[str] = None,
    account_ids: Optional[List[str]] = None,
) -> PreparedAccountPools:
    accounts = await load_accounts(store, account_ids)
    prepared = prepare_account_pools(accounts, variable_configs, strategy, attacker_account_id)
    if not prepared.valid:
        logger.info(
            f"Account pool validation failed ({strategy}): {'; '.join(prepared.report.fatal_errors)}"
        )
    return prepared
