"""
SecGate - Finding Drop Rule API Endpoints

CRUD for drop rules plus two evaluation helpers:
  - /preview: test an unsaved rule against a sample request
  - /check:   run a sample request through the stored rule chain
"""
from fastapi import APIRouter, Depends, HTTPException

from secgate.core.drop_filter import (
    DropCheckContext,
    DropRule,
    check_drop_rules,
    preview_drop_rule,
)
from secgate.schemas.drop_rule import (
    DropCheckContextSchema,
    DropRuleCheckRequest,
    DropRuleCreate,
    DropRulePreviewRequest,
    DropRuleUpdate,
)
from secgate.services.data_store import DataStore, EntityNotFoundError, get_data_store

router = APIRouter()


def _to_context(ctx: DropCheckContextSchema) -> DropCheckContext:
    return DropCheckContext(
        method=ctx.method,
        path=ctx.path,
        request_raw=ctx.request_raw,
        source_type=ctx.source_type,
        template_id=ctx.template_id,
        workflow_id=ctx.workflow_id,
    )


@router.get("")
async def list_drop_rules(store: DataStore = Depends(get_data_store)):
    rules = await store.drop_rules.find_all()
    rules.sort(key=lambda r: r["priority"])
    return {"data": rules, "error": None}


@router.post("")
async def create_drop_rule(payload: DropRuleCreate, store: DataStore = Depends(get_data_store)):
    rule = await store.drop_rules.create(payload.model_dump())
    return {"data": rule, "error": None}


@router.put("/{rule_id}")
async def update_drop_rule(rule_id: str, payload: DropRuleUpdate, store: DataStore = Depends(get_data_store)):
    try:
        rule = await store.drop_rules.update(rule_id, payload.model_dump(exclude_unset=True))
    except EntityNotFoundError:
        raise HTTPException(status_code=404, detail="Drop rule not found")
    return {"data": rule, "error": None}


@router.delete("/{rule_id}")
async def delete_drop_rule(rule_id: str, store: DataStore = Depends(get_data_store)):
    if not await store.drop_rules.delete(rule_id):
        raise HTTPException(status_code=404, detail="Drop rule not found")
    return {"data": {"deleted": True}, "error": None}


@router.post("/preview")
async def preview_rule(payload: DropRulePreviewRequest):
    """Would this (unsaved) rule drop a finding from the given request?"""
    matched = preview_drop_rule(payload.rule, _to_context(payload.context))
    return {"data": {"matched": matched}, "error": None}


@router.post("/check")
async def check_rules(payload: DropRuleCheckRequest, store: DataStore = Depends(get_data_store)):
    """Which stored rule, if any, drops a finding from the given request?"""
    rows = await store.drop_rules.find_all()
    if payload.rule_ids is not None:
        wanted = set(payload.rule_ids)
        rows = [r for r in rows if r["id"] in wanted]

    result = check_drop_rules([DropRule.from_dict(r) for r in rows], _to_context(payload.context))
    return {"data": result.to_dict(), "error": None}
