"""
SecGate - Security Run API Endpoints
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException

from secgate.services.data_store import DataStore, get_data_store

router = APIRouter()


@router.get("")
async def list_security_runs(
    status: Optional[str] = None,
    page: int = 1,
    per_page: int = 50,
    store: DataStore = Depends(get_data_store),
):
    """List gate runs, optionally filtered by status."""
    where = {"status": status} if status else None
    runs = await store.security_runs.find_all(
        where=where, limit=per_page, offset=(page - 1) * per_page
    )
    total = await store.security_runs.count(where)
    return {"data": runs, "total": total, "page": page, "per_page": per_page, "error": None}


@router.get("/{run_id}")
async def get_security_run(run_id: str, store: DataStore = Depends(get_data_store)):
    run = await store.security_runs.find_by_id(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Security run not found")
    return {"data": run, "error": None}
