"""
SecGate - API dependencies
"""
from fastapi import Depends, Request

from secgate.services.data_store import DataStore, get_data_store
from secgate.services.executors import UnconfiguredExecutor
from secgate.services.gate_runner import GateRunner


def get_gate_runner(request: Request, store: DataStore = Depends(get_data_store)) -> GateRunner:
    """GateRunner wired to the executors registered on app.state."""
    state = request.app.state
    return GateRunner(
        store=store,
        template_executor=getattr(state, "template_executor", None) or UnconfiguredExecutor(),
        workflow_executor=getattr(state, "workflow_executor", None) or UnconfiguredExecutor(),
    )
