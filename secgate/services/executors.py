"""
SecGate - Test / Workflow Executor interfaces

The executors replay baseline and mutated requests, apply drop rules and
decide what counts as a finding. The gate runner only sees their summary:
a finding count and whether execution itself went wrong.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """Summary returned by an executor for one test run."""
    success: bool
    findings_count: int = 0
    has_execution_error: bool = False
    error: Optional[str] = None


class TemplateExecutor(ABC):
    """Runs a batch of API templates inside one test run."""

    @abstractmethod
    async def run(
        self,
        test_run_id: str,
        template_ids: List[str],
        account_ids: List[str],
        environment_id: Optional[str],
        security_run_id: str,
    ) -> ExecutionResult:
        ...


class WorkflowExecutor(ABC):
    """Runs a single workflow inside one test run."""

    @abstractmethod
    async def run(
        self,
        test_run_id: str,
        workflow_id: str,
        account_ids: List[str],
        environment_id: Optional[str],
        security_run_id: str,
    ) -> ExecutionResult:
        ...


class UnconfiguredExecutor(TemplateExecutor, WorkflowExecutor):
    """Placeholder wired in when no executor has been registered.

    Reports an execution error, so any gate run that reaches it ends in BLOCK.
    """

    async def run(self, test_run_id: str, *args, **kwargs) -> ExecutionResult:
        logger.warning(f"No executor configured; test run {test_run_id} not executed")
        return ExecutionResult(
            success=False,
            findings_count=0,
            has_execution_error=True,
            error="executor not configured",
        )
