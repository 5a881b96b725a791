"""
SecGate - Gate Run Orchestrator

Drives one CI/CD gate invocation:
1. Resolve the gate policy (stored or default)
2. Record a "running" SecurityRun before anything executes
3. Hand templates (one batch) and workflows (one test run each) to the executors
4. Aggregate finding counts and execution errors
5. Evaluate the policy and persist the verdict

Any unexpected failure marks the run failed with exit code 3 and BLOCK,
then propagates to the caller.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from secgate.core.gate_policy import (
    EXIT_CODE_RUN_FAILED,
    GateAction,
    GateCalculationDetails,
    GatePolicy,
    calculate_gate_result,
    default_gate_policy,
)
from secgate.services.data_store import DataStore
from secgate.services.executors import TemplateExecutor, WorkflowExecutor

logger = logging.getLogger(__name__)


RUN_STATUS_RUNNING = "running"
RUN_STATUS_COMPLETED = "completed"
RUN_STATUS_COMPLETED_WITH_ERRORS = "completed_with_errors"
RUN_STATUS_FAILED = "failed"

TRIGGER_CI_GATE = "ci_gate"


class GateRunError(Exception):
    """Base class for gate run request errors raised before execution."""
    pass


class InvalidGateRequestError(GateRunError):
    """The request (or the suite/policy it points at) cannot be run."""
    pass


class PolicyNotFoundError(GateRunError):
    """The requested gate policy does not exist or is disabled."""
    pass


class SuiteNotFoundError(GateRunError):
    """The requested security suite does not exist or is disabled."""
    pass


@dataclass
class GateRunRequest:
    policy_id: Optional[str] = None
    template_ids: List[str] = field(default_factory=list)
    workflow_ids: List[str] = field(default_factory=list)
    account_ids: List[str] = field(default_factory=list)
    environment_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GateRunResult:
    success: bool
    security_run_id: str
    gate_result: GateAction
    exit_code: int
    test_findings_count: int
    workflow_findings_count: int
    details: GateCalculationDetails
    errors: Optional[List[str]] = None

    @property
    def weighted_score(self) -> int:
        return self.details.test_weighted_score + self.details.workflow_weighted_score

    def to_standardized(self) -> dict:
        """CI-facing result shape consumed by sec-runner."""
        return {
            "decision": self.gate_result.value,
            "exit_code": self.exit_code,
            "test_run_findings": self.test_findings_count,
            "workflow_findings": self.workflow_findings_count,
            "weighted_score": self.weighted_score,
            "security_run_id": self.security_run_id,
            "summary": "; ".join(self.errors) if self.errors else None,
            "raw_details": self.details.to_dict(),
        }


class GateRunner:
    """Coordinates executors, the policy evaluator and run persistence."""

    def __init__(
        self,
        store: DataStore,
        template_executor: TemplateExecutor,
        workflow_executor: WorkflowExecutor,
    ):
        self.store = store
        self.template_executor = template_executor
        self.workflow_executor = workflow_executor

    async def load_policy(self, policy_id: Optional[str]) -> GatePolicy:
        """Stored policy for policy_id, or the default policy when none is given."""
        if not policy_id:
            return default_gate_policy()

        policy_data = await self.store.gate_policies.find_by_id(policy_id)
        if not policy_data or not policy_data.get("is_enabled"):
            raise PolicyNotFoundError(f"Policy not found or disabled: {policy_id}")

        try:
            return GatePolicy.from_dict(policy_data)
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidGateRequestError(f"Policy {policy_id} is misconfigured: {e}") from e

    async def _create_test_run(self, security_run_id: str, workflow_id: Optional[str] = None) -> dict:
        return await self.store.test_runs.create({
            "status": "pending",
            "trigger_type": TRIGGER_CI_GATE,
            "security_run_id": security_run_id,
            "workflow_id": workflow_id,
            "progress": {"total": 0, "completed": 0, "findings": 0},
            "progress_percent": 0,
        })

    async def _mark_failed(self, security_run_id: str, error_message: str) -> None:
        try:
            await self.store.security_runs.update(security_run_id, {
                "status": RUN_STATUS_FAILED,
                "exit_code": EXIT_CODE_RUN_FAILED,
                "gate_result": GateAction.BLOCK.value,
                "error_message": error_message,
            })
        except Exception as persist_error:
            logger.error(f"[Gate] Could not mark run {security_run_id} as failed: {persist_error}")

    async def run(self, request: GateRunRequest) -> GateRunResult:
        """Execute a gate run and return its verdict."""
        template_ids = list(request.template_ids or [])
        workflow_ids = list(request.workflow_ids or [])
        account_ids = list(request.account_ids or [])

        if not template_ids and not workflow_ids:
            raise InvalidGateRequestError("At least one template_id or workflow_id is required")

        policy = await self.load_policy(request.policy_id)

        run_metadata = {
            **(request.metadata or {}),
            "template_ids": template_ids,
            "workflow_ids": workflow_ids,
            "account_ids": account_ids,
            "environment_id": request.environment_id,
            "started_at": datetime.utcnow().isoformat(),
        }
        security_run = await self.store.security_runs.create({
            "status": RUN_STATUS_RUNNING,
            "policy_id": request.policy_id or None,
            "metadata": run_metadata,
            "test_findings_count": 0,
            "workflow_findings_count": 0,
        })
        security_run_id = security_run["id"]
        logger.info(
            f"[Gate] Run {security_run_id} started: policy={policy.id} "
            f"templates={len(template_ids)} workflows={len(workflow_ids)}"
        )

        test_findings_count = 0
        workflow_findings_count = 0
        has_execution_error = False
        errors: List[str] = []

        try:
            if template_ids:
                test_run = await self._create_test_run(security_run_id)
                logger.info(f"[Gate] Run {security_run_id}: executing {len(template_ids)} templates (test run {test_run['id']})")
                result = await self.template_executor.run(
                    test_run["id"],
                    template_ids,
                    account_ids,
                    request.environment_id,
                    security_run_id,
                )
                test_findings_count = result.findings_count
                if result.has_execution_error:
                    has_execution_error = True
                if not result.success and result.error:
                    errors.append(f"Tests: {result.error}")

            # Workflows run one after another, each in its own test run
            for workflow_id in workflow_ids:
                test_run = await self._create_test_run(security_run_id, workflow_id=workflow_id)
                logger.info(f"[Gate] Run {security_run_id}: executing workflow {workflow_id} (test run {test_run['id']})")
                result = await self.workflow_executor.run(
                    test_run["id"],
                    workflow_id,
                    account_ids,
                    request.environment_id,
                    security_run_id,
                )
                workflow_findings_count += result.findings_count
                if result.has_execution_error:
                    has_execution_error = True
                if not result.success and result.error:
                    errors.append(f"Workflow {workflow_id}: {result.error}")

            calculation = calculate_gate_result(
                test_findings_count, workflow_findings_count, policy, has_execution_error
            )
            final_status = RUN_STATUS_COMPLETED_WITH_ERRORS if has_execution_error else RUN_STATUS_COMPLETED

            await self.store.security_runs.update(security_run_id, {
                "status": final_status,
                "exit_code": calculation.exit_code,
                "gate_result": calculation.gate_result.value,
                "test_findings_count": test_findings_count,
                "workflow_findings_count": workflow_findings_count,
                "gate_score": calculation.details.test_weighted_score + calculation.details.workflow_weighted_score,
                "error_message": "; ".join(errors) if errors else None,
                "metadata": {
                    **run_metadata,
                    "completed_at": datetime.utcnow().isoformat(),
                    "gate_details": calculation.details.to_dict(),
                },
            })

        except asyncio.CancelledError:
            logger.warning(f"[Gate] Run {security_run_id} cancelled")
            await self._mark_failed(security_run_id, "Gate run cancelled")
            raise
        except Exception as e:
            logger.exception(f"[Gate] Run {security_run_id} failed: {e}")
            await self._mark_failed(security_run_id, str(e) or "Unknown error occurred")
            raise

        logger.info(
            f"[Gate] Run {security_run_id} finished: {calculation.gate_result.value} "
            f"(exit {calculation.exit_code}, test={test_findings_count}, workflow={workflow_findings_count})"
        )

        return GateRunResult(
            success=not has_execution_error,
            security_run_id=security_run_id,
            gate_result=calculation.gate_result,
            exit_code=calculation.exit_code,
            test_findings_count=test_findings_count,
            workflow_findings_count=workflow_findings_count,
            details=calculation.details,
            errors=errors or None,
        )

    async def _resolve_environment_id(self, suite: dict, env_name: str) -> Optional[str]:
        if suite.get("environment_id"):
            return suite["environment_id"]

        for name in (suite.get("environment_name") or env_name, env_name):
            if not name:
                continue
            environments = await self.store.environments.find_all(where={"name": name})
            if environments:
                return environments[0]["id"]
        return None

    async def run_suite(
        self,
        suite_name: str,
        env_name: str,
        git_sha: Optional[str] = None,
        pipeline_url: Optional[str] = None,
    ) -> GateRunResult:
        """Run the gate configured by a named security suite."""
        if not suite_name or not env_name:
            raise InvalidGateRequestError("suite and env are required")

        suites = await self.store.security_suites.find_all(
            where={"name": suite_name, "is_enabled": True}
        )
        if not suites:
            raise SuiteNotFoundError(f"Security suite not found or disabled: {suite_name}")
        suite = suites[0]

        template_ids = suite.get("template_ids") or []
        workflow_ids = suite.get("workflow_ids") or []
        if not template_ids and not workflow_ids:
            raise InvalidGateRequestError(f"Suite {suite_name} has no templates or workflows configured")

        environment_id = await self._resolve_environment_id(suite, env_name)

        return await self.run(GateRunRequest(
            policy_id=suite.get("policy_id"),
            template_ids=template_ids,
            workflow_ids=workflow_ids,
            account_ids=suite.get("account_ids") or [],
            environment_id=environment_id,
            metadata={
                "suite": suite_name,
                "env": env_name,
                "git_sha": git_sha,
                "pipeline_url": pipeline_url,
            },
        ))
