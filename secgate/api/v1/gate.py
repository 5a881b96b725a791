"""
SecGate - Gate Run API Endpoints

Router mounted at /api/v1/run. Every error body carries an exit_code so a
CI job can act on it without parsing the message:
  - 4: the request cannot be run (missing ids, unknown suite/policy)
  - 3: the run failed unexpectedly; the verdict is BLOCK
"""
import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from secgate.api.deps import get_gate_runner
from secgate.core.gate_policy import EXIT_CODE_INVALID_REQUEST, EXIT_CODE_RUN_FAILED, GateAction
from secgate.schemas.gate import GateRunCreate, GateBySuiteCreate, GateResultEnvelope
from secgate.services.gate_runner import (
    GateRunner,
    GateRunRequest,
    InvalidGateRequestError,
    PolicyNotFoundError,
    SuiteNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _request_error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"data": None, "error": message, "exit_code": EXIT_CODE_INVALID_REQUEST},
    )


def _run_failed(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "data": None,
            "error": message,
            "exit_code": EXIT_CODE_RUN_FAILED,
            "gate_result": GateAction.BLOCK.value,
        },
    )


@router.post("/gate", response_model=GateResultEnvelope)
async def run_gate(payload: GateRunCreate, runner: GateRunner = Depends(get_gate_runner)):
    """Run the gate over explicit templates / workflows."""
    if not payload.template_ids and not payload.workflow_ids:
        return _request_error(400, "At least one template_id or workflow_id is required")

    try:
        result = await runner.run(GateRunRequest(
            policy_id=payload.policy_id,
            template_ids=payload.template_ids,
            workflow_ids=payload.workflow_ids,
            account_ids=payload.account_ids,
            environment_id=payload.environment_id,
            metadata=payload.metadata,
        ))
    except PolicyNotFoundError as e:
        return _request_error(404, str(e))
    except InvalidGateRequestError as e:
        return _request_error(400, str(e))
    except Exception as e:
        logger.error(f"Gate run failed: {e}")
        return _run_failed(str(e))

    return {"data": result.to_standardized(), "error": None}


@router.post("/gate-by-suite", response_model=GateResultEnvelope)
async def run_gate_by_suite(payload: GateBySuiteCreate, runner: GateRunner = Depends(get_gate_runner)):
    """Run the gate configured by a named security suite."""
    if not payload.suite or not payload.env:
        return _request_error(400, "suite and env are required")

    try:
        result = await runner.run_suite(
            payload.suite,
            payload.env,
            git_sha=payload.git_sha,
            pipeline_url=payload.pipeline_url,
        )
    except (SuiteNotFoundError, PolicyNotFoundError) as e:
        return _request_error(404, str(e))
    except InvalidGateRequestError as e:
        return _request_error(400, str(e))
    except Exception as e:
        logger.error(f"Gate run for suite {payload.suite} failed: {e}")
        return _run_failed(str(e))

    return {"data": result.to_standardized(), "error": None}
