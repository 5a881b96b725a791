from secgate.schemas.gate import GateRunCreate, GateBySuiteCreate, GateResultResponse, GateResultEnvelope
from secgate.schemas.drop_rule import (
    DropRuleCreate,
    DropRuleUpdate,
    DropCheckContextSchema,
    DropRulePreviewRequest,
    DropRuleCheckRequest,
)
from secgate.schemas.account_pool import VariableConfigSchema, AccountPoolValidationRequest

__all__ = [
    "GateRunCreate",
    "GateBySuiteCreate",
    "GateResultResponse",
    "GateResultEnvelope",
    "DropRuleCreate",
    "DropRuleUpdate",
    "DropCheckContextSchema",
    "DropRulePreviewRequest",
    "DropRuleCheckRequest",
    "VariableConfigSchema",
    "AccountPoolValidationRequest",
]
