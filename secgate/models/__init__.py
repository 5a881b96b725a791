from secgate.models.account import AccountRecord
from secgate.models.environment import Environment
from secgate.models.gate_policy import GatePolicyRecord
from secgate.models.security_suite import SecuritySuite
from secgate.models.security_run import SecurityRun
from secgate.models.test_run import TestRun
from secgate.models.drop_rule import DropRuleRecord

__all__ = [
    "AccountRecord",
    "Environment",
    "GatePolicyRecord",
    "SecuritySuite",
    "SecurityRun",
    "TestRun",
    "DropRuleRecord",
]
