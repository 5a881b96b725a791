"""
SecGate - Gate Policy Evaluator

Turns finding counts into a PASS / WARN / BLOCK verdict and a CI exit code.

Components:
  - GateAction: ordered verdicts (PASS < WARN < BLOCK)
  - ThresholdRule: one (operator, threshold) -> action step
  - GatePolicy: weights, combine operator and per-origin rule chains
  - GateCalculationResult: verdict plus the per-origin audit trail
  - calculate_gate_result: the evaluator itself

Self-contained: no ORM or async dependencies.
"""

import logging
import math
import operator as _op
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class GateAction(str, Enum):
    PASS = "PASS"
    WARN = "WARN"
    BLOCK = "BLOCK"


ACTION_PRIORITY: Dict[GateAction, int] = {
    GateAction.PASS: 0,
    GateAction.WARN: 1,
    GateAction.BLOCK: 2,
}

COMBINE_OR = "OR"
COMBINE_AND = "AND"

# Exit codes reported to CI
EXIT_CODE_OK = 0
EXIT_CODE_BLOCK = 1
EXIT_CODE_RUN_FAILED = 3
# Reserved for invalid requests / policy misconfiguration; the evaluator never returns it
EXIT_CODE_INVALID_REQUEST = 4

THRESHOLD_OPERATORS: Dict[str, Callable[[float, float], bool]] = {
    ">=": _op.ge,
    ">": _op.gt,
    "<=": _op.le,
    "<": _op.lt,
    "==": _op.eq,
    "!=": _op.ne,
}


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class ThresholdRule:
    operator: str
    threshold: float
    action: GateAction

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ThresholdRule":
        return cls(
            operator=data["operator"],
            threshold=float(data["threshold"]),
            action=GateAction(data["action"]),
        )

    def to_dict(self) -> dict:
        return {"operator": self.operator, "threshold": self.threshold, "action": self.action.value}


@dataclass
class GatePolicy:
    """Weighted, combinable threshold policy."""
    id: str
    name: str
    is_enabled: bool = True
    weight_test: float = 100
    weight_workflow: float = 0
    combine_operator: str = COMBINE_OR
    rules_test: List[ThresholdRule] = field(default_factory=list)
    rules_workflow: List[ThresholdRule] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GatePolicy":
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            is_enabled=bool(data.get("is_enabled", True)),
            weight_test=data.get("weight_test") or 0,
            weight_workflow=data.get("weight_workflow") or 0,
            combine_operator=data.get("combine_operator") or COMBINE_OR,
            rules_test=[ThresholdRule.from_dict(r) for r in data.get("rules_test") or []],
            rules_workflow=[ThresholdRule.from_dict(r) for r in data.get("rules_workflow") or []],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "is_enabled": self.is_enabled,
            "weight_test": self.weight_test,
            "weight_workflow": self.weight_workflow,
            "combine_operator": self.combine_operator,
            "rules_test": [r.to_dict() for r in self.rules_test],
            "rules_workflow": [r.to_dict() for r in self.rules_workflow],
        }


@dataclass
class GateCalculationDetails:
    test_findings_count: int
    workflow_findings_count: int
    test_weighted_score: int
    workflow_weighted_score: int
    test_action: GateAction
    workflow_action: GateAction
    combine_operator: str
    final_action: GateAction

    def to_dict(self) -> dict:
        data = asdict(self)
        for key in ("test_action", "workflow_action", "final_action"):
            data[key] = data[key].value
        return data


@dataclass
class GateCalculationResult:
    gate_result: GateAction
    exit_code: int
    details: GateCalculationDetails

    def to_dict(self) -> dict:
        return {
            "gate_result": self.gate_result.value,
            "exit_code": self.exit_code,
            "details": self.details.to_dict(),
        }


# ---------------------------------------------------------------------------
# Default policy
# ---------------------------------------------------------------------------

def _default_rules() -> List[ThresholdRule]:
    # BLOCK is listed first so it wins at high scores
    return [
        ThresholdRule(operator=">=", threshold=5, action=GateAction.BLOCK),
        ThresholdRule(operator=">=", threshold=1, action=GateAction.WARN),
        ThresholdRule(operator="<", threshold=1, action=GateAction.PASS),
    ]


def default_gate_policy() -> GatePolicy:
    """Policy used when a gate run names no policy."""
    return GatePolicy(
        id="default",
        name="Default Policy",
        is_enabled=True,
        weight_test=100,
        weight_workflow=0,
        combine_operator=COMBINE_OR,
        rules_test=_default_rules(),
        rules_workflow=_default_rules(),
    )


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def weighted_score(count: int, weight: float) -> int:
    return math.ceil(count * weight / 100)


def evaluate_operator(score: float, operator: str, threshold: float) -> bool:
    compare = THRESHOLD_OPERATORS.get(operator)
    if compare is None:
        return False
    return compare(score, threshold)


def evaluate_rules(score: float, rules: List[ThresholdRule]) -> GateAction:
    """Action of the first rule (in list order) whose comparison holds, else PASS."""
    for rule in rules:
        if evaluate_operator(score, rule.operator, rule.threshold):
            return GateAction(rule.action)
    return GateAction.PASS


def combine_actions(test_action: GateAction, workflow_action: GateAction, combine_operator: str) -> GateAction:
    """OR keeps the more severe action, AND keeps the milder one."""
    if combine_operator == COMBINE_OR:
        return max(test_action, workflow_action, key=ACTION_PRIORITY.__getitem__)
    return min(test_action, workflow_action, key=ACTION_PRIORITY.__getitem__)


def action_to_exit_code(action: GateAction) -> int:
    if action == GateAction.BLOCK:
        return EXIT_CODE_BLOCK
    return EXIT_CODE_OK


def calculate_gate_result(
    test_findings_count: int,
    workflow_findings_count: int,
    policy: GatePolicy,
    has_execution_error: bool = False,
) -> GateCalculationResult:
    """Evaluate a policy against test and workflow finding counts.

    An origin with weight 0 is not scored: its action is PASS whatever its
    rules say. An execution error always forces BLOCK.
    """
    test_score = weighted_score(test_findings_count, policy.weight_test)
    workflow_score = weighted_score(workflow_findings_count, policy.weight_workflow)

    test_action = GateAction.PASS
    workflow_action = GateAction.PASS

    if policy.weight_test > 0:
        test_action = evaluate_rules(test_score, policy.rules_test or [])

    if policy.weight_workflow > 0:
        workflow_action = evaluate_rules(workflow_score, policy.rules_workflow or [])

    final_action = combine_actions(test_action, workflow_action, policy.combine_operator)

    if has_execution_error and final_action != GateAction.BLOCK:
        logger.debug(f"Execution error forces BLOCK (was {final_action.value})")
        final_action = GateAction.BLOCK

    return GateCalculationResult(
        gate_result=final_action,
        exit_code=action_to_exit_code(final_action),
        details=GateCalculationDetails(
            test_findings_count=test_findings_count,
            workflow_findings_count=workflow_findings_count,
            test_weighted_score=test_score,
            workflow_weighted_score=workflow_score,
            test_action=test_action,
            workflow_action=workflow_action,
            combine_operator=policy.combine_operator,
            final_action=final_action,
        ),
    )
