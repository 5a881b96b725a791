"""
SecGate - Finding Drop Rules

Operator-authored suppression rules. Enabled rules are evaluated in
ascending priority; the first matching rule drops the finding.

Self-contained: no ORM or async dependencies.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


APPLIES_TO_TEST_RUN = "test_run"
APPLIES_TO_WORKFLOW = "workflow"
APPLIES_TO_BOTH = "both"

MATCH_METHOD_ANY = "ANY"


@dataclass
class DropRule:
    """A finding drop rule as evaluated by the matcher."""
    id: str
    name: str
    is_enabled: bool = True
    priority: int = 0  # lower runs first
    applies_to: str = APPLIES_TO_BOTH  # test_run, workflow, both
    match_method: str = MATCH_METHOD_ANY
    match_type: str = "contains"  # exact, prefix, contains, regex
    match_path: Optional[str] = None
    match_service_id: Optional[str] = None
    match_template_id: Optional[str] = None
    match_workflow_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DropRule":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            is_enabled=bool(data.get("is_enabled", True)),
            priority=int(data.get("priority") or 0),
            applies_to=data.get("applies_to") or APPLIES_TO_BOTH,
            match_method=data.get("match_method") or MATCH_METHOD_ANY,
            match_type=data.get("match_type") or "contains",
            match_path=data.get("match_path"),
            match_service_id=data.get("match_service_id"),
            match_template_id=data.get("match_template_id"),
            match_workflow_id=data.get("match_workflow_id"),
        )


@dataclass
class DropCheckContext:
    """The request a finding was produced from."""
    method: str
    path: str
    request_raw: str = ""
    source_type: str = APPLIES_TO_TEST_RUN  # test_run or workflow
    template_id: Optional[str] = None
    workflow_id: Optional[str] = None


@dataclass
class DropCheckResult:
    dropped: bool
    rule_id: Optional[str] = None
    rule_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {"dropped": self.dropped, "rule_id": self.rule_id, "rule_name": self.rule_name}


def _path_matches(match_type: str, pattern: str, path: str) -> bool:
    if match_type == "exact":
        return path == pattern
    if match_type == "prefix":
        return path.startswith(pattern)
    if match_type == "contains":
        return pattern in path
    if match_type == "regex":
        try:
            return re.search(pattern, path) is not None
        except re.error as e:
            logger.debug(f"Invalid drop rule regex {pattern!r}: {e}")
            return False
    # Unknown match types do not constrain the path
    return True


def match_drop_rule(rule: DropRule, ctx: DropCheckContext) -> bool:
    """True when every predicate set on the rule holds for the context."""
    if rule.applies_to != APPLIES_TO_BOTH and rule.applies_to != ctx.source_type:
        return False

    if rule.match_method and rule.match_method != MATCH_METHOD_ANY and rule.match_method != ctx.method:
        return False

    if rule.match_template_id and rule.match_template_id != ctx.template_id:
        return False

    if rule.match_workflow_id and rule.match_workflow_id != ctx.workflow_id:
        return False

    if rule.match_service_id and rule.match_service_id not in (ctx.request_raw or ""):
        return False

    if rule.match_path and not _path_matches(rule.match_type, rule.match_path, ctx.path):
        return False

    return True


def check_drop_rules(rules: List[DropRule], ctx: DropCheckContext) -> DropCheckResult:
    """Return the first enabled rule (by ascending priority) that matches."""
    enabled_rules = sorted((r for r in rules if r.is_enabled), key=lambda r: r.priority)

    for rule in enabled_rules:
        if match_drop_rule(rule, ctx):
            return DropCheckResult(dropped=True, rule_id=rule.id, rule_name=rule.name)

    return DropCheckResult(dropped=False)


def preview_drop_rule(rule: Dict[str, Any], ctx: DropCheckContext) -> bool:
    """Evaluate an unsaved, partially filled rule against a context."""
    full_rule = DropRule(
        id="preview",
        name="Preview",
        is_enabled=True,
        priority=0,
        applies_to=rule.get("applies_to") or APPLIES_TO_BOTH,
        match_method=rule.get("match_method") or MATCH_METHOD_ANY,
        match_type=rule.get("match_type") or "contains",
        match_path=rule.get("match_path"),
        match_service_id=rule.get("match_service_id"),
        match_template_id=rule.get("match_template_id"),
        match_workflow_id=rule.get("match_workflow_id"),
    )
    return match_drop_rule(full_rule, ctx)
