"""
Tests for secgate.core.drop_filter: finding drop rule matching.
"""

import pytest

from secgate.core.drop_filter import (
    DropCheckContext,
    DropRule,
    check_drop_rules,
    match_drop_rule,
    preview_drop_rule,
)


def _ctx(path="/api/users/1", method="GET", **kwargs):
    return DropCheckContext(method=method, path=path, **kwargs)


# ===================================================================
# Single rule predicates
# ===================================================================

class TestMatchDropRule:

    def test_rule_without_predicates_matches_everything(self):
        assert match_drop_rule(DropRule(id="r", name="all"), _ctx()) is True

    def test_applies_to_source_type(self):
        rule = DropRule(id="r", name="wf", applies_to="workflow")
        assert match_drop_rule(rule, _ctx(source_type="test_run")) is False
        assert match_drop_rule(rule, _ctx(source_type="workflow")) is True

    def test_method(self):
        rule = DropRule(id="r", name="get", match_method="GET")
        assert match_drop_rule(rule, _ctx(method="GET")) is True
        assert match_drop_rule(rule, _ctx(method="POST")) is False

    def test_method_any(self):
        rule = DropRule(id="r", name="any", match_method="ANY")
        assert match_drop_rule(rule, _ctx(method="DELETE")) is True

    def test_template_and_workflow_ids(self):
        rule = DropRule(id="r", name="t", match_template_id="tpl-1")
        assert match_drop_rule(rule, _ctx(template_id="tpl-1")) is True
        assert match_drop_rule(rule, _ctx(template_id="tpl-2")) is False
        assert match_drop_rule(rule, _ctx()) is False

        rule = DropRule(id="r", name="w", match_workflow_id="wf-1")
        assert match_drop_rule(rule, _ctx(workflow_id="wf-1")) is True
        assert match_drop_rule(rule, _ctx(workflow_id="wf-9")) is False

    def test_service_id_is_substring_of_raw_request(self):
        rule = DropRule(id="r", name="svc", match_service_id="billing-svc")
        raw = "GET /x HTTP/1.1\nX-Service: billing-svc\n"
        assert match_drop_rule(rule, _ctx(request_raw=raw)) is True
        assert match_drop_rule(rule, _ctx(request_raw="GET /x HTTP/1.1")) is False

    @pytest.mark.parametrize("match_type,pattern,path,expected", [
        ("exact", "/api/users", "/api/users", True),
        ("exact", "/api/users", "/api/users/1", False),
        ("prefix", "/api", "/api/users", True),
        ("prefix", "/users", "/api/users", False),
        ("contains", "users", "/api/users/1", True),
        ("contains", "orders", "/api/users/1", False),
        ("regex", r"^/api/users/\d+$", "/api/users/42", True),
        ("regex", r"^/api/users/\d+$", "/api/users/me", False),
        ("regex", "users/[0-9]", "/v2/users/7/profile", True),
    ])
    def test_path_match_types(self, match_type, pattern, path, expected):
        rule = DropRule(id="r", name="p", match_type=match_type, match_path=pattern)
        assert match_drop_rule(rule, _ctx(path=path)) is expected

    def test_invalid_regex_does_not_match(self):
        rule = DropRule(id="r", name="bad", match_type="regex", match_path="([unclosed")
        assert match_drop_rule(rule, _ctx(path="([unclosed")) is False

    def test_unknown_match_type_does_not_constrain(self):
        rule = DropRule(id="r", name="odd", match_type="glob", match_path="/nothing/*")
        assert match_drop_rule(rule, _ctx(path="/api/users")) is True


# ===================================================================
# Rule chain
# ===================================================================

class TestCheckDropRules:

    @pytest.fixture
    def rules(self):
        return [
            DropRule(id="catch-all", name="Catch all", priority=2, applies_to="both"),
            DropRule(id="admin", name="Admin paths", priority=1, match_type="prefix", match_path="/admin"),
        ]

    def test_lowest_priority_wins(self, rules):
        result = check_drop_rules(rules, _ctx(path="/admin/x"))
        assert result.dropped is True
        assert result.rule_id == "admin"
        assert result.rule_name == "Admin paths"

    def test_falls_through_to_next_rule(self, rules):
        result = check_drop_rules(rules, _ctx(path="/other"))
        assert result.dropped is True
        assert result.rule_id == "catch-all"

    def test_disabled_rules_skipped(self):
        rules = [DropRule(id="off", name="Off", is_enabled=False)]
        result = check_drop_rules(rules, _ctx())
        assert result.dropped is False
        assert result.rule_id is None

    def test_invalid_regex_does_not_stop_evaluation(self):
        rules = [
            DropRule(id="bad", name="Bad", priority=1, match_type="regex", match_path="(("),
            DropRule(id="good", name="Good", priority=5, match_type="contains", match_path="users"),
        ]
        result = check_drop_rules(rules, _ctx(path="/api/users"))
        assert result.rule_id == "good"

    def test_no_rules(self):
        assert check_drop_rules([], _ctx()).to_dict() == {"dropped": False, "rule_id": None, "rule_name": None}

    def test_from_dict_rules(self):
        rows = [{"id": "r1", "name": "Health", "priority": 10, "match_type": "exact", "match_path": "/health"}]
        result = check_drop_rules([DropRule.from_dict(r) for r in rows], _ctx(path="/health"))
        assert result.dropped is True


# ===================================================================
# Preview
# ===================================================================

class TestPreviewDropRule:

    def test_empty_rule_matches(self):
        assert preview_drop_rule({}, _ctx()) is True

    def test_defaults_to_contains(self):
        assert preview_drop_rule({"match_path": "users"}, _ctx(path="/api/users/1")) is True
        assert preview_drop_rule({"match_path": "orders"}, _ctx(path="/api/users/1")) is False

    def test_partial_rule_fields(self):
        rule = {"match_method": "POST", "applies_to": "workflow"}
        assert preview_drop_rule(rule, _ctx(method="POST", source_type="workflow")) is True
        assert preview_drop_rule(rule, _ctx(method="POST", source_type="test_run")) is False
