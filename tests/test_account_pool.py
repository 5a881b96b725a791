"""
Tests for secgate.core.account_pool: scope resolution and field presence.
"""

import pytest

from secgate.core.account_pool import (
    Account,
    VariableConfig,
    SCOPE_ALL,
    SCOPE_ONLY_SELECTED,
    SCOPE_EXCLUDE_SELECTED,
    get_accounts_with_all_required_fields,
    has_field_value,
    resolve_account_pool,
)


@pytest.fixture
def accounts(make_account):
    return [
        make_account("a1", user_id="u1"),
        make_account("a2", user_id="u2", tenant_id="t2"),
        make_account("a3"),
    ]


def _ids(accounts):
    return [a.id for a in accounts]


# ===================================================================
# resolve_account_pool
# ===================================================================

class TestResolveAccountPool:

    def test_no_scope_returns_all(self, accounts):
        assert resolve_account_pool(accounts, None, None) == accounts

    def test_scope_all_ignores_ids(self, accounts):
        assert resolve_account_pool(accounts, SCOPE_ALL, ["a1"]) == accounts

    def test_only_selected(self, accounts):
        assert _ids(resolve_account_pool(accounts, SCOPE_ONLY_SELECTED, ["a1", "a3"])) == ["a1", "a3"]

    def test_only_selected_keeps_account_order(self, accounts):
        assert _ids(resolve_account_pool(accounts, SCOPE_ONLY_SELECTED, ["a3", "a1"])) == ["a1", "a3"]

    def test_exclude_selected(self, accounts):
        assert _ids(resolve_account_pool(accounts, SCOPE_EXCLUDE_SELECTED, ["a1"])) == ["a2", "a3"]

    def test_empty_ids_returns_all(self, accounts):
        assert resolve_account_pool(accounts, SCOPE_ONLY_SELECTED, []) == accounts
        assert resolve_account_pool(accounts, SCOPE_EXCLUDE_SELECTED, None) == accounts

    def test_unknown_mode_returns_all(self, accounts):
        assert resolve_account_pool(accounts, "somebody_else", ["a1"]) == accounts

    def test_only_selected_with_unknown_ids_is_empty(self, accounts):
        assert resolve_account_pool(accounts, SCOPE_ONLY_SELECTED, ["zzz"]) == []

    def test_input_not_mutated(self, accounts):
        before = list(accounts)
        resolve_account_pool(accounts, SCOPE_EXCLUDE_SELECTED, ["a1", "a2"])
        assert accounts == before


# ===================================================================
# Field presence
# ===================================================================

class TestHasFieldValue:

    def test_present(self, make_account):
        assert has_field_value(make_account("a", user_id="u"), "user_id") is True

    def test_missing_key(self, make_account):
        assert has_field_value(make_account("a"), "user_id") is False

    def test_none_and_empty_string_are_absent(self, make_account):
        assert has_field_value(make_account("a", user_id=None), "user_id") is False
        assert has_field_value(make_account("a", user_id=""), "user_id") is False

    def test_falsy_scalars_are_present(self, make_account):
        assert has_field_value(make_account("a", n=0), "n") is True
        assert has_field_value(make_account("a", flag=False), "flag") is True


class TestAccountsWithAllRequiredFields:

    def test_filters_on_every_key(self, accounts):
        result = get_accounts_with_all_required_fields(accounts, ["user_id", "tenant_id"])
        assert _ids(result) == ["a2"]

    def test_no_keys_returns_all(self, accounts):
        assert get_accounts_with_all_required_fields(accounts, []) == accounts


# ===================================================================
# Value types
# ===================================================================

class TestAccountFromDict:

    def test_from_stored_row(self):
        account = Account.from_dict({"id": "a1", "name": "Alice", "fields": {"user_id": "u1"}, "status": "active"})
        assert account.id == "a1"
        assert account.name == "Alice"
        assert account.fields == {"user_id": "u1"}

    def test_missing_fields_default_empty(self):
        account = Account.from_dict({"id": 7})
        assert account.id == "7"
        assert account.fields == {}


class TestVariableConfig:

    def test_account_field_variable(self):
        v = VariableConfig(name="uid", data_source="account_field", account_field_name="user_id")
        assert v.uses_account_field is True

    def test_account_field_without_key(self):
        v = VariableConfig(name="uid", data_source="account_field")
        assert v.uses_account_field is False

    def test_other_sources(self):
        v = VariableConfig(name="uid", data_source="checklist", account_field_name="user_id")
        assert v.uses_account_field is False
