"""
SecGate - Account Pool Resolver

Narrows the full account list to the accounts a single mutable variable may
draw its value from. Self-contained: no ORM or async dependencies.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


SCOPE_ALL = "all"
SCOPE_ONLY_SELECTED = "only_selected"
SCOPE_EXCLUDE_SELECTED = "exclude_selected"

DATA_SOURCE_ACCOUNT_FIELD = "account_field"


@dataclass
class Account:
    """An account that can supply field values to a mutation test."""
    id: str
    name: str = ""
    fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            fields=dict(data.get("fields") or {}),
        )


@dataclass
class VariableConfig:
    """One mutable parameter of a template or workflow run."""
    name: str
    data_source: str = "original"  # account_field, checklist, security_rule, workflow_context, original
    account_field_name: Optional[str] = None
    role: Optional[str] = None  # attacker, victim, or None for neutral
    is_attacker_field: bool = False
    account_scope_mode: Optional[str] = None  # all, only_selected, exclude_selected
    account_scope_ids: List[str] = field(default_factory=list)
    id: Optional[str] = None

    @property
    def uses_account_field(self) -> bool:
        return self.data_source == DATA_SOURCE_ACCOUNT_FIELD and bool(self.account_field_name)


def has_field_value(account: Account, key: str) -> bool:
    """True when the account carries a non-null, non-empty value for key."""
    value = (account.fields or {}).get(key)
    return value is not None and value != ""


def resolve_account_pool(
    accounts: List[Account],
    scope_mode: Optional[str],
    scope_ids: Optional[List[str]],
) -> List[Account]:
    """Return the accounts a variable is allowed to use under its scope.

    An absent or unknown scope mode, "all", or an empty id list leaves the
    account list untouched.
    """
    if not scope_mode or scope_mode == SCOPE_ALL or not scope_ids:
        return accounts

    scope_id_set = set(scope_ids)

    if scope_mode == SCOPE_ONLY_SELECTED:
        return [a for a in accounts if a.id in scope_id_set]

    if scope_mode == SCOPE_EXCLUDE_SELECTED:
        return [a for a in accounts if a.id not in scope_id_set]

    logger.debug(f"Unknown account scope mode '{scope_mode}', using all accounts")
    return accounts


def get_accounts_with_all_required_fields(
    accounts: List[Account],
    required_field_keys: List[str],
) -> List[Account]:
    """Accounts holding a non-empty value for every required key."""
    if not required_field_keys:
        return accounts

    return [
        account for account in accounts
        if all(has_field_value(account, key) for key in required_field_keys)
    ]
