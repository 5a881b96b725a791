"""
SecGate - Mutation-Role Validator

Decides which accounts may play attacker / victim / neutral roles when a
template or workflow run mutates account-sourced variables, and reports how
well the account universe covers every variable.

Strategies:
  - independent:      each variable draws from its own present-accounts pool
  - per_account:      one account must supply every variable at once
  - anchor_attacker:  a fixed attacker account, victims drawn from the rest

Self-contained: no ORM or async dependencies. Inputs are never mutated.
"""

import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional

from secgate.core.account_pool import (
    Account,
    VariableConfig,
    DATA_SOURCE_ACCOUNT_FIELD,
    has_field_value,
    resolve_account_pool,
)

logger = logging.getLogger(__name__)


STRATEGY_INDEPENDENT = "independent"
STRATEGY_PER_ACCOUNT = "per_account"
STRATEGY_ANCHOR_ATTACKER = "anchor_attacker"

ROLE_ATTACKER = "attacker"
ROLE_VICTIM = "victim"
ROLE_NEUTRAL = "neutral"

SEVERITY_OK = "ok"
SEVERITY_WARN = "warn"
SEVERITY_FATAL = "fatal"

# Coverage below this ratio is reported as a warning
LOW_COVERAGE_THRESHOLD = 0.3


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class VariableValidationResult:
    """Coverage diagnostics for one account-sourced variable."""
    name: str
    field_key: str
    role: str
    pool_total: int
    present: int
    missing: int
    coverage_rate: float
    severity: str = SEVERITY_OK
    message: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ValidationReport:
    """Diagnostic report returned by prepare_account_pools."""
    strategy: str
    attacker_account_id: Optional[str] = None
    variables: List[VariableValidationResult] = field(default_factory=list)
    fatal_errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return len(self.fatal_errors) == 0

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy,
            "attacker_account_id": self.attacker_account_id,
            "variables": [v.to_dict() for v in self.variables],
            "fatal_errors": list(self.fatal_errors),
            "warnings": list(self.warnings),
        }


@dataclass
class PreparedAccountPools:
    """Final account pools plus the report that justified them."""
    valid: bool
    report: ValidationReport
    variable_pools: Dict[str, List[Account]] = field(default_factory=dict)
    filtered_accounts: List[Account] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "report": self.report.to_dict(),
            "variable_pools": {
                name: [a.id for a in pool] for name, pool in self.variable_pools.items()
            },
            "filtered_account_ids": [a.id for a in self.filtered_accounts],
        }


@dataclass
class TemplateVariable:
    """A variable declared on an API template (JSON-path addressed)."""
    name: str
    json_path: str = ""
    data_source: Optional[str] = None
    account_field_name: Optional[str] = None
    account_scope_mode: Optional[str] = None
    account_scope_ids: List[str] = field(default_factory=list)
    role: Optional[str] = None
    is_attacker_field: bool = False


@dataclass
class _Coverage:
    present_accounts: List[Account]
    missing: int

    @property
    def present(self) -> int:
        return len(self.present_accounts)


# ---------------------------------------------------------------------------
# Shared coverage primitive
# ---------------------------------------------------------------------------

def analyze_variable_coverage(variable: VariableConfig, pool: List[Account]) -> _Coverage:
    """Split a pool into accounts that have the variable's field and those that don't."""
    field_key = variable.account_field_name
    if not field_key:
        return _Coverage(present_accounts=[], missing=len(pool))

    present_accounts = [a for a in pool if has_field_value(a, field_key)]
    return _Coverage(
        present_accounts=present_accounts,
        missing=len(pool) - len(present_accounts),
    )


def determine_variable_role(variable: VariableConfig) -> str:
    if variable.is_attacker_field or variable.role == ROLE_ATTACKER:
        return ROLE_ATTACKER
    if variable.role == ROLE_VICTIM:
        return ROLE_VICTIM
    return ROLE_NEUTRAL


def _percent(rate: float) -> int:
    return int(rate * 100 + 0.5)


def _score_variable(
    variable: VariableConfig,
    pool: List[Account],
    report: ValidationReport,
    role: str,
    victim_pool: bool = False,
    pool_scoped: bool = True,
) -> _Coverage:
    """Measure coverage of one variable over a pool and record it on the report."""
    coverage = analyze_variable_coverage(variable, pool)
    coverage_rate = coverage.present / len(pool) if pool else 0.0

    result = VariableValidationResult(
        name=variable.name,
        field_key=variable.account_field_name,
        role=role,
        pool_total=len(pool),
        present=coverage.present,
        missing=coverage.missing,
        coverage_rate=coverage_rate,
    )

    field_key = variable.account_field_name
    if coverage.present == 0:
        result.severity = SEVERITY_FATAL
        if victim_pool:
            result.message = f'No victim accounts have field "{field_key}"'
            report.fatal_errors.append(
                f'No victim accounts have field "{field_key}" for variable "{variable.name}"'
            )
        else:
            result.message = f'No accounts have field "{field_key}"'
            scope = "no accounts in pool" if pool_scoped else "no accounts"
            report.fatal_errors.append(f'Variable "{variable.name}": {scope} have field "{field_key}"')
    elif coverage_rate < LOW_COVERAGE_THRESHOLD:
        result.severity = SEVERITY_WARN
        if victim_pool:
            result.message = f"Low victim coverage: {_percent(coverage_rate)}%"
            report.warnings.append(
                f'Victim pool coverage low for "{variable.name}": {_percent(coverage_rate)}%'
            )
        else:
            result.message = f"Low coverage: {_percent(coverage_rate)}%"
            report.warnings.append(
                f'Variable "{variable.name}" coverage low: {_percent(coverage_rate)}%'
            )

    report.variables.append(result)
    return coverage


def _intersect_by_id(pools: List[List[Account]]) -> List[Account]:
    """Accounts present in every pool, in the order of the first pool."""
    if not pools:
        return []
    result = list(pools[0])
    for pool in pools[1:]:
        pool_ids = {a.id for a in pool}
        result = [a for a in result if a.id in pool_ids]
    return result


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def prepare_account_pools(
    accounts: List[Account],
    variable_configs: List[VariableConfig],
    strategy: str,
    attacker_account_id: Optional[str] = None,
) -> PreparedAccountPools:
    """Validate account coverage for a run and build per-variable account pools.

    Only variables sourced from an account field take part. When none do,
    the run is valid and the account list is returned unfiltered.
    Unknown strategies are treated as "independent".
    """
    account_field_vars = [v for v in variable_configs if v.uses_account_field]

    report = ValidationReport(strategy=strategy, attacker_account_id=attacker_account_id)

    if not account_field_vars:
        return PreparedAccountPools(
            valid=True,
            report=report,
            variable_pools={},
            filtered_accounts=list(accounts),
        )

    base_pools: Dict[str, List[Account]] = {}
    for variable in account_field_vars:
        base_pools[variable.name] = resolve_account_pool(
            accounts,
            variable.account_scope_mode,
            variable.account_scope_ids,
        )

    if strategy == STRATEGY_PER_ACCOUNT:
        prepared = _validate_per_account(account_field_vars, base_pools, report)
    elif strategy == STRATEGY_ANCHOR_ATTACKER:
        prepared = _validate_anchor_attacker(
            accounts, account_field_vars, base_pools, report, attacker_account_id
        )
    else:
        prepared = _validate_independent(accounts, account_field_vars, base_pools, report)

    logger.debug(
        f"Account pools prepared: strategy={strategy} valid={prepared.valid} "
        f"fatal={len(report.fatal_errors)} warnings={len(report.warnings)}"
    )
    return prepared


def prepare_account_pools_for_template(
    accounts: List[Account],
    template_variables: List[TemplateVariable],
    strategy: str,
    attacker_account_id: Optional[str] = None,
) -> PreparedAccountPools:
    """Template-run flavour of prepare_account_pools."""
    variable_configs = [
        VariableConfig(
            id=v.name,
            name=v.name,
            data_source=v.data_source or DATA_SOURCE_ACCOUNT_FIELD,
            account_field_name=v.account_field_name,
            role=v.role,
            is_attacker_field=v.is_attacker_field,
            account_scope_mode=v.account_scope_mode,
            account_scope_ids=list(v.account_scope_ids or []),
        )
        for v in template_variables
        if v.data_source == DATA_SOURCE_ACCOUNT_FIELD and v.account_field_name
    ]
    return prepare_account_pools(accounts, variable_configs, strategy, attacker_account_id)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def _validate_independent(
    accounts: List[Account],
    variables: List[VariableConfig],
    base_pools: Dict[str, List[Account]],
    report: ValidationReport,
) -> PreparedAccountPools:
    variable_pools: Dict[str, List[Account]] = {}
    for variable in variables:
        coverage = _score_variable(
            variable, base_pools[variable.name], report, determine_variable_role(variable)
        )
        variable_pools[variable.name] = coverage.present_accounts

    return PreparedAccountPools(
        valid=report.valid,
        report=report,
        variable_pools=variable_pools,
        filtered_accounts=list(accounts),
    )


def _validate_per_account(
    variables: List[VariableConfig],
    base_pools: Dict[str, List[Account]],
    report: ValidationReport,
) -> PreparedAccountPools:
    required_keys = [v.account_field_name for v in variables]

    candidates = _intersect_by_id([base_pools[v.name] for v in variables])
    qualified_accounts = [
        account for account in candidates
        if all(has_field_value(account, key) for key in required_keys)
    ]

    # Diagnostics stay relative to each variable's own base pool
    for variable in variables:
        _score_variable(
            variable, base_pools[variable.name], report, determine_variable_role(variable),
            pool_scoped=False,
        )

    if not qualified_accounts:
        report.fatal_errors.append(
            f"per_account: no accounts have all required fields [{', '.join(required_keys)}]"
        )

    return PreparedAccountPools(
        valid=report.valid,
        report=report,
        variable_pools={v.name: list(qualified_accounts) for v in variables},
        filtered_accounts=qualified_accounts,
    )


def _validate_anchor_attacker(
    accounts: List[Account],
    variables: List[VariableConfig],
    base_pools: Dict[str, List[Account]],
    report: ValidationReport,
    attacker_account_id: Optional[str],
) -> PreparedAccountPools:
    if not attacker_account_id:
        report.fatal_errors.append("anchor_attacker strategy requires attacker_account_id")
        return PreparedAccountPools(
            valid=False, report=report, variable_pools=dict(base_pools), filtered_accounts=[]
        )

    attacker = next((a for a in accounts if a.id == attacker_account_id), None)
    if attacker is None:
        report.fatal_errors.append(f'Attacker account "{attacker_account_id}" not found')
        return PreparedAccountPools(
            valid=False, report=report, variable_pools=dict(base_pools), filtered_accounts=[]
        )

    variable_pools: Dict[str, List[Account]] = dict(base_pools)

    attacker_vars = [v for v in variables if determine_variable_role(v) == ROLE_ATTACKER]
    victim_vars = [v for v in variables if determine_variable_role(v) != ROLE_ATTACKER]

    # The attacker is one fixed identity: present or not, no coverage ratio
    for variable in attacker_vars:
        has_value = has_field_value(attacker, variable.account_field_name)
        result = VariableValidationResult(
            name=variable.name,
            field_key=variable.account_field_name,
            role=ROLE_ATTACKER,
            pool_total=1,
            present=1 if has_value else 0,
            missing=0 if has_value else 1,
            coverage_rate=1.0 if has_value else 0.0,
            severity=SEVERITY_OK if has_value else SEVERITY_FATAL,
        )
        if not has_value:
            result.message = f'Attacker account missing field "{variable.account_field_name}"'
            report.fatal_errors.append(
                f"Attacker account missing required field: {variable.account_field_name}"
            )
        report.variables.append(result)
        variable_pools[variable.name] = [attacker] if has_value else []

    non_attacker_accounts = [a for a in accounts if a.id != attacker_account_id]

    for variable in victim_vars:
        victim_pool = resolve_account_pool(
            non_attacker_accounts,
            variable.account_scope_mode,
            variable.account_scope_ids,
        )
        coverage = _score_variable(variable, victim_pool, report, ROLE_VICTIM, victim_pool=True)
        variable_pools[variable.name] = coverage.present_accounts

    if victim_vars:
        valid_victims = _intersect_by_id([variable_pools[v.name] for v in victim_vars])
    else:
        valid_victims = non_attacker_accounts

    if not report.valid:
        filtered_accounts: List[Account] = []
    else:
        filtered_accounts = [attacker] + valid_victims

    return PreparedAccountPools(
        valid=report.valid,
        report=report,
        variable_pools=variable_pools,
        filtered_accounts=filtered_accounts,
    )
