"""
SecGate - Account Pool Validation Schemas
"""
from typing import Optional, List
from pydantic import BaseModel, Field


class VariableConfigSchema(BaseModel):
    name: str
    data_source: str = Field("original", description="account_field, checklist, security_rule, workflow_context, original")
    account_field_name: Optional[str] = None
    role: Optional[str] = Field(None, description="attacker, victim, or empty for neutral")
    is_attacker_field: bool = False
    account_scope_mode: Optional[str] = Field(None, description="all, only_selected, exclude_selected")
    account_scope_ids: List[str] = Field(default_factory=list)


class AccountPoolValidationRequest(BaseModel):
    strategy: str = Field("independent", description="independent, per_account, anchor_attacker")
    attacker_account_id: Optional[str] = None
    account_ids: Optional[List[str]] = Field(None, description="Restrict to these accounts; all stored accounts when omitted")
    variables: List[VariableConfigSchema] = Field(default_factory=list)
