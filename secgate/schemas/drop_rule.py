"""
SecGate - Finding Drop Rule Schemas
"""
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator


class DropRuleCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = None
    is_enabled: bool = True
    priority: int = Field(100, description="Lower values are evaluated first")
    applies_to: str = Field("both", pattern="^(test_run|workflow|both)$")
    match_method: str = Field("ANY", description="ANY or an exact HTTP verb")
    match_type: str = Field("contains", pattern="^(exact|prefix|contains|regex)$")
    match_path: Optional[str] = None
    match_service_id: Optional[str] = None
    match_template_id: Optional[str] = None
    match_workflow_id: Optional[str] = None


class DropRuleUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_enabled: Optional[bool] = None
    priority: Optional[int] = None
    applies_to: Optional[str] = Field(None, pattern="^(test_run|workflow|both)$")
    match_method: Optional[str] = None
    match_type: Optional[str] = Field(None, pattern="^(exact|prefix|contains|regex)$")
    match_path: Optional[str] = None
    match_service_id: Optional[str] = None
    match_template_id: Optional[str] = None
    match_workflow_id: Optional[str] = None

    @field_validator("name", "is_enabled", "priority", "applies_to", "match_method", "match_type")
    @classmethod
    def reject_null(cls, v):
        """Required columns may be omitted but not cleared."""
        if v is None:
            raise ValueError("may not be null")
        return v


class DropCheckContextSchema(BaseModel):
    """The request a finding came from"""
    method: str
    path: str
    request_raw: str = ""
    source_type: str = Field("test_run", pattern="^(test_run|workflow)$")
    template_id: Optional[str] = None
    workflow_id: Optional[str] = None


class DropRulePreviewRequest(BaseModel):
    """An unsaved rule plus the context to test it against"""
    rule: dict = Field(default_factory=dict)
    context: DropCheckContextSchema


class DropRuleCheckRequest(BaseModel):
    """Check a context against the stored rules (or the given subset)"""
    context: DropCheckContextSchema
    rule_ids: Optional[List[str]] = None
