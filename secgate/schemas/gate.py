"""
SecGate - Gate Run Schemas
"""
from typing import Optional, List
from pydantic import BaseModel, Field


class GateRunCreate(BaseModel):
    """Schema for an ad-hoc gate run"""
    policy_id: Optional[str] = Field(None, description="Gate policy ID; the default policy is used when omitted")
    template_ids: List[str] = Field(default_factory=list, description="API templates to run as one batch")
    workflow_ids: List[str] = Field(default_factory=list, description="Workflows to run, one test run each")
    account_ids: List[str] = Field(default_factory=list, description="Accounts available to the executors")
    environment_id: Optional[str] = None
    metadata: dict = Field(default_factory=dict, description="Free-form metadata stored on the run")


class GateBySuiteCreate(BaseModel):
    """Schema for a suite-driven gate run (what sec-runner sends)"""
    suite: Optional[str] = Field(None, description="Security suite name, e.g. P0")
    env: Optional[str] = Field(None, description="Environment name, e.g. staging")
    git_sha: Optional[str] = None
    pipeline_url: Optional[str] = None


class GateResultResponse(BaseModel):
    """Standardized gate result"""
    decision: str
    exit_code: int
    test_run_findings: int
    workflow_findings: int
    weighted_score: int
    security_run_id: str
    summary: Optional[str] = None
    raw_details: dict


class GateResultEnvelope(BaseModel):
    """Successful gate run response"""
    data: GateResultResponse
    error: Optional[str] = None
