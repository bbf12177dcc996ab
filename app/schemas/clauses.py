"""Request and response models for clauses."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.database.enums import ClauseCategory, RiskLevel


class ComplianceFlag(BaseModel):
    issue: str = Field(..., min_length=1)
    law_reference: Optional[str] = None
    severity: RiskLevel


class ClauseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    contract_id: UUID
    clause_number: int
    original_text: str
    plain_explanation: Optional[str] = None
    risk_rationale: Optional[str] = None
    risk_score: Optional[int] = None
    risk_level: Optional[RiskLevel] = None
    category: Optional[ClauseCategory] = None
    suggested_alternative: Optional[str] = None
    negotiation_script: Optional[str] = None
    compliance_flags: List[ComplianceFlag] = Field(default_factory=list)
    similarity_score: Optional[int] = None
    is_flagged: bool = False
    created_at: datetime
    updated_at: datetime


class ClauseUpdate(BaseModel):
    """User edits to a clause. Unset fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    plain_explanation: Optional[str] = None
    suggested_alternative: Optional[str] = None
    negotiation_script: Optional[str] = None
    risk_score: Optional[int] = Field(None, ge=0, le=100)
    risk_level: Optional[RiskLevel] = None
    category: Optional[ClauseCategory] = None
    is_flagged: Optional[bool] = None

    @field_validator("risk_score", "risk_level", "is_flagged")
    @classmethod
    def reject_explicit_null(cls, v):
        # Omit a field to keep it; null would leave the clause without a score or band
        if v is None:
            raise ValueError("may be omitted but not set to null")
        return v
