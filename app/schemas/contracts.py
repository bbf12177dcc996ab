"""Request and response models for contracts."""

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.database.enums import AnalysisStatus, ClauseCategory, ContractType, RiskLevel
from app.schemas.clauses import ClauseResponse


class Party(BaseModel):
    name: str = Field(..., description="Party name as written in the contract")
    role: str = Field(..., description="Role of the party, e.g. employer or vendor")


class ContractResponse(BaseModel):
    """Contract row as returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    file_name: str
    file_path: str
    file_size: Optional[int] = None
    contract_type: Optional[ContractType] = None
    language: Optional[str] = None
    parties: List[Party] = Field(default_factory=list)
    effective_date: Optional[date] = None
    expiry_date: Optional[date] = None
    jurisdiction: Optional[str] = None
    composite_risk_score: Optional[int] = None
    risk_level: Optional[RiskLevel] = None
    executive_summary: Optional[str] = None
    analysis_status: AnalysisStatus
    analyzed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ContractUpdate(BaseModel):
    """Editable contract metadata. Unset fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    file_name: Optional[str] = Field(None, min_length=1)
    contract_type: Optional[ContractType] = None
    language: Optional[str] = None
    parties: Optional[List[Party]] = None
    effective_date: Optional[date] = None
    expiry_date: Optional[date] = None
    jurisdiction: Optional[str] = None
    executive_summary: Optional[str] = None


class UploadResponse(BaseModel):
    """Result of the upload orchestrator."""

    contract: ContractResponse
    analysis_error: Optional[str] = Field(
        None, description="Set when the upload succeeded but analysis failed"
    )


class CategoryRisk(BaseModel):
    """Aggregated risk for one clause category."""

    category: ClauseCategory
    clause_count: int
    average_score: float
    max_score: int
    risk_level: RiskLevel
    flagged_count: int


class RiskBreakdown(BaseModel):
    contract_id: UUID
    composite_risk_score: Optional[int] = None
    risk_level: Optional[RiskLevel] = None
    categories: List[CategoryRisk] = Field(default_factory=list)


class ContractReport(BaseModel):
    """Exportable snapshot of a contract and its clauses."""

    contract: ContractResponse
    clauses: List[ClauseResponse] = Field(default_factory=list)
    generated_at: datetime


ExportFormat = Literal["json", "txt"]


class FileUrlResponse(BaseModel):
    signed_url: str
    storage_path: str
    expires_in: int


class DeleteResponse(BaseModel):
    id: UUID
    deleted: bool = True
    details: Dict[str, Any] = Field(default_factory=dict)
