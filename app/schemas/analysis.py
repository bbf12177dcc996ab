"""Schemas for the contract analysis function and its LLM output.

The model reply is untrusted. ``AnalysisResult.from_llm_payload`` is the
only way a parsed reply reaches persistence: enum fields are checked
against their closed sets, scores are range-checked, dates must be ISO
and clauses are renumbered 1..M in reply order.
"""

from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError as PydanticValidationError,
    field_validator,
    model_validator,
)

from app.core.exceptions import AnalysisValidationError
from app.database.enums import ClauseCategory, ContractType, RiskLevel, risk_level_for_score
from app.schemas.clauses import ComplianceFlag
from app.schemas.contracts import Party

_NULL_DATES = {"", "null", "none", "n/a", "na", "not specified", "unknown"}


def _coerce_score(value: Any) -> Any:
    """Accept 42, 42.0, 41.6 and "42"; leave anything else for pydantic to reject."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return int(round(value))
    if isinstance(value, str):
        try:
            return int(round(float(value.strip())))
        except ValueError:
            return value
    return value


def _lenient_enum(value: Any, enum_cls, default):
    if isinstance(value, str):
        normalized = value.strip().lower().replace(" ", "_").replace("-", "_")
        try:
            return enum_cls(normalized)
        except ValueError:
            return default
    if value is None:
        return default
    return value


class AnalyzedClause(BaseModel):
    """A single clause as returned by the model."""

    model_config = ConfigDict(extra="ignore")

    clause_number: Optional[int] = None
    original_text: str = Field(..., min_length=1)
    plain_explanation: Optional[str] = None
    risk_rationale: Optional[str] = None
    risk_score: int = Field(..., ge=0, le=100)
    risk_level: Optional[RiskLevel] = None
    category: ClauseCategory = ClauseCategory.OTHER
    suggested_alternative: Optional[str] = None
    negotiation_script: Optional[str] = None
    compliance_flags: List[ComplianceFlag] = Field(default_factory=list)

    @field_validator("clause_number", mode="before")
    @classmethod
    def ignore_unusable_number(cls, value: Any) -> Any:
        # Replaced by the reply position anyway
        return value if isinstance(value, int) and not isinstance(value, bool) else None

    @field_validator("risk_score", mode="before")
    @classmethod
    def coerce_risk_score(cls, value: Any) -> Any:
        return _coerce_score(value)

    @field_validator("risk_level", mode="before")
    @classmethod
    def drop_unknown_risk_level(cls, value: Any) -> Any:
        return _lenient_enum(value, RiskLevel, None)

    @field_validator("category", mode="before")
    @classmethod
    def default_unknown_category(cls, value: Any) -> Any:
        return _lenient_enum(value, ClauseCategory, ClauseCategory.OTHER)

    @field_validator("compliance_flags", mode="before")
    @classmethod
    def null_flags_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def fill_risk_level(self) -> "AnalyzedClause":
        if self.risk_level is None:
            self.risk_level = risk_level_for_score(self.risk_score)
        return self


class AnalysisResult(BaseModel):
    """Validated analysis of one contract."""

    model_config = ConfigDict(extra="ignore")

    contract_type: ContractType = ContractType.OTHER
    parties: List[Party] = Field(default_factory=list)
    jurisdiction: Optional[str] = None
    effective_date: Optional[date] = None
    expiry_date: Optional[date] = None
    composite_risk_score: int = Field(..., ge=0, le=100)
    risk_level: Optional[RiskLevel] = None
    executive_summary: str = ""
    clauses: List[AnalyzedClause] = Field(default_factory=list)

    @field_validator("contract_type", mode="before")
    @classmethod
    def default_unknown_contract_type(cls, value: Any) -> Any:
        return _lenient_enum(value, ContractType, ContractType.OTHER)

    @field_validator("composite_risk_score", mode="before")
    @classmethod
    def coerce_composite_score(cls, value: Any) -> Any:
        return _coerce_score(value)

    @field_validator("risk_level", mode="before")
    @classmethod
    def drop_unknown_risk_level(cls, value: Any) -> Any:
        return _lenient_enum(value, RiskLevel, None)

    @field_validator("effective_date", "expiry_date", mode="before")
    @classmethod
    def null_like_dates(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in _NULL_DATES:
            return None
        return value

    @field_validator("parties", "clauses", mode="before")
    @classmethod
    def null_lists_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("executive_summary", mode="before")
    @classmethod
    def null_summary_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @model_validator(mode="after")
    def normalize(self) -> "AnalysisResult":
        if self.risk_level is None:
            self.risk_level = risk_level_for_score(self.composite_risk_score)
        for number, clause in enumerate(self.clauses, start=1):
            clause.clause_number = number
        return self

    @classmethod
    def from_llm_payload(cls, payload: Any) -> "AnalysisResult":
        """Validate a parsed model reply.

        Raises:
            AnalysisValidationError: If the payload violates the schema
        """
        if not isinstance(payload, dict):
            raise AnalysisValidationError(
                f"Analysis must be a JSON object, got {type(payload).__name__}"
            )
        try:
            return cls.model_validate(payload)
        except PydanticValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()[:5]
            )
            raise AnalysisValidationError(f"Invalid analysis output: {problems}", original_error=e) from e

    def contract_fields(self) -> Dict[str, Any]:
        """Columns written onto the contract row."""
        return {
            "contract_type": self.contract_type,
            "parties": [party.model_dump() for party in self.parties],
            "jurisdiction": self.jurisdiction,
            "effective_date": self.effective_date,
            "expiry_date": self.expiry_date,
            "composite_risk_score": self.composite_risk_score,
            "risk_level": self.risk_level,
            "executive_summary": self.executive_summary,
        }

    def clause_rows(self) -> List[Dict[str, Any]]:
        """Clause rows ready for insertion, without ``contract_id``."""
        return [
            {
                "clause_number": clause.clause_number,
                "original_text": clause.original_text,
                "plain_explanation": clause.plain_explanation,
                "risk_rationale": clause.risk_rationale,
                "risk_score": clause.risk_score,
                "risk_level": clause.risk_level,
                "category": clause.category,
                "suggested_alternative": clause.suggested_alternative,
                "negotiation_script": clause.negotiation_script,
                "compliance_flags": [flag.model_dump(mode="json") for flag in clause.compliance_flags],
            }
            for clause in self.clauses
        ]


class AnalyzeContractRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    contract_id: UUID = Field(..., alias="contractId")
    lease_id: Optional[UUID] = Field(None, alias="leaseId")


class AnalysisErrorResponse(BaseModel):
    error: str
