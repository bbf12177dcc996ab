"""Database module for SQLAlchemy models and enumerations."""

from app.database.enums import (
    AnalysisStatus,
    AuditAction,
    ClauseCategory,
    ContractType,
    RiskLevel,
    risk_level_for_score,
)
from app.database.models import (
    AuditEntry,
    Clause,
    Contract,
    ContractTemplate,
    GlossaryTerm,
    UserTemplate,
)

__all__ = [
    "AnalysisStatus",
    "AuditAction",
    "ClauseCategory",
    "ContractType",
    "RiskLevel",
    "risk_level_for_score",
    "AuditEntry",
    "Clause",
    "Contract",
    "ContractTemplate",
    "GlossaryTerm",
    "UserTemplate",
]
