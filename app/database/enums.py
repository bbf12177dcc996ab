"""Closed enumerations shared by models, schemas and services."""

from enum import Enum


class ContractType(str, Enum):
    EMPLOYMENT_AGREEMENT = "employment_agreement"
    VENDOR_CONTRACT = "vendor_contract"
    LEASE_AGREEMENT = "lease_agreement"
    PARTNERSHIP_DEED = "partnership_deed"
    SERVICE_CONTRACT = "service_contract"
    OTHER = "other"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ClauseCategory(str, Enum):
    OBLIGATIONS = "obligations"
    RIGHTS = "rights"
    PROHIBITIONS = "prohibitions"
    TERMINATION = "termination"
    INDEMNITY = "indemnity"
    LIABILITY = "liability"
    CONFIDENTIALITY = "confidentiality"
    IP_TRANSFER = "ip_transfer"
    NON_COMPETE = "non_compete"
    AUTO_RENEWAL = "auto_renewal"
    PAYMENT = "payment"
    DISPUTE_RESOLUTION = "dispute_resolution"
    OTHER = "other"


class AuditAction(str, Enum):
    UPLOAD = "upload"
    ANALYZE = "analyze"
    EXPORT = "export"
    TEMPLATE_GENERATED = "template_generated"
    CLAUSE_EDITED = "clause_edited"
    VERSION_CREATED = "version_created"


class AnalysisStatus(str, Enum):
    PENDING = "pending"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"


# States from which a new analysis may take the lease
LEASABLE_STATUSES = (AnalysisStatus.PENDING, AnalysisStatus.FAILED, AnalysisStatus.COMPLETED)

RISK_BANDS = (
    (25, RiskLevel.LOW),
    (50, RiskLevel.MEDIUM),
    (75, RiskLevel.HIGH),
    (100, RiskLevel.CRITICAL),
)


def risk_level_for_score(score: int) -> RiskLevel:
    """Map a 0-100 risk score onto its band."""
    for upper, level in RISK_BANDS:
        if score <= upper:
            return level
    return RiskLevel.CRITICAL
