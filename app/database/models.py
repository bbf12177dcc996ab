"""SQLAlchemy models for all database tables."""

import uuid
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.database.enums import (
    AnalysisStatus,
    AuditAction,
    ClauseCategory,
    ContractType,
    RiskLevel,
)

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum(enum_cls, name: str) -> SAEnum:
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


# Shared so Postgres creates each enum type once
CONTRACT_TYPE = _enum(ContractType, "contract_type")
RISK_LEVEL = _enum(RiskLevel, "risk_level")


class Contract(Base):
    """An uploaded contract and its analysis summary."""

    __tablename__ = "contracts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    file_name: Mapped[str] = mapped_column(String, nullable=False)
    file_path: Mapped[str] = mapped_column(String, nullable=False)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)

    contract_type: Mapped[ContractType | None] = mapped_column(
        CONTRACT_TYPE, nullable=True
    )
    language: Mapped[str | None] = mapped_column(String, nullable=True, default="en")
    parties: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    effective_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    jurisdiction: Mapped[str | None] = mapped_column(String, nullable=True)

    composite_risk_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    risk_level: Mapped[RiskLevel | None] = mapped_column(RISK_LEVEL, nullable=True)
    executive_summary: Mapped[str | None] = mapped_column(Text, nullable=True)

    analysis_status: Mapped[AnalysisStatus] = mapped_column(
        _enum(AnalysisStatus, "analysis_status"),
        nullable=False,
        default=AnalysisStatus.PENDING,
    )
    # Token of the current analysis run; set with the lease, cleared when it ends
    analysis_lease_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    analyzed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    clauses: Mapped[list["Clause"]] = relationship(
        "Clause",
        back_populates="contract",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Clause.clause_number",
    )

    __table_args__ = (
        Index("ix_contracts_user_created", "user_id", "created_at"),
        CheckConstraint("composite_risk_score BETWEEN 0 AND 100", name="ck_contracts_risk_score"),
    )


class Clause(Base):
    """One analyzed clause of a contract."""

    __tablename__ = "clauses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    contract_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    clause_number: Mapped[int] = mapped_column(Integer, nullable=False)
    original_text: Mapped[str] = mapped_column(Text, nullable=False)
    plain_explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    risk_rationale: Mapped[str | None] = mapped_column(Text, nullable=True)
    risk_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    risk_level: Mapped[RiskLevel | None] = mapped_column(RISK_LEVEL, nullable=True)
    category: Mapped[ClauseCategory | None] = mapped_column(
        _enum(ClauseCategory, "clause_category"), nullable=True
    )
    suggested_alternative: Mapped[str | None] = mapped_column(Text, nullable=True)
    negotiation_script: Mapped[str | None] = mapped_column(Text, nullable=True)
    compliance_flags: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    similarity_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_flagged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    contract: Mapped["Contract"] = relationship("Contract", back_populates="clauses")

    __table_args__ = (
        UniqueConstraint("contract_id", "clause_number", name="uq_clauses_contract_number"),
        CheckConstraint("risk_score BETWEEN 0 AND 100", name="ck_clauses_risk_score"),
    )


class ContractTemplate(Base):
    """A fill-in-the-blanks contract template."""

    __tablename__ = "contract_templates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    contract_type: Mapped[ContractType] = mapped_column(CONTRACT_TYPE, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    variables: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    risk_posture: Mapped[str | None] = mapped_column(String, nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )


class UserTemplate(Base):
    """A user's filled copy of a template."""

    __tablename__ = "user_templates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    template_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("contract_templates.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    variables_filled: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )


class GlossaryTerm(Base):
    """Bilingual legal glossary entry."""

    __tablename__ = "glossary_terms"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    term: Mapped[str] = mapped_column(String, nullable=False, index=True)
    definition_en: Mapped[str] = mapped_column(Text, nullable=False)
    definition_hi: Mapped[str | None] = mapped_column(Text, nullable=True)
    example_usage: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )


class AuditEntry(Base):
    """Append-only record of a user action."""

    __tablename__ = "audit_trail"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    contract_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("contracts.id", ondelete="SET NULL"), nullable=True, index=True
    )
    action: Mapped[AuditAction] = mapped_column(_enum(AuditAction, "audit_action"), nullable=False)
    action_details: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    ip_address: Mapped[str | None] = mapped_column(String, nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
