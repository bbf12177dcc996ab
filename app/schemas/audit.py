"""Audit trail models."""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.database.enums import AuditAction


class AuditEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    contract_id: Optional[UUID] = None
    action: AuditAction
    action_details: Dict[str, Any] = Field(default_factory=dict)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime


class AuditEntryCreate(BaseModel):
    """Client-recorded audit event, e.g. a ``version_created`` marker."""

    model_config = ConfigDict(extra="forbid")

    action: AuditAction
    contract_id: Optional[UUID] = None
    action_details: Dict[str, Any] = Field(default_factory=dict)
