"""Request and response models for contract templates."""

from datetime import datetime
from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.database.enums import ContractType


class TemplateVariable(BaseModel):
    name: str = Field(..., pattern=r"^\w+$")
    label: str
    type: Literal["text", "textarea", "number", "date"] = "text"


class TemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str] = None
    contract_type: ContractType
    content: str
    variables: List[TemplateVariable] = Field(default_factory=list)
    risk_posture: Optional[str] = None
    is_public: bool
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    contract_type: ContractType
    content: str = Field(..., min_length=1)
    variables: List[TemplateVariable] = Field(default_factory=list)
    risk_posture: Optional[str] = None
    is_public: bool = True


class TemplateCustomizeRequest(BaseModel):
    """Values for the template's ``{{placeholders}}``."""

    values: Dict[str, str] = Field(default_factory=dict)
    name: Optional[str] = Field(None, description="Defaults to '<template name> - Custom'")


class UserTemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    template_id: Optional[UUID] = None
    name: str
    content: str
    variables_filled: Dict[str, str] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime
