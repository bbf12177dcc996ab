from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class GlossaryTermResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    term: str
    definition_en: str
    definition_hi: Optional[str] = None
    example_usage: Optional[str] = None
    category: Optional[str] = None
    created_at: datetime
