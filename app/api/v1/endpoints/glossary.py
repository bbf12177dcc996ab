from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query

from app.core.auth import get_current_user
from app.dependencies import get_glossary_service
from app.schemas.auth import UserSession
from app.schemas.glossary import GlossaryTermResponse
from app.services.glossary_service import GlossaryService

router = APIRouter()


@router.get(
    "",
    response_model=List[GlossaryTermResponse],
    summary="Search legal glossary terms",
    operation_id="search_glossary",
)
async def search_glossary(
    current_user: Annotated[UserSession, Depends(get_current_user)],
    glossary: Annotated[GlossaryService, Depends(get_glossary_service)],
    search: Optional[str] = Query(None, max_length=200, description="Matches term or English definition"),
) -> List[GlossaryTermResponse]:
    return await glossary.search(search)
