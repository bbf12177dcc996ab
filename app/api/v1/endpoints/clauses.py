from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.v1.errors import to_http_exception
from app.core.auth import get_current_user
from app.core.exceptions import AppError
from app.dependencies import get_clause_service, get_user_agent
from app.schemas.auth import UserSession
from app.schemas.clauses import ClauseResponse, ClauseUpdate
from app.schemas.contracts import RiskBreakdown
from app.services.clause_service import ClauseService

router = APIRouter()

CurrentUser = Annotated[UserSession, Depends(get_current_user)]
Clauses = Annotated[ClauseService, Depends(get_clause_service)]


@router.get(
    "/{contract_id}/clauses",
    response_model=List[ClauseResponse],
    summary="List a contract's clauses",
    operation_id="list_contract_clauses",
)
async def list_clauses(contract_id: UUID, current_user: CurrentUser, clauses: Clauses) -> List[ClauseResponse]:
    """Ordered by clause number."""
    try:
        return await clauses.list_clauses(current_user, contract_id)
    except AppError as e:
        raise to_http_exception(e) from e


@router.patch(
    "/{contract_id}/clauses/{clause_id}",
    response_model=ClauseResponse,
    summary="Edit a clause",
    operation_id="update_contract_clause",
)
async def update_clause(
    contract_id: UUID,
    clause_id: UUID,
    changes: ClauseUpdate,
    current_user: CurrentUser,
    clauses: Clauses,
    user_agent: Annotated[Optional[str], Depends(get_user_agent)],
) -> ClauseResponse:
    try:
        return await clauses.update_clause(current_user, contract_id, clause_id, changes, user_agent)
    except AppError as e:
        raise to_http_exception(e) from e


@router.get(
    "/{contract_id}/risk-breakdown",
    response_model=RiskBreakdown,
    summary="Risk per clause category",
    operation_id="get_contract_risk_breakdown",
)
async def risk_breakdown(contract_id: UUID, current_user: CurrentUser, clauses: Clauses) -> RiskBreakdown:
    try:
        return await clauses.risk_breakdown(current_user, contract_id)
    except AppError as e:
        raise to_http_exception(e) from e
