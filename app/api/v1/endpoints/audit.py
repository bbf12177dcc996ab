from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from app.api.v1.errors import to_http_exception
from app.core.auth import get_current_user
from app.core.exceptions import AppError
from app.dependencies import get_audit_service, get_contract_service
from app.schemas.audit import AuditEntryCreate, AuditEntryResponse
from app.schemas.auth import UserSession
from app.services.audit_service import AuditService
from app.services.contract_service import ContractService

router = APIRouter()

CurrentUser = Annotated[UserSession, Depends(get_current_user)]
Audit = Annotated[AuditService, Depends(get_audit_service)]


@router.get(
    "",
    response_model=List[AuditEntryResponse],
    summary="List the caller's audit trail",
    operation_id="list_audit_trail",
)
async def list_audit_trail(
    current_user: CurrentUser,
    audit: Audit,
    contract_id: Optional[UUID] = Query(None, description="Only entries for this contract"),
) -> List[AuditEntryResponse]:
    """Newest first."""
    return await audit.list_entries(current_user, contract_id)


@router.post(
    "",
    response_model=AuditEntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record an audit entry",
    operation_id="create_audit_entry",
)
async def create_audit_entry(
    entry: AuditEntryCreate,
    request: Request,
    current_user: CurrentUser,
    audit: Audit,
    contracts: Annotated[ContractService, Depends(get_contract_service)],
) -> AuditEntryResponse:
    """Append an entry; a referenced contract must belong to the caller."""
    try:
        if entry.contract_id is not None:
            await contracts.get_contract(current_user, entry.contract_id)
        return await audit.record(
            current_user,
            entry.action,
            contract_id=entry.contract_id,
            details=entry.action_details,
            user_agent=request.headers.get("user-agent"),
            ip_address=request.client.host if request.client else None,
        )
    except AppError as e:
        raise to_http_exception(e) from e
