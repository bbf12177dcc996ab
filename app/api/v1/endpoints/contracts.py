from typing import Annotated, Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import JSONResponse, PlainTextResponse

from app.api.v1.errors import to_http_exception
from app.core.auth import get_current_user
from app.core.exceptions import AppError
from app.dependencies import (
    get_analysis_client,
    get_contract_service,
    get_upload_service,
    get_user_agent,
)
from app.schemas.auth import UserSession
from app.schemas.contracts import (
    ContractResponse,
    ContractUpdate,
    DeleteResponse,
    ExportFormat,
    FileUrlResponse,
    UploadResponse,
)
from app.services.analysis_client import AnalysisClient
from app.services.contract_service import ContractService, render_report_text
from app.services.upload_service import UploadService
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()

CurrentUser = Annotated[UserSession, Depends(get_current_user)]
Contracts = Annotated[ContractService, Depends(get_contract_service)]
UserAgent = Annotated[Optional[str], Depends(get_user_agent)]


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a contract and analyze it",
    operation_id="upload_contract",
)
async def upload_contract(
    current_user: CurrentUser,
    upload_service: Annotated[UploadService, Depends(get_upload_service)],
    user_agent: UserAgent,
    file: List[UploadFile] = File(..., description="Exactly one PDF, DOC, DOCX or text file"),
) -> UploadResponse:
    """Store the file, create the contract and run the first analysis.

    The upload succeeds even when the analysis fails; ``analysis_error``
    then carries the reason and the contract is ``failed``.
    """
    if len(file) != 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Upload exactly one file",
        )

    upload = file[0]
    content = await upload.read()
    try:
        return await upload_service.upload_contract(
            current_user,
            file_name=upload.filename,
            content_type=upload.content_type,
            content=content,
            user_agent=user_agent,
        )
    except AppError as e:
        raise to_http_exception(e) from e


@router.get(
    "",
    response_model=List[ContractResponse],
    summary="List the caller's contracts",
    operation_id="list_contracts",
)
async def list_contracts(current_user: CurrentUser, contracts: Contracts) -> List[ContractResponse]:
    """Newest first."""
    return await contracts.list_contracts(current_user)


@router.get(
    "/{contract_id}",
    response_model=ContractResponse,
    summary="Get a contract",
    operation_id="get_contract",
)
async def get_contract(contract_id: UUID, current_user: CurrentUser, contracts: Contracts) -> ContractResponse:
    try:
        return await contracts.get_contract(current_user, contract_id)
    except AppError as e:
        raise to_http_exception(e) from e


@router.patch(
    "/{contract_id}",
    response_model=ContractResponse,
    summary="Update contract metadata",
    operation_id="update_contract",
)
async def update_contract(
    contract_id: UUID,
    changes: ContractUpdate,
    current_user: CurrentUser,
    contracts: Contracts,
) -> ContractResponse:
    try:
        return await contracts.update_contract(current_user, contract_id, changes)
    except AppError as e:
        raise to_http_exception(e) from e


@router.delete(
    "/{contract_id}",
    response_model=DeleteResponse,
    summary="Delete a contract with its clauses and file",
    operation_id="delete_contract",
)
async def delete_contract(contract_id: UUID, current_user: CurrentUser, contracts: Contracts) -> DeleteResponse:
    try:
        clause_count = await contracts.delete_contract(current_user, contract_id)
    except AppError as e:
        raise to_http_exception(e) from e
    return DeleteResponse(id=contract_id, details={"clauses_deleted": clause_count})


@router.post(
    "/{contract_id}/analyze",
    summary="Re-run the analysis of a contract",
    operation_id="analyze_contract",
)
async def analyze_contract(
    contract_id: UUID,
    current_user: CurrentUser,
    analysis_client: Annotated[AnalysisClient, Depends(get_analysis_client)],
    user_agent: UserAgent,
) -> Dict[str, Any]:
    """Returns the analysis; 409 while another analysis of the contract runs."""
    try:
        return await analysis_client.analyze(current_user, contract_id, user_agent=user_agent)
    except AppError as e:
        raise to_http_exception(e) from e


@router.get(
    "/{contract_id}/export",
    summary="Export the analysis report",
    operation_id="export_contract_report",
)
async def export_contract(
    contract_id: UUID,
    current_user: CurrentUser,
    contracts: Contracts,
    user_agent: UserAgent,
    export_format: ExportFormat = Query("json", alias="format"),
):
    try:
        report = await contracts.export_report(current_user, contract_id, export_format, user_agent)
    except AppError as e:
        raise to_http_exception(e) from e

    stem = report.contract.file_name.rsplit(".", 1)[0] or "contract"
    if export_format == "txt":
        return PlainTextResponse(
            render_report_text(report),
            headers={"Content-Disposition": f'attachment; filename="{stem}-report.txt"'},
        )
    return JSONResponse(
        report.model_dump(mode="json"),
        headers={"Content-Disposition": f'attachment; filename="{stem}-report.json"'},
    )


@router.get(
    "/{contract_id}/file-url",
    response_model=FileUrlResponse,
    summary="Signed download URL for the stored file",
    operation_id="get_contract_file_url",
)
async def get_file_url(
    contract_id: UUID,
    current_user: CurrentUser,
    contracts: Contracts,
    expires_in: int = Query(3600, ge=60, le=7 * 24 * 3600),
) -> FileUrlResponse:
    try:
        return FileUrlResponse(**await contracts.create_file_url(current_user, contract_id, expires_in))
    except AppError as e:
        raise to_http_exception(e) from e
