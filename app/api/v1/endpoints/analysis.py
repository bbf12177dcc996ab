"""Analysis function endpoint.

Every outcome is a JSON body: the validated analysis on 200, otherwise
``{"error": message}`` with 400, 401, 404, 409 or 500.
"""

from typing import Annotated, Optional

import pydantic
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from app.core.auth import get_optional_session
from app.core.exceptions import AnalysisInProgressError, AppError, ContractNotFoundError
from app.dependencies import get_contract_analyzer
from app.schemas.analysis import AnalysisErrorResponse, AnalysisResult, AnalyzeContractRequest
from app.schemas.auth import UserSession
from app.services.contract_analyzer import ContractAnalyzer
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=AnalysisErrorResponse(error=message).model_dump())


@router.post(
    "/analyze-contract",
    response_model=AnalysisResult,
    responses={
        400: {"model": AnalysisErrorResponse},
        401: {"model": AnalysisErrorResponse},
        404: {"model": AnalysisErrorResponse},
        409: {"model": AnalysisErrorResponse},
        500: {"model": AnalysisErrorResponse},
    },
    summary="Analyze a stored contract with the LLM",
    operation_id="run_contract_analysis",
)
async def analyze_contract(
    request: Request,
    session: Annotated[Optional[UserSession], Depends(get_optional_session)],
    analyzer: Annotated[ContractAnalyzer, Depends(get_contract_analyzer)],
):
    if session is None:
        return _error(status.HTTP_401_UNAUTHORIZED, "Unauthorized")

    try:
        body = AnalyzeContractRequest.model_validate(await request.json())
    except (ValueError, pydantic.ValidationError) as e:
        LOGGER.warning(f"Rejected analysis request body: {e}")
        return _error(
            status.HTTP_400_BAD_REQUEST,
            "Request body must be {\"contractId\": \"<uuid>\"} with an optional \"leaseId\"",
        )

    try:
        result = await analyzer.analyze(session, body.contract_id, body.lease_id)
    except ContractNotFoundError as e:
        return _error(status.HTTP_404_NOT_FOUND, e.message)
    except AnalysisInProgressError as e:
        return _error(status.HTTP_409_CONFLICT, e.message)
    except AppError as e:
        LOGGER.error(
            f"Analysis function failed: {e.message}",
            extra={"contract_id": str(body.contract_id), "error_type": type(e).__name__},
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, e.message)

    return JSONResponse(content=result.model_dump(mode="json"))
