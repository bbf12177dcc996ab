"""Translation of domain errors into HTTP responses."""

from fastapi import HTTPException, status

from app.core.exceptions import (
    AnalysisFailedError,
    AnalysisInProgressError,
    AppError,
    ClauseNotFoundError,
    ContractNotFoundError,
    StorageError,
    TemplateNotFoundError,
    ValidationError,
)
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

_STATUS_BY_ERROR = (
    (ContractNotFoundError, status.HTTP_404_NOT_FOUND),
    (ClauseNotFoundError, status.HTTP_404_NOT_FOUND),
    (TemplateNotFoundError, status.HTTP_404_NOT_FOUND),
    (AnalysisInProgressError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (StorageError, status.HTTP_502_BAD_GATEWAY),
    (AnalysisFailedError, status.HTTP_502_BAD_GATEWAY),
)


def status_for(error: AppError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def to_http_exception(error: AppError) -> HTTPException:
    """HTTPException carrying the error message as ``detail``."""
    status_code = status_for(error)
    if status_code >= 500:
        LOGGER.error(
            f"Request failed: {error.message}",
            extra={"error_type": type(error).__name__, "status_code": status_code},
        )
    else:
        LOGGER.warning(f"Request rejected: {error.message}", extra={"status_code": status_code})
    return HTTPException(status_code=status_code, detail=error.message)
