"""Single-file contract upload followed by an immediate analysis."""

import time
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import AppError, UnsupportedFileError
from app.database.enums import AuditAction
from app.schemas.auth import UserSession
from app.schemas.contracts import UploadResponse
from app.services.analysis_client import AnalysisClient
from app.services.audit_service import AuditService
from app.services.base_service import BaseService
from app.services.contract_service import ContractService
from app.services.query_cache import QueryCache, query_cache
from app.services.storage_service import StorageService


def build_storage_path(user_id, file_name: str) -> str:
    """Per-user path namespaced by the upload time in milliseconds."""
    return f"{user_id}/{int(time.time() * 1000)}_{file_name}"


class UploadService(BaseService):
    """Stores the file, creates the contract row, audits, then analyzes.

    A failed analysis does not fail the upload: the contract stays, in
    ``failed`` status, and the error is returned next to it.
    """

    def __init__(
        self,
        session: AsyncSession,
        storage: Optional[StorageService] = None,
        cache: QueryCache = query_cache,
        analysis_client: Optional[AnalysisClient] = None,
    ):
        super().__init__(session)
        self.storage = storage or StorageService()
        self.contract_service = ContractService(session, cache, storage=self.storage)
        self.audit_service = AuditService(session, cache)
        self.analysis_client = analysis_client or AnalysisClient(session, cache)

    async def upload_contract(
        self,
        user: UserSession,
        file_name: str,
        content_type: Optional[str],
        content: bytes,
        user_agent: Optional[str] = None,
    ) -> UploadResponse:
        return await self.execute(user, file_name, content_type, content, user_agent)

    def validate(self, user, file_name, content_type, content, user_agent=None) -> None:
        """Reject disallowed types and sizes before any network call.

        Raises:
            UnsupportedFileError: Wrong MIME type, empty file or over the size limit
        """
        limits = settings.analysis
        if not file_name:
            raise UnsupportedFileError("A file name is required")
        if content_type not in limits.allowed_mime_types:
            raise UnsupportedFileError(
                f"Unsupported file type '{content_type}'. Upload a PDF, DOC, DOCX or plain text file"
            )
        if not content:
            raise UnsupportedFileError("The uploaded file is empty")
        if len(content) > limits.max_upload_bytes:
            raise UnsupportedFileError(
                f"File is {len(content)} bytes; the limit is {limits.max_upload_bytes} bytes"
            )

    async def run(self, user, file_name, content_type, content, user_agent=None) -> UploadResponse:
        path = await self.storage.upload_bytes(
            build_storage_path(user.user_id, file_name), content, content_type
        )

        try:
            contract = await self.contract_service.create_contract(
                user, file_name=file_name, file_path=path, file_size=len(content)
            )
        except Exception:
            self.logger.error(f"Contract row creation failed; stored file {path} left orphaned")
            raise

        await self.audit_service.record(
            user,
            AuditAction.UPLOAD,
            contract_id=contract.id,
            details={"file_name": file_name, "file_size": len(content)},
            user_agent=user_agent,
        )

        analysis_error = None
        try:
            await self.analysis_client.analyze(user, contract.id, user_agent=user_agent)
        except AppError as e:
            self.logger.warning(f"Analysis of uploaded contract {contract.id} failed: {e.message}")
            analysis_error = e.message

        contract = await self.contract_service.get_contract(user, contract.id)
        return UploadResponse(contract=contract, analysis_error=analysis_error)
