"""Client side of the analysis pipeline.

Takes the per-contract lease, calls the remote analysis function over
HTTP with the caller's bearer token and the lease token, then records
the outcome in the audit trail and the query cache.
"""

from typing import Any, Dict, Optional
from uuid import UUID

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AnalysisFailedError,
    AnalysisInProgressError,
    AppError,
    ContractNotFoundError,
)
from app.database.enums import AnalysisStatus, AuditAction
from app.repositories.contract_repository import ContractRepository
from app.schemas.auth import UserSession
from app.services.audit_service import AuditService
from app.services.query_cache import QueryCache, query_cache
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class AnalysisClient:
    """Runs one analysis of a contract through the remote function."""

    def __init__(
        self,
        session: AsyncSession,
        cache: QueryCache = query_cache,
        function_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.contract_repo = ContractRepository(session)
        self.audit_service = AuditService(session, cache)
        self.cache = cache
        self.function_url = function_url or settings.analysis.function_url
        self.transport = transport

    async def analyze(
        self, user: UserSession, contract_id: UUID, user_agent: Optional[str] = None
    ) -> Dict[str, Any]:
        """Analyze a contract the caller owns.

        Returns:
            The validated analysis returned by the remote function

        Raises:
            ContractNotFoundError: Absent or not owned by the caller
            AnalysisInProgressError: Another analysis already holds the lease
            AnalysisFailedError: The remote function failed; the contract is now ``failed``
        """
        lease_id = await self._acquire_lease(user, contract_id)

        try:
            analysis = await self._invoke_remote(user, contract_id, lease_id)
        except AppError:
            await self.contract_repo.mark_failed(contract_id, lease_id)
            self.cache.invalidate(("contracts",), ("contract", contract_id))
            raise

        await self.audit_service.record(
            user,
            AuditAction.ANALYZE,
            contract_id=contract_id,
            details={"result_summary": analysis.get("executive_summary")},
            user_agent=user_agent,
        )
        self.cache.invalidate(("contracts",), ("contract", contract_id), ("clauses", contract_id))
        return analysis

    async def _acquire_lease(self, user: UserSession, contract_id: UUID) -> UUID:
        lease_id = await self.contract_repo.acquire_analysis_lease(contract_id, user.user_id)
        if lease_id is not None:
            self.cache.invalidate(("contracts",), ("contract", contract_id))
            return lease_id

        contract = await self.contract_repo.get_for_user(contract_id, user.user_id)
        if contract is None:
            raise ContractNotFoundError("Contract not found")
        LOGGER.info(
            f"Refusing concurrent analysis of contract {contract_id}",
            extra={"status": contract.analysis_status.value},
        )
        if contract.analysis_status == AnalysisStatus.ANALYZING:
            raise AnalysisInProgressError("Analysis already in progress")
        # Status changed between the swap and the read; treat as contention
        raise AnalysisInProgressError("Contract status changed concurrently, retry the analysis")

    async def _invoke_remote(self, user: UserSession, contract_id: UUID, lease_id: UUID) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=settings.analysis.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.function_url,
                    headers={"Authorization": f"Bearer {user.access_token}"},
                    json={"contractId": str(contract_id), "leaseId": str(lease_id)},
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Analysis function unreachable: {e}", exc_info=True)
            raise AnalysisFailedError(f"Analysis request failed: {e}", original_error=e) from e

        if response.status_code != 200:
            message = _error_message(response)
            LOGGER.warning(
                f"Analysis function returned {response.status_code}: {message}",
                extra={"contract_id": str(contract_id)},
            )
            raise AnalysisFailedError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise AnalysisFailedError("Analysis function returned invalid JSON", original_error=e) from e


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"Analysis failed with status {response.status_code}"
