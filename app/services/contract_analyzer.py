"""Server-side contract analysis: storage read, one LLM call, validated persist.

Status transitions owned here:

- ``pending|failed|completed -> analyzing`` when the caller brings no lease
  token; a caller that brings one must match the token stored with the
  lease,
- ``analyzing -> completed`` together with the clause replacement, in one
  transaction,
- ``analyzing -> failed`` on any error after the lease is held.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AnalysisError,
    AnalysisInProgressError,
    ContractNotFoundError,
)
from app.core.llm_client import UnifiedLLMClient, create_llm_client_from_settings
from app.database.enums import AnalysisStatus
from app.prompts.system_prompts import CONTRACT_ANALYSIS_PROMPT, build_analysis_user_message
from app.repositories.clause_repository import ClauseRepository
from app.repositories.contract_repository import ContractRepository
from app.schemas.analysis import AnalysisResult
from app.schemas.auth import UserSession
from app.services.base_service import BaseService
from app.services.query_cache import QueryCache, query_cache
from app.services.storage_service import StorageService
from app.utils.json_extraction import extract_json_object
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ContractAnalyzer(BaseService):
    """Analyzes one contract end to end for its owner."""

    def __init__(
        self,
        session: AsyncSession,
        storage: Optional[StorageService] = None,
        llm_client: Optional[UnifiedLLMClient] = None,
        cache: QueryCache = query_cache,
        max_document_chars: Optional[int] = None,
    ):
        super().__init__(session)
        self.contract_repo = ContractRepository(session)
        self.clause_repo = ClauseRepository(session)
        self.storage = storage or StorageService()
        self._llm_client = llm_client
        self.cache = cache
        self.max_document_chars = max_document_chars or settings.max_document_chars

    @property
    def llm_client(self) -> UnifiedLLMClient:
        if self._llm_client is None:
            self._llm_client = create_llm_client_from_settings(settings)
        return self._llm_client

    async def analyze(
        self, user: UserSession, contract_id: UUID, lease_id: Optional[UUID] = None
    ) -> AnalysisResult:
        return await self.execute(user, contract_id, lease_id)

    async def run(
        self, user: UserSession, contract_id: UUID, lease_id: Optional[UUID] = None
    ) -> AnalysisResult:
        """Analyze ``contract_id`` on behalf of ``user``.

        ``lease_id`` is the token returned when the caller took the lease
        itself; without one this run takes its own lease.

        Raises:
            ContractNotFoundError: Absent or not owned by the caller
            AnalysisInProgressError: Another analysis holds the lease, or
                ``lease_id`` does not match it
            StorageError, APIClientError, AnalysisError: Terminal failures;
                the contract is left ``failed``
        """
        contract = await self.contract_repo.get_for_user(contract_id, user.user_id)
        if contract is None:
            raise ContractNotFoundError("Contract not found")

        if lease_id is None:
            lease_id = await self.contract_repo.acquire_analysis_lease(contract_id, user.user_id)
            if lease_id is None:
                raise AnalysisInProgressError("Analysis already in progress")
        elif contract.analysis_status != AnalysisStatus.ANALYZING or contract.analysis_lease_id != lease_id:
            raise AnalysisInProgressError("Analysis lease is not held by this request")

        file_path = contract.file_path
        try:
            text = await self.storage.download_text(file_path)
            reply = await self.llm_client.generate_content(
                contents=build_analysis_user_message(text, self.max_document_chars),
                system_instruction=CONTRACT_ANALYSIS_PROMPT,
                generation_config={"temperature": settings.analysis.temperature},
            )
            result = AnalysisResult.from_llm_payload(extract_json_object(reply))
            await self._persist(contract_id, lease_id, result)

        except Exception as e:
            LOGGER.error(
                f"Analysis failed for contract {contract_id}: {e}",
                extra={"contract_id": str(contract_id), "error_type": type(e).__name__},
            )
            await self.contract_repo.mark_failed(contract_id, lease_id)
            self._invalidate(contract_id)
            raise

        self._invalidate(contract_id)
        LOGGER.info(
            f"Analysis completed for contract {contract_id}",
            extra={
                "contract_id": str(contract_id),
                "clause_count": len(result.clauses),
                "composite_risk_score": result.composite_risk_score,
            },
        )
        return result

    async def _persist(self, contract_id: UUID, lease_id: UUID, result: AnalysisResult) -> None:
        """Write metadata, completed status and the clause set atomically."""
        try:
            if not await self.contract_repo.apply_analysis(contract_id, lease_id, result.contract_fields()):
                raise AnalysisError("Analysis lease was lost before results were saved")
            await self.clause_repo.replace_for_contract(contract_id, result.clause_rows())
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    def _invalidate(self, contract_id: UUID) -> None:
        self.cache.invalidate(("contracts",), ("contract", contract_id), ("clauses", contract_id))
