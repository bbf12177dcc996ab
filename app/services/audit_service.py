"""Audit trail recording and listing."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.database.enums import AuditAction
from app.repositories.audit_repository import AuditRepository
from app.schemas.audit import AuditEntryResponse
from app.schemas.auth import UserSession
from app.services.query_cache import QueryCache, query_cache
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class AuditService:
    """Appends audit entries for the caller and lists them newest first."""

    def __init__(self, session: AsyncSession, cache: QueryCache = query_cache):
        self.audit_repo = AuditRepository(session)
        self.cache = cache

    async def record(
        self,
        user: UserSession,
        action: AuditAction,
        contract_id: Optional[UUID] = None,
        details: Optional[Dict[str, Any]] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> AuditEntryResponse:
        """Append one entry and invalidate every cached audit listing."""
        entry = await self.audit_repo.create(
            user_id=user.user_id,
            contract_id=contract_id,
            action=action,
            action_details=details or {},
            user_agent=user_agent,
            ip_address=ip_address,
        )
        self.cache.invalidate(("audit-trail",))
        LOGGER.info(
            f"Audit {action.value} recorded",
            extra={"user_id": str(user.user_id), "contract_id": str(contract_id) if contract_id else None},
        )
        return AuditEntryResponse.model_validate(entry)

    async def list_entries(
        self, user: UserSession, contract_id: Optional[UUID] = None
    ) -> List[AuditEntryResponse]:
        async def load() -> List[AuditEntryResponse]:
            entries = await self.audit_repo.list_for_user(user.user_id, contract_id)
            return [AuditEntryResponse.model_validate(entry) for entry in entries]

        return await self.cache.get_or_load(("audit-trail", contract_id, user.user_id), load)
