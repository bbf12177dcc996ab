"""Append-only access to the audit trail."""

from typing import List, NoReturn, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DatabaseError
from app.database.models import AuditEntry
from app.repositories.base_repository import BaseRepository


class AuditRepository(BaseRepository[AuditEntry]):
    """Audit entries can be created and read, never changed."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, AuditEntry)

    async def list_for_user(self, user_id: UUID, contract_id: Optional[UUID] = None) -> List[AuditEntry]:
        """A user's entries, newest first, optionally for one contract."""
        query = select(AuditEntry).where(AuditEntry.user_id == user_id)
        if contract_id is not None:
            query = query.where(AuditEntry.contract_id == contract_id)
        query = query.order_by(AuditEntry.created_at.desc())
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def update(self, instance: AuditEntry, **kwargs) -> NoReturn:
        raise DatabaseError("Audit trail is append-only: entries cannot be updated")

    async def delete(self, instance: AuditEntry) -> NoReturn:
        raise DatabaseError("Audit trail is append-only: entries cannot be deleted")
