"""Repositories for shared contract templates and users' filled copies."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import ContractTemplate, UserTemplate
from app.repositories.base_repository import BaseRepository


class TemplateRepository(BaseRepository[ContractTemplate]):

    def __init__(self, session: AsyncSession):
        super().__init__(session, ContractTemplate)

    async def list_public(self) -> List[ContractTemplate]:
        """Public templates ordered by name."""
        query = (
            select(ContractTemplate)
            .where(ContractTemplate.is_public.is_(True))
            .order_by(ContractTemplate.name.asc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_visible(self, template_id: UUID, user_id: UUID) -> Optional[ContractTemplate]:
        """A template that is public or authored by ``user_id``."""
        query = select(ContractTemplate).where(
            ContractTemplate.id == template_id,
            or_(ContractTemplate.is_public.is_(True), ContractTemplate.created_by == user_id),
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()


class UserTemplateRepository(BaseRepository[UserTemplate]):

    def __init__(self, session: AsyncSession):
        super().__init__(session, UserTemplate)

    async def list_for_user(self, user_id: UUID) -> List[UserTemplate]:
        """A user's saved templates, newest first."""
        query = (
            select(UserTemplate)
            .where(UserTemplate.user_id == user_id)
            .order_by(UserTemplate.created_at.desc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())
