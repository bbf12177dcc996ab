from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import GlossaryTerm
from app.repositories.base_repository import BaseRepository


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class GlossaryRepository(BaseRepository[GlossaryTerm]):

    def __init__(self, session: AsyncSession):
        super().__init__(session, GlossaryTerm)

    async def search(self, text: Optional[str] = None) -> List[GlossaryTerm]:
        """Terms ordered alphabetically, optionally filtered by a
        case-insensitive substring of the term or its English definition."""
        query = select(GlossaryTerm)
        if text:
            pattern = f"%{_escape_like(text)}%"
            query = query.where(
                or_(
                    GlossaryTerm.term.ilike(pattern, escape="\\"),
                    GlossaryTerm.definition_en.ilike(pattern, escape="\\"),
                )
            )
        query = query.order_by(GlossaryTerm.term.asc())
        result = await self.session.execute(query)
        return list(result.scalars().all())
