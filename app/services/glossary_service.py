from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.glossary_repository import GlossaryRepository
from app.schemas.glossary import GlossaryTermResponse
from app.services.query_cache import QueryCache, query_cache


class GlossaryService:
    """Read-only glossary search cached under ``("glossary", search)``."""

    def __init__(self, session: AsyncSession, cache: QueryCache = query_cache):
        self.glossary_repo = GlossaryRepository(session)
        self.cache = cache

    async def search(self, text: Optional[str] = None) -> List[GlossaryTermResponse]:
        search = (text or "").strip()

        async def load() -> List[GlossaryTermResponse]:
            terms = await self.glossary_repo.search(search or None)
            return [GlossaryTermResponse.model_validate(term) for term in terms]

        return await self.cache.get_or_load(("glossary", search), load)
