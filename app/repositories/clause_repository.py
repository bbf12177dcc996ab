"""Repository for analyzed clauses."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import Clause
from app.repositories.base_repository import BaseRepository


class ClauseRepository(BaseRepository[Clause]):
    """Clause rows of a contract, replaced as a whole set on each analysis."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Clause)

    async def list_for_contract(self, contract_id: UUID) -> List[Clause]:
        """Clauses of a contract in clause order."""
        query = (
            select(Clause)
            .where(Clause.contract_id == contract_id)
            .order_by(Clause.clause_number.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_for_contract(self, clause_id: UUID, contract_id: UUID) -> Optional[Clause]:
        query = select(Clause).where(Clause.id == clause_id, Clause.contract_id == contract_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def replace_for_contract(self, contract_id: UUID, rows: List[Dict[str, Any]]) -> List[Clause]:
        """Delete every clause of the contract and insert ``rows``.

        Does not commit; run inside the caller's transaction so readers
        never observe a partial set.
        """
        await self.session.execute(
            delete(Clause)
            .where(Clause.contract_id == contract_id)
            .execution_options(synchronize_session=False)
        )
        # Push the delete before inserting rows that reuse clause numbers
        await self.session.flush()

        clauses = [self.build(contract_id, row) for row in rows]
        self.session.add_all(clauses)
        await self.session.flush()
        return clauses

    def build(self, contract_id: UUID, row: Dict[str, Any]) -> Clause:
        return Clause(contract_id=contract_id, **row)
