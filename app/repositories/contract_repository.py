"""Repository for contract rows and the analysis status lease."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.enums import LEASABLE_STATUSES, AnalysisStatus
from app.database.models import Contract
from app.repositories.base_repository import BaseRepository


class ContractRepository(BaseRepository[Contract]):
    """Contract queries, always scoped to the owning user."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Contract)

    async def get_for_user(self, contract_id: UUID, user_id: UUID) -> Optional[Contract]:
        """Load a contract owned by ``user_id``; None when absent or not owned."""
        try:
            query = (
                select(Contract)
                .where(Contract.id == contract_id, Contract.user_id == user_id)
                .execution_options(populate_existing=True)
            )
            result = await self.session.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading contract {contract_id}: {e}", exc_info=True)
            raise

    async def list_for_user(self, user_id: UUID) -> List[Contract]:
        """All of a user's contracts, newest first."""
        query = (
            select(Contract)
            .where(Contract.user_id == user_id)
            .order_by(Contract.created_at.desc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def acquire_analysis_lease(self, contract_id: UUID, user_id: UUID) -> Optional[UUID]:
        """Atomically move the contract into ``analyzing`` under a fresh lease token.

        The status guard makes this a compare-and-swap: of two concurrent
        callers exactly one sees a row updated. Commits on success.

        Returns:
            The lease token if this caller now holds the lease, else None
        """
        lease_id = uuid4()
        try:
            stmt = (
                update(Contract)
                .where(
                    Contract.id == contract_id,
                    Contract.user_id == user_id,
                    Contract.analysis_status.in_(LEASABLE_STATUSES),
                )
                .values(
                    analysis_status=AnalysisStatus.ANALYZING,
                    analysis_lease_id=lease_id,
                    updated_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
            result = await self.session.execute(stmt)
            await self.session.commit()
            acquired = result.rowcount == 1
            self.logger.info(
                f"Analysis lease for contract {contract_id}: {'acquired' if acquired else 'refused'}"
            )
            return lease_id if acquired else None
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.logger.error(f"Error acquiring analysis lease for {contract_id}: {e}", exc_info=True)
            raise

    async def apply_analysis(self, contract_id: UUID, lease_id: UUID, fields: Dict[str, Any]) -> bool:
        """Write analysis results and mark the contract completed.

        Only applies while ``lease_id`` still holds the ``analyzing`` lease.
        Does not commit: the caller owns the transaction so the clause
        replacement lands in the same unit of work.

        Returns:
            False if the lease was lost in the meantime
        """
        now = datetime.now(timezone.utc)
        stmt = (
            update(Contract)
            .where(*self._lease_held(contract_id, lease_id))
            .values(
                **fields,
                analysis_status=AnalysisStatus.COMPLETED,
                analysis_lease_id=None,
                analyzed_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def mark_failed(self, contract_id: UUID, lease_id: UUID) -> bool:
        """Move a contract leased to ``lease_id`` to ``failed`` and commit.

        Completed contracts and contracts leased to another run are left
        alone, so a late failure report cannot clobber someone else's analysis.
        """
        try:
            stmt = (
                update(Contract)
                .where(*self._lease_held(contract_id, lease_id))
                .values(
                    analysis_status=AnalysisStatus.FAILED,
                    analysis_lease_id=None,
                    updated_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
            result = await self.session.execute(stmt)
            await self.session.commit()
            return result.rowcount == 1
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.logger.error(f"Error marking contract {contract_id} failed: {e}", exc_info=True)
            raise

    @staticmethod
    def _lease_held(contract_id: UUID, lease_id: UUID) -> tuple:
        return (
            Contract.id == contract_id,
            Contract.analysis_status == AnalysisStatus.ANALYZING,
            Contract.analysis_lease_id == lease_id,
        )
