"""Clause reads, edits and per-category risk aggregation."""

from collections import defaultdict
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ClauseNotFoundError, ContractNotFoundError
from app.database.enums import AuditAction, ClauseCategory, RiskLevel, risk_level_for_score
from app.database.models import Contract
from app.repositories.clause_repository import ClauseRepository
from app.repositories.contract_repository import ContractRepository
from app.schemas.auth import UserSession
from app.schemas.clauses import ClauseResponse, ClauseUpdate
from app.schemas.contracts import CategoryRisk, RiskBreakdown
from app.services.audit_service import AuditService
from app.services.query_cache import QueryCache, query_cache
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

_SEVERITY = {level: rank for rank, level in enumerate(RiskLevel)}


class ClauseService:
    """Clause access scoped through the owning contract.

    Cache key: ``("clauses", contract_id)`` and its sub-keys.
    """

    def __init__(self, session: AsyncSession, cache: QueryCache = query_cache):
        self.contract_repo = ContractRepository(session)
        self.clause_repo = ClauseRepository(session)
        self.audit_service = AuditService(session, cache)
        self.cache = cache

    async def _owned_contract(self, user: UserSession, contract_id: UUID) -> Contract:
        contract = await self.contract_repo.get_for_user(contract_id, user.user_id)
        if contract is None:
            raise ContractNotFoundError("Contract not found")
        return contract

    async def list_clauses(self, user: UserSession, contract_id: UUID) -> List[ClauseResponse]:
        """Clauses ordered by clause number; empty until analysis completes."""
        await self._owned_contract(user, contract_id)

        async def load() -> List[ClauseResponse]:
            clauses = await self.clause_repo.list_for_contract(contract_id)
            return [ClauseResponse.model_validate(clause) for clause in clauses]

        return await self.cache.get_or_load(("clauses", contract_id), load)

    async def update_clause(
        self,
        user: UserSession,
        contract_id: UUID,
        clause_id: UUID,
        changes: ClauseUpdate,
        user_agent: Optional[str] = None,
    ) -> ClauseResponse:
        """Apply a user's edit. Last write wins; no version check."""
        await self._owned_contract(user, contract_id)
        clause = await self.clause_repo.get_for_contract(clause_id, contract_id)
        if clause is None:
            raise ClauseNotFoundError("Clause not found")

        fields = changes.model_dump(exclude_unset=True)
        if "risk_score" in fields and fields["risk_score"] is not None and "risk_level" not in fields:
            fields["risk_level"] = risk_level_for_score(fields["risk_score"])

        clause = await self.clause_repo.update(clause, **fields)
        self.cache.invalidate(("clauses", contract_id))

        await self.audit_service.record(
            user,
            AuditAction.CLAUSE_EDITED,
            contract_id=contract_id,
            details={"clause_number": clause.clause_number, "fields": sorted(fields)},
            user_agent=user_agent,
        )
        return ClauseResponse.model_validate(clause)

    async def risk_breakdown(self, user: UserSession, contract_id: UUID) -> RiskBreakdown:
        """Per-category clause counts and scores for the contract."""
        contract = await self._owned_contract(user, contract_id)

        async def load() -> List[CategoryRisk]:
            clauses = await self.clause_repo.list_for_contract(contract_id)
            return summarize_categories(clauses)

        categories = await self.cache.get_or_load(("clauses", contract_id, "risk-breakdown"), load)
        return RiskBreakdown(
            contract_id=contract_id,
            composite_risk_score=contract.composite_risk_score,
            risk_level=contract.risk_level,
            categories=categories,
        )


def summarize_categories(clauses) -> List[CategoryRisk]:
    """Aggregate clauses by category, highest average risk first."""
    grouped: Dict[ClauseCategory, list] = defaultdict(list)
    for clause in clauses:
        grouped[clause.category or ClauseCategory.OTHER].append(clause)

    summaries = []
    for category, members in grouped.items():
        scores = [clause.risk_score or 0 for clause in members]
        levels = [clause.risk_level or risk_level_for_score(score) for clause, score in zip(members, scores)]
        summaries.append(
            CategoryRisk(
                category=category,
                clause_count=len(members),
                average_score=round(sum(scores) / len(scores), 1),
                max_score=max(scores),
                risk_level=max(levels, key=_SEVERITY.__getitem__),
                flagged_count=sum(1 for clause in members if clause.is_flagged or clause.compliance_flags),
            )
        )
    summaries.sort(key=lambda summary: (-summary.average_score, summary.category.value))
    return summaries
