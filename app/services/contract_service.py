"""Contract reads and mutations with cache invalidation."""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ContractNotFoundError, StorageError
from app.database.enums import AnalysisStatus, AuditAction
from app.repositories.clause_repository import ClauseRepository
from app.repositories.contract_repository import ContractRepository
from app.schemas.auth import UserSession
from app.schemas.clauses import ClauseResponse
from app.schemas.contracts import ContractReport, ContractResponse, ContractUpdate, ExportFormat
from app.services.audit_service import AuditService
from app.services.query_cache import QueryCache, query_cache
from app.services.storage_service import StorageService
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ContractService:
    """Owner-scoped access to contracts.

    Cache keys: ``("contracts", user_id)`` for a user's list and
    ``("contract", contract_id)`` for a single contract.
    """

    def __init__(
        self,
        session: AsyncSession,
        cache: QueryCache = query_cache,
        storage: Optional[StorageService] = None,
    ):
        self.contract_repo = ContractRepository(session)
        self.clause_repo = ClauseRepository(session)
        self.audit_service = AuditService(session, cache)
        self.cache = cache
        self.storage = storage or StorageService()

    async def list_contracts(self, user: UserSession) -> List[ContractResponse]:
        async def load() -> List[ContractResponse]:
            contracts = await self.contract_repo.list_for_user(user.user_id)
            return [ContractResponse.model_validate(contract) for contract in contracts]

        return await self.cache.get_or_load(("contracts", user.user_id), load)

    async def get_contract(self, user: UserSession, contract_id: UUID) -> ContractResponse:
        """Single contract owned by the caller.

        Raises:
            ContractNotFoundError: If absent or owned by someone else
        """
        async def load() -> ContractResponse:
            contract = await self.contract_repo.get_for_user(contract_id, user.user_id)
            if contract is None:
                raise ContractNotFoundError("Contract not found")
            return ContractResponse.model_validate(contract)

        contract = await self.cache.get_or_load(("contract", contract_id), load)
        # The key is shared across users; never serve another owner's entry
        if contract.user_id != user.user_id:
            raise ContractNotFoundError("Contract not found")
        return contract

    async def create_contract(
        self, user: UserSession, file_name: str, file_path: str, file_size: int
    ) -> ContractResponse:
        contract = await self.contract_repo.create(
            user_id=user.user_id,
            file_name=file_name,
            file_path=file_path,
            file_size=file_size,
            analysis_status=AnalysisStatus.PENDING,
        )
        self.cache.invalidate(("contracts",))
        LOGGER.info(f"Created contract {contract.id} for user {user.user_id}")
        return ContractResponse.model_validate(contract)

    async def update_contract(
        self, user: UserSession, contract_id: UUID, changes: ContractUpdate
    ) -> ContractResponse:
        contract = await self.contract_repo.get_for_user(contract_id, user.user_id)
        if contract is None:
            raise ContractNotFoundError("Contract not found")

        fields = changes.model_dump(exclude_unset=True)
        if fields.get("file_name") is None:
            fields.pop("file_name", None)
        if "parties" in fields and fields["parties"] is None:
            fields["parties"] = []

        contract = await self.contract_repo.update(contract, **fields)
        self.cache.invalidate(("contracts",), ("contract", contract_id))
        return ContractResponse.model_validate(contract)

    async def delete_contract(self, user: UserSession, contract_id: UUID) -> int:
        """Delete a contract, its clauses and its stored file.

        Returns:
            Number of clauses removed with the contract
        """
        contract = await self.contract_repo.get_for_user(contract_id, user.user_id)
        if contract is None:
            raise ContractNotFoundError("Contract not found")

        file_path = contract.file_path
        clause_count = await self.clause_repo.count({"contract_id": contract_id})
        await self.contract_repo.delete(contract)
        self.cache.invalidate(("contracts",), ("contract", contract_id), ("clauses", contract_id))

        try:
            await self.storage.delete_object(file_path)
        except StorageError as e:
            # The row is gone; an orphaned blob is only logged
            LOGGER.warning(f"Could not remove stored file {file_path}: {e}")

        LOGGER.info(f"Deleted contract {contract_id} with {clause_count} clauses")
        return clause_count

    async def export_report(
        self,
        user: UserSession,
        contract_id: UUID,
        export_format: ExportFormat = "json",
        user_agent: Optional[str] = None,
    ) -> ContractReport:
        """Snapshot the contract and its clauses and record an ``export`` entry."""
        contract = await self.get_contract(user, contract_id)
        clauses = await self.clause_repo.list_for_contract(contract_id)
        report = ContractReport(
            contract=contract,
            clauses=[ClauseResponse.model_validate(clause) for clause in clauses],
            generated_at=datetime.now(timezone.utc),
        )
        await self.audit_service.record(
            user,
            AuditAction.EXPORT,
            contract_id=contract_id,
            details={"format": export_format, "clause_count": len(report.clauses)},
            user_agent=user_agent,
        )
        return report

    async def create_file_url(self, user: UserSession, contract_id: UUID, expires_in: int = 3600) -> dict:
        contract = await self.get_contract(user, contract_id)
        return await self.storage.create_signed_url(contract.file_path, expires_in)


def render_report_text(report: ContractReport) -> str:
    """Plain-text rendering of an exported report."""
    contract = report.contract
    lines = [
        f"Contract risk report: {contract.file_name}",
        f"Generated: {report.generated_at.isoformat()}",
        "",
        f"Type: {contract.contract_type.value if contract.contract_type else 'unknown'}",
        f"Jurisdiction: {contract.jurisdiction or 'unknown'}",
        f"Effective: {contract.effective_date or '-'}  Expires: {contract.expiry_date or '-'}",
        "Parties: " + (", ".join(f"{p.name} ({p.role})" for p in contract.parties) or "-"),
        f"Composite risk: {contract.composite_risk_score if contract.composite_risk_score is not None else '-'}"
        f" ({contract.risk_level.value if contract.risk_level else 'unrated'})",
        "",
        "Summary:",
        contract.executive_summary or "-",
    ]

    for clause in report.clauses:
        lines.extend([
            "",
            f"Clause {clause.clause_number} [{clause.category.value if clause.category else 'other'}]"
            f" risk {clause.risk_score if clause.risk_score is not None else '-'}"
            f" ({clause.risk_level.value if clause.risk_level else 'unrated'})",
            clause.original_text,
        ])
        if clause.plain_explanation:
            lines.append(f"What it means: {clause.plain_explanation}")
        if clause.suggested_alternative:
            lines.append(f"Suggested wording: {clause.suggested_alternative}")
        if clause.negotiation_script:
            lines.append(f"How to negotiate: {clause.negotiation_script}")
        for flag in clause.compliance_flags:
            reference = f" ({flag.law_reference})" if flag.law_reference else ""
            lines.append(f"Compliance [{flag.severity.value}]: {flag.issue}{reference}")

    return "\n".join(lines) + "\n"
