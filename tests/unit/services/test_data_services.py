"""Tests for the cached contract, clause, glossary and audit services."""

import uuid
from unittest.mock import AsyncMock

import pydantic
import pytest

from app.core.exceptions import ClauseNotFoundError, ContractNotFoundError, StorageError
from app.database.enums import AnalysisStatus, AuditAction, ClauseCategory, RiskLevel
from app.database.models import GlossaryTerm
from app.repositories.audit_repository import AuditRepository
from app.repositories.clause_repository import ClauseRepository
from app.schemas.clauses import ClauseUpdate
from app.schemas.contracts import ContractUpdate, Party
from app.services.audit_service import AuditService
from app.services.clause_service import ClauseService
from app.services.contract_service import ContractService, render_report_text
from app.services.glossary_service import GlossaryService
from app.services.storage_service import StorageService


@pytest.fixture
def storage():
    return AsyncMock(spec=StorageService)


@pytest.fixture
def contract_service(db_session, cache, storage):
    return ContractService(db_session, cache, storage=storage)


@pytest.fixture
def clause_service(db_session, cache):
    return ClauseService(db_session, cache)


class TestContractService:

    @pytest.mark.asyncio
    async def test_list_is_cached_until_invalidated(self, contract_service, contract_factory, user):
        await contract_factory(user, file_name="first.pdf")
        assert [c.file_name for c in await contract_service.list_contracts(user)] == ["first.pdf"]

        # Written behind the service's back: the cached list is still served
        await contract_factory(user, file_name="second.pdf")
        assert len(await contract_service.list_contracts(user)) == 1

        await contract_service.create_contract(user, file_name="third.pdf", file_path="p/third.pdf", file_size=3)
        assert {c.file_name for c in await contract_service.list_contracts(user)} == {
            "first.pdf", "second.pdf", "third.pdf",
        }

    @pytest.mark.asyncio
    async def test_cached_contract_not_served_to_other_owner(self, contract_service, contract_factory, user,
                                                             other_user):
        contract = await contract_factory(user)
        await contract_service.get_contract(user, contract.id)

        with pytest.raises(ContractNotFoundError):
            await contract_service.get_contract(other_user, contract.id)

    @pytest.mark.asyncio
    async def test_update_refreshes_single_and_list_views(self, contract_service, contract_factory, user):
        contract = await contract_factory(user)
        await contract_service.get_contract(user, contract.id)
        await contract_service.list_contracts(user)

        updated = await contract_service.update_contract(
            user,
            contract.id,
            ContractUpdate(jurisdiction="Mumbai", parties=[Party(name="Acme", role="lessee")]),
        )

        assert updated.jurisdiction == "Mumbai"
        assert (await contract_service.get_contract(user, contract.id)).parties == [Party(name="Acme", role="lessee")]
        assert (await contract_service.list_contracts(user))[0].jurisdiction == "Mumbai"

    @pytest.mark.asyncio
    async def test_update_ignores_null_file_name(self, contract_service, contract_factory, user):
        contract = await contract_factory(user, file_name="keep.pdf")

        updated = await contract_service.update_contract(user, contract.id, ContractUpdate(file_name=None))

        assert updated.file_name == "keep.pdf"

    @pytest.mark.asyncio
    async def test_delete_removes_clauses_and_file(self, contract_service, storage, db_session, contract_factory,
                                                   clause_factory, user):
        contract = await contract_factory(user)
        contract_id, file_path = contract.id, contract.file_path
        await clause_factory(contract_id, 4)

        removed = await contract_service.delete_contract(user, contract_id)

        assert removed == 4
        storage.delete_object.assert_awaited_once_with(file_path)
        assert await ClauseRepository(db_session).count({"contract_id": contract_id}) == 0
        with pytest.raises(ContractNotFoundError):
            await contract_service.get_contract(user, contract_id)

    @pytest.mark.asyncio
    async def test_delete_tolerates_storage_failure(self, contract_service, storage, contract_factory, user):
        storage.delete_object.side_effect = StorageError("Delete failed")
        contract = await contract_factory(user)

        assert await contract_service.delete_contract(user, contract.id) == 0
        assert await contract_service.list_contracts(user) == []

    @pytest.mark.asyncio
    async def test_delete_of_foreign_contract_refused(self, contract_service, storage, contract_factory, user,
                                                      other_user):
        contract = await contract_factory(other_user)

        with pytest.raises(ContractNotFoundError):
            await contract_service.delete_contract(user, contract.id)
        storage.delete_object.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_export_snapshot_records_audit(self, contract_service, db_session, contract_factory,
                                                 clause_factory, user):
        contract = await contract_factory(
            user,
            analysis_status=AnalysisStatus.COMPLETED,
            composite_risk_score=48,
            risk_level=RiskLevel.MEDIUM,
            executive_summary="Balanced lease with a short notice period.",
        )
        await clause_factory(contract.id, 2)

        report = await contract_service.export_report(user, contract.id, "txt", user_agent="pytest")

        assert [clause.clause_number for clause in report.clauses] == [1, 2]
        text = render_report_text(report)
        assert text.startswith("Contract risk report: services-agreement.pdf\n")
        assert "Composite risk: 48 (medium)" in text
        assert "Clause 2 [other] risk 20 (unrated)" in text

        entries = await AuditRepository(db_session).list_for_user(user.user_id, contract.id)
        assert [entry.action for entry in entries] == [AuditAction.EXPORT]
        assert entries[0].action_details == {"format": "txt", "clause_count": 2}

    @pytest.mark.asyncio
    async def test_file_url_signed_for_owner_only(self, contract_service, storage, contract_factory, user,
                                                  other_user):
        storage.create_signed_url.return_value = {"signed_url": "https://signed", "storage_path": "p", "expires_in": 60}
        contract = await contract_factory(user)

        assert (await contract_service.create_file_url(user, contract.id, 60))["signed_url"] == "https://signed"
        storage.create_signed_url.assert_awaited_once_with(contract.file_path, 60)

        with pytest.raises(ContractNotFoundError):
            await contract_service.create_file_url(other_user, contract.id)


class TestClauseService:

    @pytest.mark.asyncio
    async def test_list_requires_ownership(self, clause_service, contract_factory, clause_factory, user,
                                           other_user):
        contract = await contract_factory(user)
        await clause_factory(contract.id, 2)

        assert [c.clause_number for c in await clause_service.list_clauses(user, contract.id)] == [1, 2]
        with pytest.raises(ContractNotFoundError):
            await clause_service.list_clauses(other_user, contract.id)

    @pytest.mark.asyncio
    async def test_edit_derives_level_and_records_audit(self, clause_service, db_session, contract_factory,
                                                        clause_factory, user):
        contract = await contract_factory(user)
        clauses = await clause_factory(contract.id, 2)
        await clause_service.list_clauses(user, contract.id)

        updated = await clause_service.update_clause(
            user, contract.id, clauses[1].id, ClauseUpdate(risk_score=80, is_flagged=True)
        )

        assert updated.risk_level == RiskLevel.CRITICAL
        assert updated.is_flagged is True
        listed = await clause_service.list_clauses(user, contract.id)
        assert listed[1].risk_score == 80

        entries = await AuditRepository(db_session).list_for_user(user.user_id, contract.id)
        assert [entry.action for entry in entries] == [AuditAction.CLAUSE_EDITED]
        assert entries[0].action_details == {"clause_number": 2, "fields": ["is_flagged", "risk_level", "risk_score"]}

    @pytest.mark.asyncio
    async def test_explicit_level_is_kept(self, clause_service, contract_factory, clause_factory, user):
        contract = await contract_factory(user)
        clauses = await clause_factory(contract.id, 1)

        updated = await clause_service.update_clause(
            user, contract.id, clauses[0].id, ClauseUpdate(risk_score=80, risk_level=RiskLevel.HIGH)
        )

        assert updated.risk_level == RiskLevel.HIGH

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["risk_level", "risk_score", "is_flagged"])
    async def test_null_edit_cannot_clear_required_fields(self, clause_service, contract_factory,
                                                          clause_factory, user, field):
        contract = await contract_factory(user)
        clauses = await clause_factory(contract.id, 1)
        await clause_service.update_clause(user, contract.id, clauses[0].id, ClauseUpdate(risk_score=80))

        with pytest.raises(pydantic.ValidationError, match="not set to null"):
            ClauseUpdate(**{field: None})

        [stored] = await clause_service.list_clauses(user, contract.id)
        assert stored.risk_score == 80
        assert stored.risk_level == RiskLevel.CRITICAL

    @pytest.mark.asyncio
    async def test_clause_of_other_contract_not_found(self, clause_service, contract_factory, clause_factory,
                                                      user):
        mine = await contract_factory(user)
        other = await contract_factory(user)
        clauses = await clause_factory(other.id, 1)

        with pytest.raises(ClauseNotFoundError):
            await clause_service.update_clause(user, mine.id, clauses[0].id, ClauseUpdate(is_flagged=True))
        with pytest.raises(ClauseNotFoundError):
            await clause_service.update_clause(user, mine.id, uuid.uuid4(), ClauseUpdate(is_flagged=True))

    @pytest.mark.asyncio
    async def test_risk_breakdown_groups_by_category(self, clause_service, db_session, contract_factory, user):
        contract = await contract_factory(
            user, analysis_status=AnalysisStatus.COMPLETED, composite_risk_score=70, risk_level=RiskLevel.HIGH
        )
        repo = ClauseRepository(db_session)
        await repo.replace_for_contract(contract.id, [
            {"clause_number": 1, "original_text": "a", "risk_score": 90, "category": ClauseCategory.INDEMNITY},
            {"clause_number": 2, "original_text": "b", "risk_score": 30, "category": ClauseCategory.INDEMNITY,
             "compliance_flags": [{"issue": "x", "law_reference": None, "severity": "low"}]},
            {"clause_number": 3, "original_text": "c", "risk_score": 10},
        ])
        await db_session.commit()

        breakdown = await clause_service.risk_breakdown(user, contract.id)

        assert breakdown.composite_risk_score == 70
        assert [(c.category, c.clause_count, c.average_score, c.max_score, c.risk_level, c.flagged_count)
                for c in breakdown.categories] == [
            (ClauseCategory.INDEMNITY, 2, 60.0, 90, RiskLevel.CRITICAL, 1),
            (ClauseCategory.OTHER, 1, 10.0, 10, RiskLevel.LOW, 0),
        ]


class TestGlossaryAndAuditServices:

    @pytest.mark.asyncio
    async def test_glossary_search_is_cached_per_text(self, db_session, cache):
        db_session.add(GlossaryTerm(term="Lien", definition_en="A right to keep property until a debt is paid."))
        await db_session.commit()
        service = GlossaryService(db_session, cache)

        assert [t.term for t in await service.search("  lien ")] == ["Lien"]
        assert ("glossary", "lien") in cache
        assert [t.term for t in await service.search(None)] == ["Lien"]
        assert ("glossary", "") in cache

    @pytest.mark.asyncio
    async def test_recording_invalidates_audit_listings(self, db_session, cache, contract_factory, user):
        contract = await contract_factory(user)
        service = AuditService(db_session, cache)
        assert await service.list_entries(user) == []

        await service.record(user, AuditAction.VERSION_CREATED, contract_id=contract.id,
                             details={"version": 2}, ip_address="10.0.0.1")

        entries = await service.list_entries(user)
        assert [entry.action for entry in entries] == [AuditAction.VERSION_CREATED]
        assert entries[0].ip_address == "10.0.0.1"
        assert [e.action for e in await service.list_entries(user, contract.id)] == [AuditAction.VERSION_CREATED]
