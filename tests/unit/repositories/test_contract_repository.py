"""Tests for contract scoping and the analysis status lease."""

import uuid

import pytest

from app.database.enums import AnalysisStatus, RiskLevel
from app.repositories.clause_repository import ClauseRepository
from app.repositories.contract_repository import ContractRepository


class TestOwnership:

    @pytest.mark.asyncio
    async def test_get_for_user_hides_other_owners(self, db_session, contract_factory, user, other_user):
        contract = await contract_factory(user)
        repo = ContractRepository(db_session)

        assert (await repo.get_for_user(contract.id, user.user_id)).id == contract.id
        assert await repo.get_for_user(contract.id, other_user.user_id) is None

    @pytest.mark.asyncio
    async def test_list_for_user_only_returns_own_contracts(self, db_session, contract_factory, user, other_user):
        mine = await contract_factory(user, file_name="mine.pdf")
        await contract_factory(other_user, file_name="theirs.pdf")

        contracts = await ContractRepository(db_session).list_for_user(user.user_id)

        assert [contract.id for contract in contracts] == [mine.id]


class TestAnalysisLease:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status", [AnalysisStatus.PENDING, AnalysisStatus.FAILED, AnalysisStatus.COMPLETED]
    )
    async def test_lease_acquired_from_idle_states(self, db_session, contract_factory, user, status):
        contract = await contract_factory(user, analysis_status=status)
        repo = ContractRepository(db_session)

        lease_id = await repo.acquire_analysis_lease(contract.id, user.user_id)

        assert lease_id is not None
        reloaded = await repo.get_for_user(contract.id, user.user_id)
        assert reloaded.analysis_status == AnalysisStatus.ANALYZING
        assert reloaded.analysis_lease_id == lease_id

    @pytest.mark.asyncio
    async def test_second_lease_is_refused(self, db_session, contract_factory, user):
        contract = await contract_factory(user)
        repo = ContractRepository(db_session)

        assert await repo.acquire_analysis_lease(contract.id, user.user_id) is not None
        assert await repo.acquire_analysis_lease(contract.id, user.user_id) is None

    @pytest.mark.asyncio
    async def test_lease_refused_for_non_owner(self, db_session, contract_factory, user, other_user):
        contract = await contract_factory(user)
        repo = ContractRepository(db_session)

        assert await repo.acquire_analysis_lease(contract.id, other_user.user_id) is None
        assert (await repo.get_for_user(contract.id, user.user_id)).analysis_status == AnalysisStatus.PENDING

    @pytest.mark.asyncio
    async def test_apply_analysis_requires_matching_lease(self, db_session, contract_factory, user):
        contract = await contract_factory(user)
        contract_id = contract.id
        repo = ContractRepository(db_session)

        assert await repo.apply_analysis(contract_id, uuid.uuid4(), {"composite_risk_score": 30}) is False
        await db_session.rollback()

        lease_id = await repo.acquire_analysis_lease(contract_id, user.user_id)
        assert await repo.apply_analysis(contract_id, uuid.uuid4(), {"composite_risk_score": 99}) is False
        assert await repo.apply_analysis(
            contract_id, lease_id, {"composite_risk_score": 30, "risk_level": RiskLevel.MEDIUM}
        ) is True
        await db_session.commit()

        reloaded = await repo.get_for_user(contract_id, user.user_id)
        assert reloaded.analysis_status == AnalysisStatus.COMPLETED
        assert reloaded.composite_risk_score == 30
        assert reloaded.analysis_lease_id is None
        assert reloaded.analyzed_at is not None

    @pytest.mark.asyncio
    async def test_mark_failed_only_for_lease_holder(self, db_session, contract_factory, user):
        completed = await contract_factory(user, analysis_status=AnalysisStatus.COMPLETED)
        leased = await contract_factory(user)
        repo = ContractRepository(db_session)
        lease_id = await repo.acquire_analysis_lease(leased.id, user.user_id)

        assert await repo.mark_failed(completed.id, lease_id) is False
        assert await repo.mark_failed(leased.id, uuid.uuid4()) is False
        assert (await repo.get_for_user(leased.id, user.user_id)).analysis_status == AnalysisStatus.ANALYZING

        assert await repo.mark_failed(leased.id, lease_id) is True

        assert (await repo.get_for_user(completed.id, user.user_id)).analysis_status == AnalysisStatus.COMPLETED
        failed = await repo.get_for_user(leased.id, user.user_id)
        assert failed.analysis_status == AnalysisStatus.FAILED
        assert failed.analysis_lease_id is None


class TestClauseReplacement:

    @pytest.mark.asyncio
    async def test_replace_swaps_whole_set(self, db_session, contract_factory, clause_factory, user):
        contract = await contract_factory(user)
        await clause_factory(contract.id, 3)
        repo = ClauseRepository(db_session)

        await repo.replace_for_contract(
            contract.id,
            [{"clause_number": 1, "original_text": "New clause 1", "risk_score": 5}],
        )
        await db_session.commit()

        clauses = await repo.list_for_contract(contract.id)
        assert [(c.clause_number, c.original_text) for c in clauses] == [(1, "New clause 1")]

    @pytest.mark.asyncio
    async def test_rollback_restores_previous_set(self, db_session, contract_factory, clause_factory, user):
        contract = await contract_factory(user)
        contract_id = contract.id
        await clause_factory(contract_id, 2)
        repo = ClauseRepository(db_session)

        await repo.replace_for_contract(contract_id, [])
        await db_session.rollback()

        clauses = await repo.list_for_contract(contract_id)
        assert [c.original_text for c in clauses] == ["Old clause 1", "Old clause 2"]

    @pytest.mark.asyncio
    async def test_deleting_contract_cascades_to_clauses(self, db_session, contract_factory, clause_factory, user):
        contract = await contract_factory(user)
        await clause_factory(contract.id, 2)

        await ContractRepository(db_session).delete(contract)

        assert await ClauseRepository(db_session).count({"contract_id": contract.id}) == 0
