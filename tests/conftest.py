"""Pytest configuration and shared fixtures."""

import os

# Settings are read at import time; point them at test values first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SUPABASE_URL"] = "https://test-project.supabase.co"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret-with-at-least-32-bytes!!"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-service-role-key"
os.environ["LLM_PROVIDER"] = "openrouter"
os.environ["OPENROUTER_API_KEY"] = "test-openrouter-key"
os.environ["ANALYSIS_FUNCTION_URL"] = "http://analysis.test/api/v1/analyze-contract"

import uuid
from typing import Any, Dict

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.database.models  # noqa: F401  registers tables on Base.metadata
from app.core.auth import get_current_user
from app.core.database import Base
from app.database.enums import AnalysisStatus
from app.database.models import Clause, Contract
from app.main import app
from app.schemas.auth import UserSession
from app.services.query_cache import QueryCache, query_cache


@pytest.fixture
def test_client() -> TestClient:
    """Create FastAPI test client.

    Returns:
        TestClient: FastAPI test client instance
    """
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
def clear_query_cache():
    """The process-wide cache must not leak entries between tests."""
    query_cache.clear()
    yield
    query_cache.clear()


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache()


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine with the full schema and foreign keys enforced."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncSession:
    maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as session:
        yield session


def make_user(role: str = "authenticated", **kwargs) -> UserSession:
    return UserSession(
        user_id=kwargs.pop("user_id", uuid.uuid4()),
        email=kwargs.pop("email", "owner@example.com"),
        role=role,
        access_token=kwargs.pop("access_token", "test-access-token"),
        **kwargs,
    )


@pytest.fixture
def user() -> UserSession:
    return make_user()


@pytest.fixture
def other_user() -> UserSession:
    return make_user(email="someone-else@example.com")


@pytest.fixture
def admin_user() -> UserSession:
    return make_user(role="admin", email="admin@example.com")


@pytest.fixture
def authenticated(user: UserSession) -> UserSession:
    """Route requests through ``get_current_user`` as ``user``."""
    app.dependency_overrides[get_current_user] = lambda: user
    return user


@pytest.fixture
def contract_factory(db_session: AsyncSession):
    """Insert a contract row for a user."""

    async def create(owner: UserSession, **overrides) -> Contract:
        values: Dict[str, Any] = {
            "user_id": owner.user_id,
            "file_name": "services-agreement.pdf",
            "file_path": f"{owner.user_id}/1700000000000_services-agreement.pdf",
            "file_size": 2048,
            "analysis_status": AnalysisStatus.PENDING,
        }
        values.update(overrides)
        contract = Contract(**values)
        db_session.add(contract)
        await db_session.commit()
        return contract

    return create


@pytest.fixture
def clause_factory(db_session: AsyncSession):
    """Insert clauses numbered 1..count for a contract."""

    async def create(contract_id: uuid.UUID, count: int, text_prefix: str = "Old clause") -> list:
        clauses = [
            Clause(
                contract_id=contract_id,
                clause_number=number,
                original_text=f"{text_prefix} {number}",
                risk_score=10 * number,
            )
            for number in range(1, count + 1)
        ]
        db_session.add_all(clauses)
        await db_session.commit()
        return clauses

    return create


@pytest.fixture
def analysis_payload() -> Dict[str, Any]:
    """A well-formed analysis as the model is asked to return it."""
    return {
        "contract_type": "service_contract",
        "parties": [
            {"name": "Acme Pvt Ltd", "role": "client"},
            {"name": "Bright Consulting LLP", "role": "service provider"},
        ],
        "jurisdiction": "Bengaluru, Karnataka",
        "effective_date": "2024-04-01",
        "expiry_date": "2025-03-31",
        "composite_risk_score": 62,
        "risk_level": "high",
        "executive_summary": "One-sided indemnity and a long lock-in favour the client.",
        "clauses": [
            {
                "clause_number": 4,
                "original_text": "The Service Provider shall indemnify the Client against all losses.",
                "plain_explanation": "You pay for every loss the client suffers, with no cap.",
                "risk_rationale": "Uncapped and not limited to your own fault.",
                "risk_score": 82,
                "risk_level": "critical",
                "category": "indemnity",
                "suggested_alternative": "Indemnity limited to losses caused by gross negligence, capped at fees paid.",
                "negotiation_script": "We can accept indemnity for our own negligence up to the contract value.",
                "compliance_flags": [
                    {
                        "issue": "Penalty-like clause may be unenforceable",
                        "law_reference": "Indian Contract Act, 1872, Section 74",
                        "severity": "medium",
                    }
                ],
            },
            {
                "clause_number": 9,
                "original_text": "Payment within 90 days of invoice.",
                "plain_explanation": "You wait three months to be paid.",
                "risk_rationale": "Exceeds the 45-day limit for MSME suppliers.",
                "risk_score": 55,
                "category": "payment",
                "compliance_flags": [],
            },
        ],
    }
