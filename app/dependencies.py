"""Centralized dependency injection for FastAPI application.

This module provides factory functions for creating service instances
bound to the request's database session.
"""

from typing import Annotated, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_async_session
from app.core.llm_client import UnifiedLLMClient
from app.services.analysis_client import AnalysisClient
from app.services.audit_service import AuditService
from app.services.clause_service import ClauseService
from app.services.contract_analyzer import ContractAnalyzer
from app.services.contract_service import ContractService
from app.services.glossary_service import GlossaryService
from app.services.query_cache import QueryCache, query_cache
from app.services.storage_service import StorageService
from app.services.template_service import TemplateService
from app.services.upload_service import UploadService

SessionDep = Annotated[AsyncSession, Depends(get_async_session)]


def get_query_cache() -> QueryCache:
    """Process-wide query cache shared by all services."""
    return query_cache


def get_storage_service() -> StorageService:
    return StorageService()


def get_llm_client() -> Optional[UnifiedLLMClient]:
    """LLM client for the analyzer.

    Returns None so the analyzer builds one from settings on first use;
    tests override this to inject a fake.
    """
    return None


def get_user_agent(request: Request) -> Optional[str]:
    return request.headers.get("user-agent")


CacheDep = Annotated[QueryCache, Depends(get_query_cache)]
StorageDep = Annotated[StorageService, Depends(get_storage_service)]


async def get_contract_service(
    db_session: SessionDep, cache: CacheDep, storage: StorageDep
) -> ContractService:
    return ContractService(db_session, cache, storage=storage)


async def get_clause_service(db_session: SessionDep, cache: CacheDep) -> ClauseService:
    return ClauseService(db_session, cache)


async def get_template_service(db_session: SessionDep, cache: CacheDep) -> TemplateService:
    return TemplateService(db_session, cache)


async def get_glossary_service(db_session: SessionDep, cache: CacheDep) -> GlossaryService:
    return GlossaryService(db_session, cache)


async def get_audit_service(db_session: SessionDep, cache: CacheDep) -> AuditService:
    return AuditService(db_session, cache)


async def get_analysis_client(db_session: SessionDep, cache: CacheDep) -> AnalysisClient:
    """Client that calls the analysis function over HTTP.

    Args:
        db_session: Database session from dependency injection
        cache: Query cache to invalidate after the call

    Returns:
        AnalysisClient: Client bound to ``settings.analysis.function_url``
    """
    return AnalysisClient(db_session, cache)


async def get_upload_service(
    db_session: SessionDep,
    cache: CacheDep,
    storage: StorageDep,
    analysis_client: Annotated[AnalysisClient, Depends(get_analysis_client)],
) -> UploadService:
    return UploadService(db_session, storage=storage, cache=cache, analysis_client=analysis_client)


async def get_contract_analyzer(
    db_session: SessionDep,
    cache: CacheDep,
    storage: StorageDep,
    llm_client: Annotated[Optional[UnifiedLLMClient], Depends(get_llm_client)],
) -> ContractAnalyzer:
    """Server-side analyzer for the analysis function endpoint.

    Args:
        db_session: Database session from dependency injection
        cache: Query cache to invalidate after persisting results
        storage: Blob storage holding the uploaded files
        llm_client: Optional preconfigured LLM client

    Returns:
        ContractAnalyzer: Analyzer bound to the request session
    """
    return ContractAnalyzer(db_session, storage=storage, llm_client=llm_client, cache=cache)
