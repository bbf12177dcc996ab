from fastapi import APIRouter
from app.api.v1.endpoints import analysis, audit, clauses, contracts, glossary, health, templates

# Create API router
api_router = APIRouter()

# Include routers
api_router.include_router(contracts.router, prefix="/contracts", tags=["Contracts"])
api_router.include_router(clauses.router, prefix="/contracts", tags=["Clauses"])
api_router.include_router(templates.router, prefix="/templates", tags=["Templates"])
api_router.include_router(glossary.router, prefix="/glossary", tags=["Glossary"])
api_router.include_router(audit.router, prefix="/audit-trail", tags=["Audit"])
api_router.include_router(analysis.router, prefix="", tags=["Analysis"])
api_router.include_router(health.router, prefix="", tags=["Health"])

__all__ = ["api_router"]
