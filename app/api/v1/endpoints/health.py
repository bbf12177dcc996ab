"""Health check API endpoints."""

from typing import Any, Dict

from fastapi import APIRouter
from pydantic import BaseModel, Field

from app.core.config import settings
from app.core.database import db_client

router = APIRouter()


class HealthCheckResponse(BaseModel):
    """Health check response model."""

    status: str = Field(default="healthy", examples=["healthy", "degraded"])
    version: str = Field(..., examples=["0.1.0"])
    service: str = Field(..., examples=["ClauseLens"])
    database: Dict[str, Any] = Field(default_factory=dict)


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    tags=["Health"],
    summary="Health check endpoint",
    description="Check if the service and its database are reachable",
    operation_id="get_service_health_status",
)
async def health_check() -> HealthCheckResponse:
    db_health = await db_client.health_check()

    return HealthCheckResponse(
        status="healthy" if db_health["status"] == "healthy" else "degraded",
        version=settings.app_version,
        service=settings.app_name,
        database=db_health,
    )
