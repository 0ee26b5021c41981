"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from pim_composer.api.dependencies import SessionDep
from pim_composer.infrastructure.config import settings

router = APIRouter()
logger = structlog.get_logger()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check service health.

    Returns:
        Health status with service name and version.
    """
    return HealthResponse(
        status="healthy",
        service="pim-composer",
        version=settings.api_version,
    )


@router.get("/ready")
async def readiness_check(session: SessionDep) -> JSONResponse:
    """Check if the service can reach its database.

    Returns:
        Readiness status; 503 when the database is unreachable.
    """
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Database not ready", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable"},
        )
    return JSONResponse(content={"status": "ready"})
