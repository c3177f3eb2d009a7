# This project was developed with assistance from AI tools.
"""Health check endpoint for the API and its database."""

from db import DatabaseService, get_db_service
from fastapi import APIRouter, Depends

from .. import __version__
from ..schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=list[HealthResponse])
async def health(
    db_service: DatabaseService = Depends(get_db_service),
) -> list[HealthResponse]:
    """Report API liveness and database connectivity. Unauthenticated."""
    db_ok = await db_service.health_check()
    return [
        HealthResponse(
            name="API",
            status="healthy",
            message="TrustPool API is running",
            version=__version__,
        ),
        HealthResponse(
            name="Database",
            status="healthy" if db_ok else "unhealthy",
            message="PostgreSQL connection OK" if db_ok else "PostgreSQL connection failed",
        ),
    ]
