"""Health check endpoint with database connectivity check."""

from fastapi import APIRouter

from bookstore.api.deps import DbSession
from bookstore.core.config import settings
from bookstore.core.database import check_db_connected
from bookstore.schemas.health import HealthResponse

router = APIRouter()

API_VERSION = "1.0.0"


@router.get("", response_model=HealthResponse)
def get_health(db: DbSession) -> HealthResponse:
    """
    Return service health status and database connectivity.
    Used by load balancers and monitoring; always public.
    """
    connected = check_db_connected(db)
    return HealthResponse(
        status="ok" if connected else "degraded",
        environment=settings.APP_ENV,
        version=API_VERSION,
        database="connected" if connected else "disconnected",
    )
