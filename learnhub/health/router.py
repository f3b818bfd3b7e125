"""Health check endpoints."""

from fastapi import APIRouter, Request, status
from fastapi.responses import ORJSONResponse

from learnhub.config import get_settings
from learnhub.core.logging import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


async def _check_cassandra(request: Request) -> str:
    session = getattr(request.app.state, "cassandra_session", None)
    if session is None:
        return "unavailable"
    try:
        await session.aexecute("SELECT release_version FROM system.local")
    except Exception as e:
        logger.warning("cassandra_health_check_failed", error=str(e))
        return "error"
    return "ok"


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> ORJSONResponse:
    """Readiness probe - 503 until the database session is up."""
    settings = get_settings()
    ready = getattr(request.app.state, "cassandra_session", None) is not None
    return ORJSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if ready else "not_ready",
            "environment": settings.environment,
            "debug": settings.debug,
        },
    )


@router.get("")
async def health(request: Request) -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    cassandra = await _check_cassandra(request)
    return {
        "status": "healthy" if cassandra == "ok" else "degraded",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "cassandra": cassandra,
    }
