"""
API v1 router for EventHub.
"""

from fastapi import APIRouter

from ...schemas.event import HealthCheckResponse
from ..dependencies import db_connection, redis_connection
from .attendance import router as attendance_router
from .auth import router as auth_router
from .categories import router as categories_router
from .events import router as events_router
from .stats import router as stats_router
from .users import router as users_router

router = APIRouter(prefix="/api/v1")

# Include sub-routers
router.include_router(auth_router)
router.include_router(users_router)
router.include_router(categories_router)
router.include_router(events_router)
router.include_router(attendance_router)
router.include_router(stats_router)


@router.get("/health", response_model=HealthCheckResponse, tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    Redis is reported as "disabled" when neither caching nor distributed
    locks use it.
    """
    database_status = "healthy" if db_connection.health_check() else "unhealthy"

    if redis_connection.is_initialized:
        redis_status = "healthy" if await redis_connection.health_check() else "unhealthy"
    else:
        redis_status = "disabled"

    overall = "healthy" if database_status == "healthy" and redis_status != "unhealthy" else "degraded"
    return HealthCheckResponse(
        status=overall,
        version="1.0.0",
        database=database_status,
        redis=redis_status
    )
