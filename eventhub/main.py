"""
Main FastAPI application for EventHub.
Handles application startup, middleware, and routing.
"""

import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.dependencies import cache_settings, db_connection, jwt_service, lock_provider, redis_connection
from .api.v1.router import router as api_router
from .core.config import config
from .core.logging import setup_logging
from .db.database import CategoryRepository
from .db.redis_client import LockAcquisitionError
from .services.category_service import CategoryRegistry

logger = logging.getLogger(__name__)


def _seed_categories():
    session = db_connection.SessionLocal()
    try:
        CategoryRegistry(CategoryRepository(session)).seed_defaults()
    finally:
        session.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    setup_logging(await config.get_log_level(), "eventhub")
    logger.info("Starting EventHub...")

    try:
        db_connection.initialize(await config.get_database_url(), await config.get_database_config())
        db_connection.create_tables()
        _seed_categories()
        logger.info("Database initialized")

        await jwt_service.initialize()

        cache_config = await config.get_cache_config()
        consistency_config = await config.get_consistency_config()
        cache_settings.clear()
        cache_settings.update(cache_config)

        if cache_config["enabled"] or consistency_config["enable_distributed_locks"]:
            redis_connection.initialize(await config.get_redis_url())
            logger.info("Redis connection initialized")

        lock_provider.configure(
            consistency_config,
            redis_connection if redis_connection.is_initialized else None
        )

        logger.info("EventHub started successfully")

    except Exception as e:
        logger.error(f"Failed to start EventHub: {e}")
        raise

    yield

    # Shutdown
    logger.info("Shutting down EventHub...")

    try:
        await redis_connection.close()
        db_connection.close()
        await config.close()
        logger.info("EventHub shut down successfully")

    except Exception as e:
        logger.error(f"Error during shutdown: {e}")


# Create FastAPI application
app = FastAPI(
    title="EventHub",
    description="Community events platform: event catalog, attendance and profiles",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add request processing time to response headers."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


def _error_body(error_code: str, message, status_code: int) -> dict:
    return {
        "error_code": error_code,
        "error_message": message,
        "status_code": status_code,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content=_error_body("INTERNAL_SERVER_ERROR", "An internal server error occurred", 500)
    )


# HTTP exception handler
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTTP exception handler for FastAPI HTTP exceptions."""
    logger.warning(f"HTTP exception: {exc.status_code} - {exc.detail}")

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("HTTP_ERROR", exc.detail, exc.status_code),
        headers=getattr(exc, "headers", None)
    )


# Validation exception handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report invalid request data as 400 with field-level errors."""
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")

    content = _error_body("VALIDATION_ERROR", "Invalid request data", 400)
    content["errors"] = jsonable_encoder(exc.errors())
    return JSONResponse(status_code=400, content=content)


@app.exception_handler(LockAcquisitionError)
async def lock_exception_handler(request: Request, exc: LockAcquisitionError):
    """Lock contention that outlived the blocking timeout."""
    logger.warning(f"Lock not acquired: {exc}")

    return JSONResponse(
        status_code=503,
        content=_error_body("SERVICE_BUSY", "Event is busy, please retry", 503)
    )


# Include API router
app.include_router(api_router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": "EventHub",
        "version": "1.0.0",
        "status": "running",
        "description": "Community events platform",
        "endpoints": {
            "api": "/api/v1",
            "health": "/api/v1/health",
            "docs": "/docs",
            "redoc": "/redoc"
        }
    }


# Health check endpoint (simple)
@app.get("/health")
async def simple_health_check():
    """Simple health check endpoint."""
    return {"status": "healthy", "service": "eventhub"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "eventhub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
