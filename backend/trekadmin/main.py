"""
Trek Admin API - Main Application Entry Point

Admin backend for a trek booking platform:
- Trek aggregates (batches, itineraries, lists) written in one transaction
- Batch lifecycle: stop/resume bookings, completion of finished batches
- Periodic sweep that completes bookings of ended batches
- Redis-cached trek listing and pub/sub admin notifications
- Structured logging with request correlation and Prometheus metrics
"""

import asyncio
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trekadmin.core.config import get_settings
from trekadmin.core.logging import setup_logging, get_logger
from trekadmin.core.metrics import metrics_endpoint
from trekadmin.api.errors import register_error_handlers
from trekadmin.api.router import api_router
from trekadmin.api.middleware import RequestLoggingMiddleware
from trekadmin.db.session import dispose_engine
from trekadmin.infrastructure.redis_client import get_redis, close_redis
from trekadmin.services.batch_lifecycle import BatchLifecycleManager
from trekadmin.services.cache_service import get_cache_stats
from trekadmin.services.completion_sweeper import start_sweeper
from trekadmin.services.notifier_factory import get_notifier

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache and notifications")

    sweeper = None
    if settings.SWEEP_ENABLED:
        sweeper = start_sweeper(BatchLifecycleManager(get_notifier()), settings.SWEEP_INTERVAL_SECONDS)

    yield

    if sweeper is not None:
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass
        logger.info("sweeper_stopped")

    await close_redis()
    await dispose_engine()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Admin API for trek catalogue, batch lifecycle and bookings",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

register_error_handlers(app)
app.include_router(api_router)
app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["Health"], include_in_schema=False)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
        "sweeper": "enabled" if settings.SWEEP_ENABLED else "disabled",
    }


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
