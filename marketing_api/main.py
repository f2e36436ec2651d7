"""
Marketing Site API - Main Application Entry Point

Backend for the pre-launch site:
- Waitlist signups with capacity, duplicate-email and per-IP admission rules
- Contact form submissions with per-IP admission rules
- Live waitlist statistics
- Structured logging with request correlation and Prometheus metrics
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketing_api.api.deps import get_stats_reporter
from marketing_api.api.errors import register_exception_handlers
from marketing_api.api.middleware import RequestLoggingMiddleware
from marketing_api.api.router import api_router, legacy_router
from marketing_api.core.config import get_settings
from marketing_api.core.logging import setup_logging, get_logger
from marketing_api.core.metrics import metrics_endpoint
from marketing_api.db.session import dispose_engine
from marketing_api.infrastructure.redis_client import get_redis, close_redis
from marketing_api.services.stats_service import StatsReporter

settings = get_settings()
started_at = datetime.now(timezone.utc)


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
        max_waitlist_entries=settings.MAX_WAITLIST_ENTRIES,
    )

    if await get_redis():
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Request throttle disabled, failing open")

    yield

    await close_redis()
    await dispose_engine()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Waitlist and contact-form API with admission control",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)
app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

app.include_router(api_router)
app.include_router(legacy_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    now = datetime.now(timezone.utc)
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "timestamp": now.isoformat(),
        "uptime_seconds": round((now - started_at).total_seconds(), 1),
        "throttle": "enabled" if await get_redis() else "disabled",
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root(reporter: StatsReporter = Depends(get_stats_reporter)):
    stats = await reporter.get_waitlist_stats()
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "waitlist": {
            "total_signups": stats.total_signups,
            "capacity": stats.capacity,
            "percentage_full": stats.percentage_full,
        },
    }
