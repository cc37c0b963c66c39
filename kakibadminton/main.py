"""
KakiBadminton API - Main Application Entry Point

Back end for a group-chat badminton bot:
- Sessions with RSVP rosters (join / leave, idempotent membership)
- Bill settlement into one payment obligation per player
- Payment tracking with claims, proof uploads and overdue reminders
- Structured logging with request correlation, Prometheus metrics
"""

import asyncio
import contextlib
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kakibadminton.core.config import get_settings
from kakibadminton.core.exceptions import KakiBadmintonError
from kakibadminton.core.logging import setup_logging, get_logger
from kakibadminton.core.metrics import metrics_endpoint
from kakibadminton.api.router import api_router
from kakibadminton.api.middleware import RequestLoggingMiddleware
from kakibadminton.db.session import AsyncSessionLocal
from kakibadminton.infrastructure.redis_client import get_redis, close_redis
from kakibadminton.services.cache_service import get_cache_stats
from kakibadminton.services.notifier_factory import get_notifier, close_notifier
from kakibadminton.services.overdue_service import sweep_forever

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()

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
        logger.warning("redis_unavailable", message="Running without cache")

    sweep_task = None
    if settings.OVERDUE_SWEEP_ENABLED:
        sweep_task = asyncio.create_task(
            sweep_forever(AsyncSessionLocal, get_notifier(), settings.OVERDUE_SWEEP_INTERVAL_SECONDS)
        )

    yield

    if sweep_task:
        sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweep_task
    await close_notifier()
    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Badminton session RSVP, bill splitting and payment tracking",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # The calculator mini-app is served from another origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


@app.exception_handler(KakiBadmintonError)
async def domain_error_handler(request: Request, exc: KakiBadmintonError):
    log = logger.warning if exc.status_code < 500 else logger.error
    log("request_rejected", code=exc.code, detail=exc.detail, status_code=exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
