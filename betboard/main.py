"""Betboard FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from betboard.config import get_settings
from betboard.database import close_db, init_db
from betboard.dependencies import validate_store_backend
from betboard.logging_config import configure_logging_from_settings, get_logger
from betboard.middleware import RateLimitMiddleware, RequestContextMiddleware
from betboard.redis import close_redis, get_redis_optional, init_redis
from betboard.routes.auth import router as auth_router
from betboard.routes.bets import router as bets_router
from betboard.routes.challenges import router as challenges_router
from betboard.routes.stream import router as stream_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: init store + Redis on startup, cleanup on shutdown."""
    settings = get_settings()
    configure_logging_from_settings(settings)

    backend = validate_store_backend(settings.store_backend)
    if backend == "postgres":
        logger.info("starting_database_init")
        await init_db()

    if settings.redis_url:
        await init_redis(settings.redis_url)
        logger.info("redis_connected")
    else:
        logger.warning("redis_disabled", change_feed="in_process", rate_limit=False)

    logger.info("application_started", store_backend=backend)
    yield

    logger.info("shutting_down")
    await close_redis()
    if backend == "postgres":
        await close_db()
    logger.info("shutdown_complete")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Betboard",
        description="Post personal challenges and bet on whether they will be completed",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(RateLimitMiddleware, redis_getter=get_redis_optional,
                       limit=settings.rate_limit, window=settings.rate_limit_window)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Stream routes first: "/api/challenges/stream" must not match "/{challenge_id}".
    app.include_router(stream_router)
    app.include_router(auth_router)
    app.include_router(challenges_router)
    app.include_router(bets_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "ok",
            "service": "betboard",
            "store_backend": settings.store_backend,
            "redis": get_redis_optional() is not None,
        }

    return app


app = create_app()
