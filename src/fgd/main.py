"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from fgd.analytics.router import router as analytics_router
from fgd.config import get_settings
from fgd.database import close_db, create_schema, get_session, init_db
from fgd.groups.router import router as groups_router
from fgd.health.router import router as health_router
from fgd.middleware import setup_middleware
from fgd.middleware.rate_limit import RateLimiter
from fgd.redis_client import close_redis, init_redis
from fgd.reports.router import router as reports_router
from fgd.reputation.router import router as reputation_router
from fgd.reputation.seed import seed_badges
from fgd.reviews.router import router as reviews_router
from fgd.users.router import router as users_router
from fgd.votes.router import router as votes_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.rate_limit_backend == "redis":
        await init_redis(settings.redis_url)
    if settings.database_auto_create:
        await create_schema()

    # Seed badge definitions (idempotent)
    try:
        async for db in get_session():
            await seed_badges(db)
            break
    except SQLAlchemyError:
        logger.warning("badge_seeding_failed", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app(rate_limiter: RateLimiter | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Directory of Facebook groups: listings, reviews, votes, reports and reputation",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings, rate_limiter)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(groups_router)
    app.include_router(reviews_router)
    app.include_router(votes_router)
    app.include_router(reports_router)
    app.include_router(reputation_router)
    app.include_router(analytics_router)

    return app


app = create_app()
