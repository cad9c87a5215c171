"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from challenge_suite.auth.router import router as auth_router
from challenge_suite.challenges.router import router as challenges_router
from challenge_suite.config import get_settings
from challenge_suite.database import close_db, init_db
from challenge_suite.discovery.router import router as discovery_router
from challenge_suite.engagement.router import router as engagement_router
from challenge_suite.gamification.router import router as gamification_router
from challenge_suite.health.router import router as health_router
from challenge_suite.media.router import router as media_router
from challenge_suite.media.service import init_media_host
from challenge_suite.middleware import setup_middleware
from challenge_suite.redis_client import close_redis, init_redis
from challenge_suite.social.router import router as social_router
from challenge_suite.submissions.router import router as submissions_router
from challenge_suite.users.router import router as users_router


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings)
    init_media_host(settings)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Challenge Suite API",
        description="Backend API for Challenge Suite: challenges, submissions, votes, badges and leaderboards",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(challenges_router)
    app.include_router(submissions_router)
    app.include_router(engagement_router)
    app.include_router(social_router)
    app.include_router(gamification_router)
    app.include_router(media_router)
    app.include_router(discovery_router)

    return app


app = create_app()
