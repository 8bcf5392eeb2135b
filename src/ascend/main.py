"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from ascend.auth.router import router as auth_router
from ascend.competition.router import router as competition_router
from ascend.config import get_settings
from ascend.database import close_db, init_db
from ascend.health.router import router as health_router
from ascend.middleware import setup_middleware
from ascend.roadmaps.router import public_router as public_roadmap_router
from ascend.roadmaps.router import router as roadmap_router
from ascend.social.router import profile_router
from ascend.social.router import router as connections_router
from ascend.tasks.router import router as tasks_router
from ascend.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    logger.info(
        "api_started",
        version=settings.app_version,
        environment=settings.environment,
        generator=settings.generator_provider,
    )

    yield

    await close_db()
    logger.info("api_stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Ascend API",
        description="Backend API for Ascend, a gamified personal-growth tracker",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(roadmap_router)
    app.include_router(public_roadmap_router)
    app.include_router(tasks_router)
    app.include_router(connections_router)
    app.include_router(profile_router)
    app.include_router(competition_router)

    return app


app = create_app()
