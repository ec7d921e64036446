"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from wanderlist.config import get_settings
from wanderlist.database import close_db, init_db
from wanderlist.feed.router import router as feed_router
from wanderlist.health.router import router as health_router
from wanderlist.middleware import setup_middleware
from wanderlist.objectives.router import router as objectives_router
from wanderlist.progress.router import router as progress_router
from wanderlist.social.router import router as social_router
from wanderlist.storage.blob_store import reset_blob_store


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)

    yield

    await close_db()
    reset_blob_store()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Wanderlist API",
        description="Progress tracking and social activity for place collections",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(objectives_router)
    app.include_router(progress_router)
    app.include_router(feed_router)
    app.include_router(social_router)

    return app


app = create_app()
