"""FastAPI application entry point for StoryWeaver."""

import asyncio
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, status
from fastapi.responses import JSONResponse

from app.api.v1.router import router as v1_router
from app.config import get_settings
from app.dependencies import get_db_client, get_watch_client
from app.services.profile_watcher import ProfileWatcher, dispatch_to_loop
from app.services.regeneration import StoryRegenerator
from app.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

# Get settings
settings = get_settings()

# Configure logging
configure_logging(debug=settings.debug)


def _start_profile_watcher() -> ProfileWatcher:
    """Watch child profiles and run each change on this event loop."""
    regenerator = StoryRegenerator.from_client(get_db_client(settings), settings)
    watcher = ProfileWatcher(
        client=get_watch_client(settings),
        document_pattern=settings.children_document_pattern,
        on_event=dispatch_to_loop(regenerator.handle, asyncio.get_running_loop()),
    )
    watcher.start()
    return watcher


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown events."""
    logger.info(f"Starting {settings.app_name} API v{settings.api_version}")
    logger.info(f"Running in {settings.environment} mode")

    watcher = None
    if settings.watch_profiles:
        watcher = _start_profile_watcher()
        logger.info("Profile watcher started")

    yield

    if watcher:
        watcher.stop()
    logger.info(f"Shutting down {settings.app_name} API")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Regenerates personalized stories when child profiles change",
    version=settings.api_version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.include_router(v1_router)


@app.get(
    "/health",
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Health check endpoint",
)
async def health_check() -> JSONResponse:
    """Health check endpoint for monitoring."""
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "success": True,
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.api_version,
            "watching_profiles": settings.watch_profiles,
        },
    )


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )
