"""
Rentwatch API - HTTP trigger for watcher runs.

Exposes a liveness probe, an on-demand ``/run`` endpoint, the delivered
listings, and an optional in-process scheduler that replaces an external cron.
"""
import asyncio
import logging
import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from rentwatch.config import ConfigError, Settings

from .config import config
from .routes import runs_router, seen_router
from .runner import RunCoordinator

# Configure logging
_handlers = [logging.StreamHandler(sys.stdout)]
if os.getenv("LOG_FILE_PATH"):
    _handlers.append(logging.FileHandler(os.environ["LOG_FILE_PATH"], encoding="utf-8"))

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=_handlers
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    # Startup
    logger.info("Starting Rentwatch API...")
    settings = Settings.from_env()
    try:
        settings.validate()
    except ConfigError as e:
        # Keep serving the probe; runs will report the error.
        logger.error(f"Configuration incomplete: {e}")

    coordinator = RunCoordinator(settings)
    app.state.settings = settings
    app.state.coordinator = coordinator

    scheduler = None
    if settings.schedule_minutes > 0:
        scheduler = asyncio.create_task(coordinator.schedule(settings.schedule_minutes))
    try:
        yield
    finally:
        # Shutdown
        if scheduler is not None:
            scheduler.cancel()
            try:
                await scheduler
            except asyncio.CancelledError:
                pass
        logger.info("Shutting down Rentwatch API...")


# Create FastAPI application
app = FastAPI(
    title=config.API_TITLE,
    version=config.API_VERSION,
    description=config.API_DESCRIPTION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


# Health check endpoint
@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    coordinator = request.app.state.coordinator
    last = coordinator.last_summary
    return {
        "status": "healthy",
        "version": config.API_VERSION,
        "running": coordinator.running,
        "last_run_finished_at": last.finished_at if last else None,
    }


# Include routers
app.include_router(runs_router)
app.include_router(seen_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "rentwatch_api.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        log_level=config.LOG_LEVEL.lower()
    )
