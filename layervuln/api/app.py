"""FastAPI application factory with lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from layervuln import __version__
from layervuln.api.routers import package_managers, reports, scans
from layervuln.core.config import get_settings
from layervuln.core.logging import configure_logging, get_logger
from layervuln.core.registry import get_registry

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    configure_logging()
    settings = get_settings()
    logger.info("Starting layervuln", debug=settings.app_debug, scanner=settings.scanner_binary)

    registry = get_registry()
    logger.info("Package managers ready", managers=registry.names())

    yield

    logger.info("layervuln stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="layervuln",
        description="Layer-attributed container image vulnerability scanning API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    api_prefix = "/api/v1"
    app.include_router(scans.router, prefix=api_prefix)
    app.include_router(reports.router, prefix=api_prefix)
    app.include_router(package_managers.router, prefix=api_prefix)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return app


app = create_app()
