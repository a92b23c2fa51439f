"""
Main FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from siteinspect import __version__
from siteinspect.api.error_handlers import register_error_handlers
from siteinspect.api.middleware import RequestCorrelationMiddleware
from siteinspect.api.reports import routers as report_routers
from siteinspect.core.config import settings
from siteinspect.core.logging_config import setup_logging
from siteinspect.core.report_store import get_storage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Lifespan context manager for FastAPI application.

    Startup configures logging and connects the report storage. Production
    also writes JSON logs to settings.log_dir, which is never served.
    """
    log_file = settings.log_file if settings.environment == "production" else None

    setup_logging(
        log_level="DEBUG" if settings.environment == "development" else "INFO",
        log_file=log_file,
        json_logs=(settings.environment == "production"),
        enable_console=True,
    )
    logger.info(f"Starting SiteInspect API v{__version__} in {settings.environment} mode")

    storage = get_storage()
    logger.info(f"Report storage: {'in-memory' if storage.use_fallback else 'redis'}")

    yield

    logger.info("Shutting down SiteInspect API")


app = FastAPI(
    title="SiteInspect API",
    description="Soil, environmental and surveyor site inspection reports",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestCorrelationMiddleware)

register_error_handlers(app)

for report_router in report_routers:
    app.include_router(report_router, prefix=settings.api_prefix)

# Stored document paths ("uploads/<name>") resolve under this mount
app.mount(
    settings.uploads_url_path,
    StaticFiles(directory=settings.uploads_dir, check_dir=False),
    name="uploads",
)


@app.get("/")
async def root() -> dict[str, str]:
    """
    Root endpoint returning API information.

    Returns:
        dict[str, str]: API information including name and version.
    """
    return {
        "name": "SiteInspect API",
        "version": __version__,
        "description": "Site inspection report management",
    }


@app.get("/health")
async def health_check() -> dict[str, str]:
    """
    Health check endpoint.

    Returns:
        dict[str, str]: Health status.
    """
    return {"status": "healthy"}


def run() -> None:
    """Serve the API with uvicorn on the configured port."""
    import uvicorn

    uvicorn.run("siteinspect.api.main:app", host="0.0.0.0", port=settings.port)
