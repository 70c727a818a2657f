"""
ZFS API - FastAPI Application Entry Point

Serves the action endpoint and a health check.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import Response

from zfs_api import __version__
from zfs_api.config import settings
from zfs_api.dispatcher import error_envelope
from zfs_api.encoding import MEDIA_TYPES, render
from zfs_api.routers import api, health

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)
access_logger = logging.getLogger("zfs_api.access")

LOOPBACK_HOST = "127.0.0.1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"ZFS API v{__version__} starting...")
    logger.info(f"Config file: {settings.config_path}")
    if settings.is_dev:
        logger.info("Running in development environment")
    elif settings.api_host != LOOPBACK_HOST:
        logger.warning(
            f"ZFS API will be listening on {settings.api_host}. "
            f"Using other than {LOOPBACK_HOST} address is NOT RECOMMENDED for production environment!"
        )

    yield

    logger.info("ZFS API shutting down...")


# Create FastAPI app
app = FastAPI(
    title="ZFS API",
    description="Action-dispatch API for ZFS datasets, snapshots and clones",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)


@app.middleware("http")
async def access_log(request: Request, call_next):
    """One line per request: client, request line, status, duration."""
    started = time.monotonic()
    response = await call_next(request)
    elapsed_ms = int((time.monotonic() - started) * 1000)
    client = request.client.host if request.client else "-"
    target = request.url.path
    if request.url.query:
        target = f"{target}?{request.url.query}"
    access_logger.info(
        f'{client} "{request.method} {target}" {response.status_code} {elapsed_ms}ms'
    )
    return response


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    fmt = (request.query_params.get("format") or settings.default_format).lower()
    if fmt not in MEDIA_TYPES:
        fmt = "json"
    envelope = error_envelope(request.query_params.get("action", ""), f"Internal server error: {exc}")
    body, media_type = render(envelope, fmt)
    return Response(content=body, media_type=media_type, status_code=500)


# Include routers
app.include_router(health.router)
app.include_router(api.router)


def run():
    """Run the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "zfs_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
