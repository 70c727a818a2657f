"""
Health endpoint.
"""

import time

from fastapi import APIRouter
from pydantic import BaseModel

from zfs_api import __version__
from zfs_api.services.zfs_cli import zfs_backend

router = APIRouter(tags=["health"])

# Track startup time
_startup_time = time.time()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    uptime_seconds: int
    version: str
    zfs_version: str


@router.get("/v1/health", response_model=HealthResponse)
def health_check():
    """
    Health check endpoint.

    Reports uptime, service version and the ZFS version the backend sees.
    """
    zfs_version = zfs_backend.version()
    return HealthResponse(
        status="healthy" if zfs_version != "unknown" else "no_zfs",
        uptime_seconds=int(time.time() - _startup_time),
        version=__version__,
        zfs_version=zfs_version
    )
