"""
Snapshot creation, rollback, recursive destroy and zvol presence checks.
"""

import logging
import os
from typing import Optional

from zfs_api.config import settings
from zfs_api.errors import DeviceNotPresentError, InvalidPathError
from zfs_api.models.dataset import dataset_of
from zfs_api.services.backend import DatasetHandle, ZfsBackend

logger = logging.getLogger(__name__)


def create_snapshot(backend: ZfsBackend, source: str, name: str) -> str:
    """Create `source@name` and return the snapshot path."""
    if "@" in source:
        raise InvalidPathError(source, "snapshot source must be a dataset")
    if "@" in name or "/" in name:
        raise InvalidPathError(name, "snapshot name may not contain '@' or '/'")

    path = backend.create_snapshot(source, name)
    logger.info(f"Snapshot {path} created")
    return path


def destroy(backend: ZfsBackend, dataset: str) -> None:
    """Destroy `dataset` and everything below it. Irreversible."""
    handle = backend.open_one(dataset)
    try:
        backend.destroy_recursive(handle)
        logger.info(f"Dataset {dataset} destroyed")
    finally:
        backend.close(handle)


def rollback(backend: ZfsBackend, snapshot: str) -> None:
    """Roll the snapshot's dataset back to it, discarding later snapshots."""
    if "@" not in snapshot:
        raise InvalidPathError(snapshot, "rollback target must be a snapshot")

    handle: Optional[DatasetHandle] = None
    snap: Optional[DatasetHandle] = None
    try:
        handle = backend.open_one(dataset_of(snapshot))
        snap = backend.open_one(snapshot)
        backend.rollback(handle, snap)
        logger.info(f"Rolled back {handle.name} to {snapshot}")
    finally:
        backend.close(snap)
        backend.close(handle)


def zvol_path(dataset: str, root: Optional[str] = None) -> str:
    """Device node of a volume, e.g. /dev/zvol/tank/vol1."""
    root = root or settings.zvol_dev_root
    return f"{root.rstrip('/')}/{dataset}"


def check_zvol(dataset: str, root: Optional[str] = None) -> str:
    """Return the zvol device path if it exists. Never queries the backend."""
    root = (root or settings.zvol_dev_root).rstrip("/")
    path = zvol_path(dataset, root)
    if not os.path.exists(path):
        raise DeviceNotPresentError(dataset, root)
    return path
