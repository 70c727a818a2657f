"""
Snapshot lineage: latest-snapshot selection and clone sequencing.
"""

import logging
from typing import Iterable, Optional, Tuple

from zfs_api.errors import InvalidPathError, NoSnapshotError, PropertyUndefinedError
from zfs_api.models.dataset import UNDEFINED, CloneInfo
from zfs_api.services.backend import DatasetHandle, ZfsBackend

logger = logging.getLogger(__name__)


def select_latest(snapshots: Iterable[Tuple[str, int]]) -> str:
    """
    Path of the snapshot with the greatest creation time, "" if none.

    Ties go to the snapshot enumerated last: a later entry with the same
    timestamp replaces the current pick.
    """
    latest = ""
    max_ts: Optional[int] = None
    for path, creation in snapshots:
        if max_ts is None or creation >= max_ts:
            max_ts = creation
            latest = path
    return latest


def latest_snapshot(backend: ZfsBackend, dataset: str) -> str:
    """Latest snapshot of `dataset`, or "" when it has none. Raises NotFoundError."""
    handle = backend.open_one(dataset)
    try:
        return select_latest(backend.snapshots(handle))
    finally:
        backend.close(handle)


def clone(backend: ZfsBackend, source: str, target: str) -> str:
    """Clone snapshot `source` to `target` and return the target path."""
    if "@" not in source:
        raise InvalidPathError(source, "clone source must be a snapshot")

    snapshot: Optional[DatasetHandle] = None
    created: Optional[DatasetHandle] = None
    try:
        snapshot = backend.open_one(source)
        created = backend.clone(snapshot, target)
        logger.info(f"Cloned {source} to {created.name}")
        return created.name
    finally:
        backend.close(created)
        backend.close(snapshot)


def clone_from_latest(backend: ZfsBackend, origin: str, target: str) -> str:
    """
    Clone the latest snapshot of `origin` to `target`.

    The snapshot is resolved first and the clone primitive is only reached
    once it is known to exist. Returns the snapshot path that was cloned.
    """
    source = latest_snapshot(backend, origin)
    if not source:
        raise NoSnapshotError(origin)
    clone(backend, source, target)
    return source


def _property_or_undefined(backend: ZfsBackend, handle: DatasetHandle, prop: str) -> str:
    try:
        return backend.get_property(handle, prop)
    except PropertyUndefinedError:
        return UNDEFINED


def clone_info(backend: ZfsBackend, dataset: str) -> CloneInfo:
    """Origin snapshot and bytes written since, "-" for a non-clone."""
    handle = backend.open_one(dataset)
    try:
        return CloneInfo(
            origin=_property_or_undefined(backend, handle, "origin"),
            written=_property_or_undefined(backend, handle, "written")
        )
    finally:
        backend.close(handle)
