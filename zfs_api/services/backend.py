"""
Storage backend capability interface.

The orchestration code (walker, lineage, dispatcher) only talks to ZFS
through this surface. `ZfsCliBackend` is the production implementation;
tests use an in-memory one.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from zfs_api.errors import PropertyUndefinedError, ZfsApiError

logger = logging.getLogger(__name__)

SNAPSHOT = "snapshot"


@dataclass
class DatasetHandle:
    """An open dataset, volume or snapshot."""
    name: str
    kind: str = "filesystem"  # filesystem, volume, snapshot
    children: List["DatasetHandle"] = field(default_factory=list)
    closed: bool = False

    @property
    def is_snapshot(self) -> bool:
        return self.kind == SNAPSHOT


class ZfsBackend(ABC):
    """Capabilities the management layer needs from the storage engine."""

    @abstractmethod
    def open_all(self) -> List[DatasetHandle]:
        """Open every root dataset, children attached, in enumeration order."""

    @abstractmethod
    def open_one(self, path: str) -> DatasetHandle:
        """Open one dataset or snapshot. Raises NotFoundError."""

    @abstractmethod
    def get_property(self, handle: DatasetHandle, prop: str) -> str:
        """Read a property value. Raises PropertyUndefinedError."""

    def get_properties(self, handle: DatasetHandle, props: Sequence[str]) -> Dict[str, str]:
        """
        Read several properties of one handle.

        Properties that are undefined or cannot be read are left out of the
        result; backends that can fetch them in one round trip override this.
        """
        values = {}
        for prop in props:
            try:
                values[prop] = self.get_property(handle, prop)
            except PropertyUndefinedError:
                continue
            except ZfsApiError as e:
                logger.warning(f"Cannot read {prop} of {handle.name}: {e}")
        return values

    @abstractmethod
    def snapshots(self, handle: DatasetHandle) -> List[Tuple[str, int]]:
        """(path, creation) of the dataset's own snapshots, in enumeration order."""

    @abstractmethod
    def create_snapshot(self, path: str, name: str) -> str:
        """Create `path@name` and return the full snapshot path."""

    @abstractmethod
    def clone(self, snapshot: DatasetHandle, target: str) -> DatasetHandle:
        """Clone a snapshot to `target`. Raises CloneConflictError."""

    @abstractmethod
    def destroy_recursive(self, handle: DatasetHandle) -> None:
        """Destroy a dataset with all descendants and snapshots."""

    @abstractmethod
    def rollback(self, handle: DatasetHandle, snapshot: DatasetHandle) -> None:
        """Roll a dataset back to a snapshot, destroying later snapshots."""

    def children(self, handle: DatasetHandle) -> List[DatasetHandle]:
        return list(handle.children)

    def close(self, handle: Optional[DatasetHandle]) -> None:
        """Release a handle. Safe on None and on already closed handles."""
        if handle is None or handle.closed:
            return
        handle.closed = True
        self._release(handle)

    def close_all(self, handles: List[DatasetHandle]) -> None:
        """Close a forest of handles, children first."""
        for handle in handles:
            self.close_all(handle.children)
            self.close(handle)

    def _release(self, handle: DatasetHandle) -> None:
        """Hook for backends holding real resources per handle."""
