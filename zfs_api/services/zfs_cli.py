"""
ZFS command line backend.

Implements the backend capability surface by executing `zfs` commands and
parsing their tab-separated (-H) output.
"""

import logging
import subprocess
from typing import Dict, List, NoReturn, Optional, Sequence, Tuple

from zfs_api.config import settings
from zfs_api.errors import (
    BackendError,
    CloneConflictError,
    NotFoundError,
    PropertyUndefinedError,
)
from zfs_api.services.backend import DatasetHandle, ZfsBackend

logger = logging.getLogger(__name__)


class ZfsCliBackend(ZfsBackend):
    """Backend driving the `zfs` binary."""

    def __init__(self, zfs_binary: Optional[str] = None, timeout: Optional[int] = None):
        self.zfs = zfs_binary or settings.zfs_binary
        self.timeout = timeout or settings.command_timeout_seconds

    def _run_command(self, cmd: List[str]) -> Tuple[int, str, str]:
        """Execute a command and return (exit_code, stdout, stderr)."""
        logger.debug(f"Running command: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Command timed out: {' '.join(cmd)}")
            return -1, "", "Command timed out"
        except OSError as e:
            logger.error(f"Command error: {e}")
            return -1, "", str(e)

        if result.returncode != 0:
            logger.error(f"Command failed: {result.stderr.strip()}")
        return result.returncode, result.stdout, result.stderr

    def _zfs(self, *args: str) -> Tuple[int, str, str]:
        return self._run_command([self.zfs, *args])

    @staticmethod
    def _raise_for(stderr: str, path: str, action: str) -> NoReturn:
        """Map zfs stderr to the error taxonomy."""
        message = stderr.strip() or f"{action} failed"
        if "does not exist" in message or "not found" in message:
            raise NotFoundError(path, detail=message)
        raise BackendError(f"{action} {path}: {message}", detail=message)

    @staticmethod
    def _lines(stdout: str) -> List[str]:
        return [line for line in stdout.strip().split("\n") if line]

    # =========================================================================
    # Open / enumerate
    # =========================================================================

    def open_all(self) -> List[DatasetHandle]:
        """
        Open every filesystem, volume and snapshot, grouped into a forest.

        A snapshot becomes a child of its dataset, after that dataset's
        child filesystems and volumes.
        """
        code, stdout, stderr = self._zfs(
            "list", "-H", "-o", "name,type", "-t", "filesystem,volume,snapshot"
        )
        if code != 0:
            raise BackendError(f"cannot list datasets: {stderr.strip()}", detail=stderr)

        roots: List[DatasetHandle] = []
        by_name: Dict[str, DatasetHandle] = {}
        snapshots: List[DatasetHandle] = []
        for line in self._lines(stdout):
            parts = line.split("\t")
            handle = DatasetHandle(
                name=parts[0],
                kind=parts[1] if len(parts) > 1 else "filesystem"
            )
            if handle.is_snapshot:
                snapshots.append(handle)
                continue
            by_name[handle.name] = handle

            parent_name = handle.name.rsplit("/", 1)[0] if "/" in handle.name else None
            parent = by_name.get(parent_name) if parent_name else None
            if parent is not None:
                parent.children.append(handle)
            else:
                roots.append(handle)

        for handle in snapshots:
            parent = by_name.get(handle.name.split("@", 1)[0])
            if parent is None:
                logger.warning(f"Snapshot {handle.name} has no listed dataset, skipping")
                continue
            parent.children.append(handle)

        return roots

    def open_one(self, path: str) -> DatasetHandle:
        code, stdout, stderr = self._zfs("list", "-H", "-o", "name,type", "-t", "all", path)
        if code != 0:
            if "does not exist" in stderr:
                raise NotFoundError(path, detail=stderr.strip())
            raise BackendError(f"cannot open {path}: {stderr.strip()}", detail=stderr)

        lines = self._lines(stdout)
        if not lines:
            raise NotFoundError(path)
        parts = lines[0].split("\t")
        return DatasetHandle(name=parts[0], kind=parts[1] if len(parts) > 1 else "filesystem")

    def get_property(self, handle: DatasetHandle, prop: str) -> str:
        code, stdout, stderr = self._zfs("get", "-H", "-o", "value", prop, handle.name)
        if code != 0:
            if "bad property" in stderr or "invalid property" in stderr:
                raise PropertyUndefinedError(handle.name, prop)
            self._raise_for(stderr, handle.name, f"get {prop}")

        value = stdout.rstrip("\n")
        # zfs prints "-" for properties that do not apply to this type
        if value in ("", "-"):
            raise PropertyUndefinedError(handle.name, prop)
        return value

    def get_properties(self, handle: DatasetHandle, props: Sequence[str]) -> Dict[str, str]:
        """All requested properties in one `zfs get`; "-" values are left out."""
        code, stdout, stderr = self._zfs(
            "get", "-H", "-o", "property,value", ",".join(props), handle.name
        )
        if code != 0:
            self._raise_for(stderr, handle.name, "get properties of")

        values = {}
        for line in self._lines(stdout):
            prop, _, value = line.partition("\t")
            if value not in ("", "-"):
                values[prop] = value
        return values

    def snapshots(self, handle: DatasetHandle) -> List[Tuple[str, int]]:
        """Own snapshots only (depth 1), with creation as a unix timestamp."""
        code, stdout, stderr = self._zfs(
            "list", "-H", "-p",
            "-o", "name,creation",
            "-t", "snapshot",
            "-d", "1",
            handle.name
        )
        if code != 0:
            self._raise_for(stderr, handle.name, "list snapshots of")

        snapshots = []
        for line in self._lines(stdout):
            parts = line.split("\t")
            if "@" not in parts[0]:
                continue
            try:
                creation = int(parts[1])
            except (IndexError, ValueError):
                logger.warning(f"Unparsable creation time for {parts[0]}: {line!r}")
                creation = 0
            snapshots.append((parts[0], creation))

        return snapshots

    # =========================================================================
    # Mutations
    # =========================================================================

    def create_snapshot(self, path: str, name: str) -> str:
        full_name = f"{path}@{name}"
        code, stdout, stderr = self._zfs("snapshot", full_name)
        if code != 0:
            self._raise_for(stderr, path, "snapshot")
        return full_name

    def clone(self, snapshot: DatasetHandle, target: str) -> DatasetHandle:
        code, stdout, stderr = self._zfs("clone", snapshot.name, target)
        if code != 0:
            if "already exists" in stderr:
                raise CloneConflictError(target, detail=stderr.strip())
            self._raise_for(stderr, snapshot.name, "clone")
        return DatasetHandle(name=target)

    def destroy_recursive(self, handle: DatasetHandle) -> None:
        code, stdout, stderr = self._zfs("destroy", "-r", handle.name)
        if code != 0:
            self._raise_for(stderr, handle.name, "destroy")

    def rollback(self, handle: DatasetHandle, snapshot: DatasetHandle) -> None:
        if snapshot.name.split("@", 1)[0] != handle.name:
            raise BackendError(f"snapshot {snapshot.name} does not belong to {handle.name}")
        code, stdout, stderr = self._zfs("rollback", "-r", snapshot.name)
        if code != 0:
            self._raise_for(stderr, snapshot.name, "rollback to")

    # =========================================================================
    # Misc
    # =========================================================================

    def version(self) -> str:
        """First line of `zfs --version`, or "unknown"."""
        code, stdout, stderr = self._zfs("--version")
        if code == 0 and stdout.strip():
            return stdout.strip().split("\n")[0]
        return "unknown"


# Singleton instance
zfs_backend = ZfsCliBackend()
