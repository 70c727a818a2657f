"""
ZFS API error taxonomy.

Every failure raised below the dispatcher is one of these. The dispatcher
turns them into an error envelope; none of them stops the process.
"""

from typing import Optional


class ZfsApiError(Exception):
    """Base exception for ZFS API operations"""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(self.message)


class NotFoundError(ZfsApiError):
    """Raised when a dataset or snapshot path does not resolve"""

    def __init__(self, path: str, detail: Optional[str] = None):
        message = f"dataset does not exist: {path}"
        super().__init__(message, detail=detail)
        self.path = path


class NoSnapshotError(ZfsApiError):
    """Raised when latest-snapshot resolution finds no candidates"""

    def __init__(self, dataset: str):
        super().__init__(f"no snapshots found for {dataset}")
        self.dataset = dataset


class BackendError(ZfsApiError):
    """Any lower-level storage engine failure (I/O, permission, busy...)"""


class CloneConflictError(BackendError):
    """Raised when a clone target already exists"""

    def __init__(self, target: str, detail: Optional[str] = None):
        super().__init__(f"clone target already exists: {target}", detail=detail)
        self.target = target


class InvalidPathError(ZfsApiError):
    """Raised when a path has the wrong shape for the operation"""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{reason}: {path}")
        self.path = path


class PropertyUndefinedError(ZfsApiError):
    """Raised by a backend when a property does not apply to a dataset"""

    def __init__(self, path: str, prop: str):
        super().__init__(f"property '{prop}' is not defined for {path}")
        self.path = path
        self.prop = prop


class DeviceNotPresentError(ZfsApiError):
    """Raised when a zvol device node is missing"""

    def __init__(self, dataset: str, root: str):
        super().__init__(f"{dataset} not found in {root}")
        self.dataset = dataset
        self.root = root


class UnknownActionError(ZfsApiError):
    """Raised for an action name the dispatcher does not know"""

    def __init__(self, action: str):
        super().__init__(f"unknown action: {action}")
        self.action = action


class MissingParameterError(ZfsApiError):
    """Raised when a required action parameter is absent or empty"""

    def __init__(self, action: str, param: str):
        super().__init__(f"action '{action}' requires parameter '{param}'")
        self.action = action
        self.param = param


class UnsupportedFormatError(ZfsApiError):
    """Raised for an output format other than json or xml"""

    def __init__(self, fmt: str):
        super().__init__(f"unsupported format: {fmt}")
        self.fmt = fmt


class ConfigError(ZfsApiError):
    """Raised when the config file exists but cannot be parsed"""
