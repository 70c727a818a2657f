"""
Action dispatcher.

Maps an action name plus its named parameters to one routine and folds the
outcome, success or failure, into a ResponseEnvelope. Holds no state
between calls.
"""

import logging
from typing import Callable, Dict, Mapping, Optional, Tuple

from zfs_api.errors import MissingParameterError, UnknownActionError, ZfsApiError
from zfs_api.models.response import (
    EntitiesData,
    FieldsData,
    ResponseData,
    ResponseEnvelope,
    ValueData,
)
from zfs_api.services import datasets, lineage, walker
from zfs_api.services.backend import ZfsBackend

logger = logging.getLogger(__name__)

# action -> required query parameters
OPERATIONS: Dict[str, Tuple[str, ...]] = {
    "listall": (),
    "snapshot": ("snapsource", "snapname"),
    "lastsnapshot": ("dataset",),
    "cloneinfo": ("dataset",),
    "destroy": ("dataset",),
    "clone": ("origin", "dataset"),
    "clonelast": ("origin", "dataset"),
    "rollback": ("snapshot",),
    "checkzvol": ("dataset",),
}

Handler = Callable[[Mapping[str, str]], Optional[ResponseData]]


class Dispatcher:
    """Runs one action against a backend and reports it as an envelope."""

    def __init__(self, backend: ZfsBackend, zvol_root: Optional[str] = None):
        self.backend = backend
        self.zvol_root = zvol_root

    def resolve(self, action: str, params: Mapping[str, str]) -> Handler:
        """Handler for `action`, after checking its parameters are present."""
        if action not in OPERATIONS:
            raise UnknownActionError(action)
        for name in OPERATIONS[action]:
            if not params.get(name):
                raise MissingParameterError(action, name)
        return getattr(self, f"_do_{action}")

    def execute(self, action: str, handler: Handler, params: Mapping[str, str]) -> ResponseEnvelope:
        envelope = ResponseEnvelope()
        envelope.set_action(action)
        try:
            data = handler(params)
        except ZfsApiError as e:
            logger.error(f"Action {action} failed: {e}")
            envelope.fail(str(e))
        except Exception as e:
            logger.exception(f"Action {action} failed unexpectedly")
            envelope.fail(str(e) or type(e).__name__)
        else:
            envelope.succeed(data)
        return envelope

    def dispatch(self, action: str, params: Mapping[str, str]) -> ResponseEnvelope:
        """Resolve and run `action`; request errors also become error envelopes."""
        try:
            handler = self.resolve(action, params)
        except ZfsApiError as e:
            return error_envelope(action, str(e))
        return self.execute(action, handler, params)

    # =========================================================================
    # Operations
    # =========================================================================

    def _do_listall(self, params: Mapping[str, str]) -> ResponseData:
        return EntitiesData(entities=walker.list_all(self.backend))

    def _do_snapshot(self, params: Mapping[str, str]) -> None:
        datasets.create_snapshot(self.backend, params["snapsource"], params["snapname"])

    def _do_lastsnapshot(self, params: Mapping[str, str]) -> ResponseData:
        latest = lineage.latest_snapshot(self.backend, params["dataset"])
        return ValueData(key="lastsnapshot", value=latest)

    def _do_cloneinfo(self, params: Mapping[str, str]) -> ResponseData:
        info = lineage.clone_info(self.backend, params["dataset"])
        return FieldsData(fields=info.model_dump())

    def _do_destroy(self, params: Mapping[str, str]) -> None:
        datasets.destroy(self.backend, params["dataset"])

    def _do_clone(self, params: Mapping[str, str]) -> None:
        lineage.clone(self.backend, params["origin"], params["dataset"])

    def _do_clonelast(self, params: Mapping[str, str]) -> None:
        lineage.clone_from_latest(self.backend, params["origin"], params["dataset"])

    def _do_rollback(self, params: Mapping[str, str]) -> None:
        datasets.rollback(self.backend, params["snapshot"])

    def _do_checkzvol(self, params: Mapping[str, str]) -> None:
        datasets.check_zvol(params["dataset"], root=self.zvol_root)


def error_envelope(action: str, message: str) -> ResponseEnvelope:
    envelope = ResponseEnvelope()
    envelope.set_action(action)
    envelope.fail(message)
    return envelope
