"""
Action endpoint.

    GET /?action=<name>&<param>=<value>...&format=json|xml
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from zfs_api.config import settings
from zfs_api.dispatcher import Dispatcher, error_envelope
from zfs_api.encoding import MEDIA_TYPES, render
from zfs_api.errors import ZfsApiError
from zfs_api.models.response import ResponseEnvelope
from zfs_api.services.backend import ZfsBackend
from zfs_api.services.zfs_cli import zfs_backend

router = APIRouter(tags=["actions"])

# Query parameters that select the route rather than feed the action
_CONTROL_PARAMS = ("action", "format")


def get_backend() -> ZfsBackend:
    return zfs_backend


def get_dispatcher(backend: ZfsBackend = Depends(get_backend)) -> Dispatcher:
    return Dispatcher(backend, zvol_root=settings.zvol_dev_root)


def _respond(envelope: ResponseEnvelope, fmt: str, status_code: int = 200) -> Response:
    body, media_type = render(envelope, fmt)
    return Response(content=body, media_type=media_type, status_code=status_code)


@router.get("/")
def run_action(
    request: Request,
    action: str = "",
    requested_format: Optional[str] = Query(None, alias="format"),
    dispatcher: Dispatcher = Depends(get_dispatcher)
):
    """
    Run one ZFS action.

    Operation failures come back as an error envelope with HTTP 200; an
    unknown action, a missing parameter or an unknown format get HTTP 400.
    Declared sync so every request runs on its own worker thread.
    """
    fmt = (requested_format or settings.default_format).lower()
    if fmt not in MEDIA_TYPES:
        return _respond(error_envelope(action, f"unsupported format: {fmt}"), "json", 400)

    if not action:
        return _respond(error_envelope("", "missing parameter: action"), fmt, 400)

    params = {
        key: value
        for key, value in request.query_params.items()
        if key not in _CONTROL_PARAMS
    }

    try:
        handler = dispatcher.resolve(action, params)
    except ZfsApiError as e:
        return _respond(error_envelope(action, str(e)), fmt, 400)

    return _respond(dispatcher.execute(action, handler, params), fmt)
