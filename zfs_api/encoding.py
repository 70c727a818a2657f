"""
Wire encodings for ResponseEnvelope.

Both encodings carry the same fields:

    JSON                          XML
    ----                          ---
    "action"                      <action>
    "status"                      <status>
    "errormessage" (error only)   <errormessage> (error only)
    "data": [ {entity}, ... ]     <zfsentity>...</zfsentity> per entity
    "data": {"key": "value"}      <key>value</key> directly under <response>

`errormessage` and `data` are left out entirely when they do not apply.
Data keys must not collide with action, status, errormessage or zfsentity.
"""

import json
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Optional, Tuple, Union

from zfs_api.errors import UnsupportedFormatError
from zfs_api.models.dataset import DatasetEntity
from zfs_api.models.response import (
    DATA_SHAPES,
    EntitiesData,
    ResponseEnvelope,
    ResponseStatus,
    build_data,
)

MEDIA_TYPES = {
    "json": "application/json",
    "xml": "application/xml",
}

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'
XML_ROOT = "response"
XML_ENTITY = "zfsentity"
_XML_RESERVED = {"action", "status", "errormessage", XML_ENTITY}


def _status_text(envelope: ResponseEnvelope) -> str:
    return envelope.status.value if envelope.status is not None else ""


def _status_from(text: str) -> Optional[ResponseStatus]:
    return ResponseStatus(text) if text else None


# =========================================================================
# JSON
# =========================================================================

def to_mapping(envelope: ResponseEnvelope) -> Dict[str, Any]:
    """Plain dict form of an envelope, with absent fields left out."""
    body: Dict[str, Any] = {
        "action": envelope.action,
        "status": _status_text(envelope),
    }
    if envelope.is_error:
        body["errormessage"] = envelope.error_message

    entities = envelope.entities()
    if entities is not None:
        body["data"] = [entity.to_wire() for entity in entities]
    else:
        fields = envelope.data_fields()
        if fields:
            body["data"] = dict(fields)
    return body


def render_json(envelope: ResponseEnvelope) -> str:
    return json.dumps(to_mapping(envelope), indent=4) + "\n"


def parse_json(text: Union[str, bytes]) -> ResponseEnvelope:
    body = json.loads(text)
    action = body.get("action", "")
    envelope = ResponseEnvelope(
        action=action,
        status=_status_from(body.get("status", "")),
        error_message=body.get("errormessage", "")
    )

    data = body.get("data")
    if isinstance(data, list):
        envelope.data = EntitiesData(
            entities=[DatasetEntity.model_validate(item) for item in data]
        )
    elif isinstance(data, dict):
        envelope.data = build_data(action, {k: str(v) for k, v in data.items()})
    return envelope


# =========================================================================
# XML
# =========================================================================

def render_xml(envelope: ResponseEnvelope) -> str:
    root = ET.Element(XML_ROOT)
    ET.SubElement(root, "action").text = envelope.action
    ET.SubElement(root, "status").text = _status_text(envelope)
    if envelope.is_error:
        ET.SubElement(root, "errormessage").text = envelope.error_message

    entities = envelope.entities()
    if entities is not None:
        for entity in entities:
            element = ET.SubElement(root, XML_ENTITY)
            for key, value in entity.to_wire().items():
                ET.SubElement(element, key).text = value
    else:
        for key, value in envelope.data_fields():
            ET.SubElement(root, key).text = value

    ET.indent(root, space="  ")
    return XML_HEADER + ET.tostring(root, encoding="unicode") + "\n"


def parse_xml(text: Union[str, bytes]) -> ResponseEnvelope:
    if isinstance(text, str):
        text = text.encode("utf-8")
    root = ET.fromstring(text)

    action = root.findtext("action") or ""
    status = _status_from(root.findtext("status") or "")
    envelope = ResponseEnvelope(
        action=action,
        status=status,
        error_message=root.findtext("errormessage") or ""
    )

    entities: List[DatasetEntity] = []
    fields: Dict[str, str] = {}
    for child in root:
        if child.tag == XML_ENTITY:
            entities.append(DatasetEntity.model_validate(
                {item.tag: item.text or "" for item in child}
            ))
        elif child.tag not in _XML_RESERVED:
            fields[child.tag] = child.text or ""

    if entities or (DATA_SHAPES.get(action) == "entities" and status == ResponseStatus.SUCCESS):
        envelope.data = EntitiesData(entities=entities)
    else:
        envelope.data = build_data(action, fields)
    return envelope


# =========================================================================
# Selection
# =========================================================================

_RENDERERS = {
    "json": render_json,
    "xml": render_xml,
}


def render(envelope: ResponseEnvelope, fmt: str) -> Tuple[str, str]:
    """Return (body, media type) for the requested encoding."""
    fmt = (fmt or "json").lower()
    if fmt not in _RENDERERS:
        raise UnsupportedFormatError(fmt)
    return _RENDERERS[fmt](envelope), MEDIA_TYPES[fmt]


def parse(text: Union[str, bytes], fmt: str) -> ResponseEnvelope:
    fmt = (fmt or "json").lower()
    if fmt == "json":
        return parse_json(text)
    if fmt == "xml":
        return parse_xml(text)
    raise UnsupportedFormatError(fmt)
