"""
Response envelope shared by the JSON and XML encodings.
"""

from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field

from zfs_api.models.dataset import DatasetEntity


class ResponseStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class EntitiesData(BaseModel):
    """Dataset listing (listall)."""
    kind: Literal["entities"] = "entities"
    entities: List[DatasetEntity] = []


class ValueData(BaseModel):
    """A single named string value (lastsnapshot)."""
    kind: Literal["value"] = "value"
    key: str
    value: str


class FieldsData(BaseModel):
    """A small fixed set of named string values (cloneinfo)."""
    kind: Literal["fields"] = "fields"
    fields: Dict[str, str] = {}


ResponseData = Annotated[
    Union[EntitiesData, ValueData, FieldsData],
    Field(discriminator="kind"),
]

# Data shape each action produces on success; used when decoding
DATA_SHAPES = {
    "listall": "entities",
    "lastsnapshot": "value",
    "cloneinfo": "fields",
}


class ResponseEnvelope(BaseModel):
    """
    Outcome of one dispatched action.

    `error_message` is non-empty iff status is ERROR, and an error envelope
    never carries data.
    """
    action: str = ""
    status: Optional[ResponseStatus] = None
    error_message: str = ""
    data: Optional[ResponseData] = None

    def set_action(self, action: str) -> None:
        self.action = action

    def succeed(self, data: Optional[ResponseData] = None) -> None:
        self.status = ResponseStatus.SUCCESS
        self.error_message = ""
        self.data = data

    def fail(self, message: str) -> None:
        self.status = ResponseStatus.ERROR
        self.error_message = message or "unknown error"
        self.data = None

    @property
    def is_error(self) -> bool:
        return self.status == ResponseStatus.ERROR

    def data_fields(self) -> List[Tuple[str, str]]:
        """Flat (name, value) pairs for value/fields data, empty otherwise."""
        if isinstance(self.data, ValueData):
            return [(self.data.key, self.data.value)]
        if isinstance(self.data, FieldsData):
            return list(self.data.fields.items())
        return []

    def entities(self) -> Optional[List[DatasetEntity]]:
        if isinstance(self.data, EntitiesData):
            return self.data.entities
        return None


def build_data(action: str, fields: Dict[str, str]) -> Optional[ResponseData]:
    """Rebuild typed data for a decoded value/fields section."""
    if not fields:
        return None
    if DATA_SHAPES.get(action) == "value" and len(fields) == 1:
        (key, value), = fields.items()
        return ValueData(key=key, value=value)
    return FieldsData(fields=dict(fields))
