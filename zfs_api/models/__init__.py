"""Pydantic models for ZFS API"""

from .dataset import UNDEFINED, CloneInfo, DatasetEntity, DatasetNode
from .response import (
    EntitiesData,
    FieldsData,
    ResponseEnvelope,
    ResponseStatus,
    ValueData,
)

__all__ = [
    'UNDEFINED',
    'CloneInfo',
    'DatasetEntity',
    'DatasetNode',
    'EntitiesData',
    'FieldsData',
    'ResponseEnvelope',
    'ResponseStatus',
    'ValueData',
]
