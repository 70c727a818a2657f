"""
Dataset tree walker.

Turns the backend's forest of dataset handles into a flat, pre-order list
of DatasetEntity rows.
"""

import logging
from typing import List

from zfs_api.errors import ZfsApiError
from zfs_api.models.dataset import UNDEFINED, DatasetEntity, DatasetNode
from zfs_api.services.backend import DatasetHandle, ZfsBackend

logger = logging.getLogger(__name__)

# DatasetEntity field -> ZFS property
ENTITY_PROPERTIES = (
    ("name", "name"),
    ("used", "used"),
    ("available", "available"),
    ("referenced", "referenced"),
    ("mountpoint", "mountpoint"),
)


def resolve_entity(backend: ZfsBackend, handle: DatasetHandle) -> DatasetEntity:
    """
    Read the listing properties of one dataset.

    A property that cannot be read becomes "-" and the rest are still
    filled in.
    """
    props = [prop for _, prop in ENTITY_PROPERTIES]
    try:
        found = backend.get_properties(handle, props)
    except ZfsApiError as e:
        logger.warning(f"Cannot read properties of {handle.name}: {e}")
        found = {}

    values = {
        field_name: found.get(prop, UNDEFINED)
        for field_name, prop in ENTITY_PROPERTIES
    }
    if values["name"] == UNDEFINED:
        values["name"] = handle.name

    return DatasetEntity(**values)


def build_tree(backend: ZfsBackend, roots: List[DatasetHandle]) -> List[DatasetNode]:
    """Resolve every handle into a DatasetNode, keeping backend child order."""
    nodes = []
    for handle in roots:
        nodes.append(DatasetNode(
            entity=resolve_entity(backend, handle),
            children=build_tree(backend, backend.children(handle))
        ))
    return nodes


def flatten_tree(nodes: List[DatasetNode]) -> List[DatasetEntity]:
    """Pre-order: a node, then each of its children's subtrees in order."""
    entities = []
    for node in nodes:
        entities.append(node.entity)
        entities.extend(flatten_tree(node.children))
    return entities


def flatten(backend: ZfsBackend, roots: List[DatasetHandle]) -> List[DatasetEntity]:
    return flatten_tree(build_tree(backend, roots))


def list_all(backend: ZfsBackend) -> List[DatasetEntity]:
    """Every dataset the backend knows about. Fails only if the set cannot be opened."""
    roots = backend.open_all()
    try:
        return flatten(backend, roots)
    finally:
        backend.close_all(roots)
