"""
Pydantic models for datasets, snapshots and clones.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

# Value used for any property the backend cannot resolve
UNDEFINED = "-"


class DatasetEntity(BaseModel):
    """One row of a dataset listing."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = UNDEFINED
    used: str = UNDEFINED
    available: str = Field(default=UNDEFINED, alias="avail")
    referenced: str = Field(default=UNDEFINED, alias="refer")
    mountpoint: str = UNDEFINED

    def to_wire(self) -> dict:
        """Field mapping used by both encodings (name, used, avail, refer, mountpoint)."""
        return self.model_dump(by_alias=True)


class DatasetNode(BaseModel):
    """A dataset plus its children, in backend enumeration order."""
    entity: DatasetEntity
    children: List["DatasetNode"] = []


class CloneInfo(BaseModel):
    """Lineage of a cloned dataset back to its origin snapshot."""
    origin: str = UNDEFINED
    written: str = UNDEFINED


def dataset_of(snapshot_path: str) -> str:
    """Dataset part of a `<dataset>@<snap>` path."""
    return snapshot_path.split("@", 1)[0]
