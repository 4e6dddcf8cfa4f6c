"""
Pydantic models for the Metadata Selection Tree (type -> object -> item)
produced and consumed by Aura Helper CLI.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MetadataItem(BaseModel):
    """Leaf node of the tree (e.g. a single field of a custom object)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    checked: bool = False
    path: str | None = None
    suffix: str | None = None


class MetadataObject(MetadataItem):
    """Second level node (e.g. an object inside a metadata type)."""

    childs: dict[str, MetadataItem] = Field(default_factory=dict)


class MetadataType(MetadataObject):
    """Root level node (a metadata type such as CustomObject or Profile)."""

    childs: dict[str, MetadataObject] = Field(default_factory=dict)


def deserialize_metadata_types(data: Any) -> dict[str, MetadataType]:
    """
    Builds a `{type name: MetadataType}` mapping from the tool's JSON result.

    Nodes without a `name` get the key they are stored under.
    """
    if not data or not isinstance(data, dict):
        return {}
    result: dict[str, MetadataType] = {}
    for type_name, raw_type in data.items():
        if isinstance(raw_type, MetadataType):
            result[type_name] = raw_type
            continue
        metadata_type = MetadataType.model_validate(raw_type)
        if not metadata_type.name:
            metadata_type.name = type_name
        for object_name, metadata_object in metadata_type.childs.items():
            metadata_object.name = metadata_object.name or object_name
            for item_name, metadata_item in metadata_object.childs.items():
                metadata_item.name = metadata_item.name or item_name
        result[type_name] = metadata_type
    return result
