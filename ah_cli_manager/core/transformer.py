"""
Converts user selections into the flat `Type[:Object[:Item]]` list that
Aura Helper CLI accepts on its `--type` options.
"""

from typing import Any, Iterator

from ah_cli_manager.exceptions import WrongDatatypeError, WrongFormatError
from ah_cli_manager.models.metadata import MetadataType
from ah_cli_manager.utils.validator import validate_metadata_json

# Type, object, item
MAX_DEPTH = 3


def _node_checked(node: Any) -> bool:
    if isinstance(node, dict):
        return bool(node.get("checked"))
    return bool(getattr(node, "checked", False))


def _node_childs(node: Any) -> dict[str, Any]:
    childs = node.get("childs") if isinstance(node, dict) else getattr(node, "childs", None)
    if childs is None:
        return {}
    if not isinstance(childs, dict):
        raise WrongFormatError(
            f"Wrong Metadata JSON format. 'childs' must be an object, got {type(childs).__name__}"
        )
    return childs


def _checked_paths(prefix: str, node: Any, depth: int = 1) -> Iterator[str]:
    """Yields the topmost checked paths under `node` (the node included)."""
    if _node_checked(node):
        yield prefix
        return
    # Items are leaves
    if depth >= MAX_DEPTH:
        return
    for child_name, child in _node_childs(node).items():
        yield from _checked_paths(f"{prefix}:{child_name}", child, depth + 1)


def transform_types_to_cli_input(
    types: str | list[str] | dict[str, MetadataType | dict] | None,
    only_types: bool = False,
) -> list[str] | None:
    """
    Flattens a type list or a Metadata Selection Tree.

    Args:
        types: A list of type names, or a Metadata Selection Tree given as a
            dict, a JSON string or the path to a JSON file.
        only_types: When True, only checked types are returned and their
            children are not inspected.

    Returns:
        The list of selected paths (empty when nothing is selected), or None
        when no selection was provided at all.

    Raises:
        WrongDatatypeError: If a type list contains non-string values.
        WrongFormatError: If the selection tree can't be parsed.
    """
    if types is None or types == "":
        return None

    if isinstance(types, (list, tuple)):
        result = []
        for type_name in types:
            if not isinstance(type_name, str):
                raise WrongDatatypeError("The types list must contains Strings only")
            result.append(type_name)
        return result

    metadata_types = validate_metadata_json(types)
    result = []
    for type_name, metadata_type in metadata_types.items():
        if only_types:
            if _node_checked(metadata_type):
                result.append(type_name)
        else:
            result.extend(_checked_paths(type_name, metadata_type))
    return result
