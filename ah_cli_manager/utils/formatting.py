"""
Helper functions for formatting data into human-readable strings.
"""

from typing import Any

VERSION_PREFIX = "Aura Helper CLI Version: v"


def strip_version_prefix(output: Any) -> str:
    """Turns 'Aura Helper CLI Version: v4.1.0' into '4.1.0'."""
    return str(output).replace(VERSION_PREFIX, "").strip()


def format_duration(seconds: float) -> str:
    """
    Formats a duration in seconds into a human-readable string (e.g., '2h 34m 12s').
    """
    s = int(seconds)
    hours, remainder = divmod(s, 3600)
    minutes, secs = divmod(remainder, 60)
    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def force_list(value: Any) -> list[Any]:
    """Wraps a single value in a list; lists and tuples are copied; None is empty."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def count_metadata(metadata_types: dict[str, Any]) -> dict[str, int]:
    """Counts the objects and items of a `{type: MetadataType}` mapping."""
    objects = 0
    items = 0
    for metadata_type in metadata_types.values():
        for metadata_object in metadata_type.childs.values():
            objects += 1
            items += len(metadata_object.childs)
    return {"types": len(metadata_types), "objects": objects, "items": items}
