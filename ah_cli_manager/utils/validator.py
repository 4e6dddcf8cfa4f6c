"""
Input validation helpers used before any Aura Helper CLI process is spawned.
"""

import json
import os
from pathlib import Path
from typing import Any

from ah_cli_manager.exceptions import (
    InvalidDirectoryPathError,
    InvalidFilePathError,
    MissingDirectoryError,
    MissingFileError,
    WrongDirectoryPathError,
    WrongFilePathError,
    WrongFormatError,
)


def _to_absolute(path: Any) -> Path | None:
    if not isinstance(path, (str, os.PathLike)) or not str(path).strip():
        return None
    try:
        return Path(path).expanduser().resolve()
    except (OSError, RuntimeError):
        return None


def is_file(path: Any) -> bool:
    """Returns True if `path` denotes an existing regular file."""
    absolute = _to_absolute(path)
    return absolute is not None and absolute.is_file()


def validate_file_path(path: Any) -> str:
    """
    Validates a file path and returns it as an absolute path string.

    Raises:
        WrongFilePathError: If the value is not a path or can't be made absolute.
        MissingFileError: If the path does not exist.
        InvalidFilePathError: If the path exists but is not a file.
    """
    absolute = _to_absolute(path)
    if absolute is None:
        raise WrongFilePathError(f"Wrong file path. Expected a path string, got {path!r}")
    if not absolute.exists():
        raise MissingFileError(f"File '{absolute}' not found or not accessible")
    if not absolute.is_file():
        raise InvalidFilePathError(f"Path '{absolute}' is not a file")
    return str(absolute)


def validate_folder_path(path: Any) -> str:
    """
    Validates a directory path and returns it as an absolute path string.

    Raises:
        WrongDirectoryPathError: If the value is not a path or can't be made absolute.
        MissingDirectoryError: If the path does not exist.
        InvalidDirectoryPathError: If the path exists but is not a directory.
    """
    absolute = _to_absolute(path)
    if absolute is None:
        raise WrongDirectoryPathError(
            f"Wrong directory path. Expected a path string, got {path!r}"
        )
    if not absolute.exists():
        raise MissingDirectoryError(f"Directory '{absolute}' not found or not accessible")
    if not absolute.is_dir():
        raise InvalidDirectoryPathError(f"Path '{absolute}' is not a directory")
    return str(absolute)


def validate_metadata_json(data: Any) -> dict[str, Any]:
    """
    Loads a Metadata Selection Tree from a dict, a JSON string or a JSON file path.

    Raises:
        WrongFormatError: If the data can't be parsed or is not a JSON object.
    """
    if isinstance(data, os.PathLike) or (isinstance(data, str) and is_file(data)):
        file_path = validate_file_path(data)
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise WrongFormatError(f"Wrong Metadata JSON file '{file_path}': {e}") from e
    elif isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise WrongFormatError(f"Wrong Metadata JSON format: {e}") from e

    if not isinstance(data, dict):
        raise WrongFormatError(
            f"Wrong Metadata JSON format. Expected an object, got {type(data).__name__}"
        )
    return data
