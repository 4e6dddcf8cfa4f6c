"""
Pydantic model for the CLI Manager configuration.
Provides validation for all settings handed to Aura Helper CLI processes.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

IGNORE_FILE_NAME = ".ahignore.json"

# Sort orders understood by the XML compressor of Aura Helper CLI
SORT_ORDERS = {
    "simpleFirst": "Simple XML elements first, complex ones after",
    "complexFirst": "Complex XML elements first, simple ones after",
    "alphabetAsc": "Alphabetical ascending",
    "alphabetDesc": "Alphabetical descending",
}

CREATE_TYPES = ("package", "destructive", "both")
DELETE_ORDERS = ("before", "after")


class ManagerConfig(BaseModel):
    """A validated configuration model for the CLI Manager."""

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    # Project
    project_folder: str = "./"
    api_version: str | None = None
    namespace_prefix: str = ""

    # XML handling
    compress_files: bool = False
    sort_order: str | None = None

    # Files
    ignore_file: str | None = None
    output_path: str | None = None

    # Execution
    allow_concurrence: bool = False

    @field_validator("project_folder", mode="before")
    @classmethod
    def validate_project_folder(cls, v):
        """Falls back to the current directory when no folder is given."""
        if v is None or v == "":
            return "./"
        if isinstance(v, Path):
            return str(v)
        return v

    @field_validator("namespace_prefix", mode="before")
    @classmethod
    def validate_namespace_prefix(cls, v):
        return "" if v is None else v

    @field_validator("api_version", mode="before")
    @classmethod
    def validate_api_version(cls, v):
        """Accepts numbers or numeric strings and stores them as 'NN.0'."""
        if v is None or v == "":
            return None
        if isinstance(v, bool) or not isinstance(v, (int, float, str)):
            raise ValueError("API version must be a number or a numeric string.")
        try:
            return f"{float(v):.1f}"
        except ValueError as e:
            raise ValueError(f"API version must be numeric, got {v!r}.") from e

    @field_validator("sort_order")
    @classmethod
    def validate_sort_order(cls, v: str | None) -> str | None:
        if v and v not in SORT_ORDERS:
            raise ValueError(
                f"Sort order must be one of: {', '.join(SORT_ORDERS)}."
            )
        return v or None

    @field_validator("ignore_file", "output_path", mode="before")
    @classmethod
    def validate_optional_path(cls, v):
        if v is None or v == "":
            return None
        if isinstance(v, Path):
            return str(v)
        return v

    @model_validator(mode="after")
    def validate_output_path(self) -> "ManagerConfig":
        """Checks that the output path does not point to an existing file."""
        if self.output_path and Path(self.output_path).is_file():
            raise ValueError("Output path must be a folder, not a file.")
        return self

    @property
    def resolved_ignore_file(self) -> str:
        """The configured ignore file, or `<project_folder>/.ahignore.json`."""
        if self.ignore_file:
            return self.ignore_file
        return self.project_folder.rstrip("/\\") + "/" + IGNORE_FILE_NAME

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        return set(cls.model_fields)
