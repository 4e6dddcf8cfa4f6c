"""
Models for the data exchanged with Aura Helper CLI: raw responses, progress
payloads and the typed results returned by the manager operations.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


@dataclass
class CLIResponse:
    """A structured response printed by Aura Helper CLI with `--json`."""

    status: Any = 0
    message: str = ""
    result: Any = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CLIResponse":
        return cls(
            status=data.get("status"),
            message=data.get("message") or "",
            result=data.get("result"),
            raw=data,
        )


@dataclass
class CLIProgress:
    """A progress notification emitted by a running Aura Helper CLI process."""

    message: str = ""
    increment: float | None = None
    percentage: float | None = None
    result: Any = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CLIProgress":
        # Some commands nest the progress fields inside "result"
        nested = data.get("result") if isinstance(data.get("result"), dict) else {}
        return cls(
            message=str(data.get("message") or nested.get("message") or ""),
            increment=data.get("increment", nested.get("increment")),
            percentage=data.get("percentage", nested.get("percentage")),
            result=data.get("result"),
            raw=data,
        )


class _ResultModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class RetrieveResult(_ResultModel):
    """Files affected by a special metadata retrieve."""

    inbound_files: list[Any] = Field(default_factory=list, alias="inboundFiles")
    outbound_files: list[Any] = Field(default_factory=list, alias="outboundFiles")


class PackageGeneratorResult(_ResultModel):
    """Paths of the package and destructive files created by the tool."""

    package: str | None = None
    destructive_changes: str | None = Field(default=None, alias="destructiveChanges")
    destructive_changes_post: str | None = Field(
        default=None, alias="destructiveChangesPost"
    )

    @property
    def files(self) -> list[str]:
        return [
            path
            for path in (
                self.package,
                self.destructive_changes,
                self.destructive_changes_post,
            )
            if path
        ]


class DependenciesCheckResponse(_ResultModel):
    """A broken dependency found by a check-only dependencies run."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    object: str | None = None
    item: str | None = None
    file: str | None = None
    line: int | None = None
    start_column: int | None = Field(default=None, alias="startColumn")
    end_column: int | None = Field(default=None, alias="endColumn")
    message: str | None = None
    severity: str | None = None
