"""
Normalizes what an Aura Helper CLI process produced into a success value or a
CLIManagerError.

Different tool commands report completion differently: some print nothing,
some print plain text, and the JSON ones print `{status, message, result}`.
The shape is captured explicitly as a ToolOutcome at the process boundary.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ah_cli_manager.exceptions import CLIManagerError
from ah_cli_manager.models.results import CLIResponse


class OutcomeKind(Enum):
    EMPTY = "empty"
    RESPONSE = "response"
    RAW = "raw"


@dataclass(frozen=True)
class ToolOutcome:
    """Tagged result of running an external process."""

    kind: OutcomeKind
    response: CLIResponse | None = None
    raw: Any = None

    @classmethod
    def empty(cls) -> "ToolOutcome":
        return cls(OutcomeKind.EMPTY)

    @classmethod
    def from_value(cls, value: Any) -> "ToolOutcome":
        """Classifies a decoded process output."""
        if isinstance(value, ToolOutcome):
            return value
        if value is None:
            return cls.empty()
        if isinstance(value, CLIResponse):
            return cls(OutcomeKind.RESPONSE, response=value, raw=value.raw)
        if isinstance(value, dict):
            return cls(OutcomeKind.RESPONSE, response=CLIResponse.from_dict(value), raw=value)
        return cls(OutcomeKind.RAW, raw=value)


def handle_response(outcome: Any) -> Any:
    """
    Returns the success value of an outcome or raises the tool-reported error.

    - no output: success with an empty `CLIResponse`
    - JSON object with status 0: the `CLIResponse`
    - JSON object with any other status: `CLIManagerError` with the tool message,
      or with the whole object when there is no message
    - anything else: passed through unchanged
    """
    outcome = ToolOutcome.from_value(outcome)
    if outcome.kind is OutcomeKind.EMPTY:
        return CLIResponse(status=0, message="", result={})
    if outcome.kind is OutcomeKind.RAW:
        return outcome.raw

    response = outcome.response
    if response.status == 0 and not isinstance(response.status, bool):
        return response
    if response.message:
        raise CLIManagerError(response.message, payload=outcome.raw)
    raise CLIManagerError(outcome.raw, payload=outcome.raw)
