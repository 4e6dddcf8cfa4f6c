"""
Defines custom exceptions for the application to allow for more specific error handling.
"""

from typing import Any


class AuraHelperError(Exception):
    """Base exception for all application-specific errors."""


class CLIManagerError(AuraHelperError):
    """
    Raised when Aura Helper CLI reports a failed operation.

    The tool's message is preserved verbatim; the full response object (when
    there is one) is available on `payload`.
    """

    def __init__(self, message: Any, payload: Any = None):
        super().__init__(message if isinstance(message, str) else str(message))
        self.payload = payload if payload is not None else message


class OperationInProgressError(CLIManagerError):
    """Raised when an operation is requested while another one is still running."""

    def __init__(self, message: str = "Connection in use. Abort the current operation to execute other."):
        super().__init__(message)


class OperationNotSupportedError(AuraHelperError):
    """Raised when the requested combination of inputs is not supported."""


class DataNotFoundError(AuraHelperError):
    """Raised when there is nothing to operate on."""


class ValidationError(AuraHelperError):
    """Raised when an input fails validation before any process is spawned."""


class WrongDatatypeError(ValidationError):
    """Raised when a value has an unexpected type."""


class WrongFormatError(ValidationError):
    """Raised when JSON data (or a JSON file) is malformed."""


class PathValidationError(ValidationError):
    """Base class for file and directory path errors."""


class WrongFilePathError(PathValidationError):
    """Raised when a file path is not a string or cannot be made absolute."""


class MissingFileError(PathValidationError):
    """Raised when a file path does not exist or is not accessible."""


class InvalidFilePathError(PathValidationError):
    """Raised when a file path points to something that is not a file."""


class WrongDirectoryPathError(PathValidationError):
    """Raised when a directory path is not a string or cannot be made absolute."""


class MissingDirectoryError(PathValidationError):
    """Raised when a directory path does not exist or is not accessible."""


class InvalidDirectoryPathError(PathValidationError):
    """Raised when a directory path points to something that is not a directory."""


class OSNotSupportedError(AuraHelperError):
    """Raised when Aura Helper CLI processes cannot run on the current platform."""


class ToolNotInstalledError(AuraHelperError):
    """Raised when the Aura Helper CLI executable cannot be found."""


class ProcessError(AuraHelperError):
    """Raised when the external process exits with an error and no response."""

    def __init__(self, message: str, return_code: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.return_code = return_code
        self.stderr = stderr


class ProcessKilledError(ProcessError):
    """Raised by a process run that was killed before it finished."""


class ConfigurationError(AuraHelperError):
    """Raised for issues related to configuration loading or validation."""
