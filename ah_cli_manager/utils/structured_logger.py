"""
Structured logging system for better log analysis and debugging.
Provides JSON-formatted logs with context and metadata.
"""

import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any


class StructuredLogger:
    """
    Enhanced logger that outputs both human-readable and machine-parseable logs.

    Usage:
        logger = StructuredLogger("ah_cli_manager")
        logger.info("operation_completed",
                    operation="describe_local_metadata",
                    duration_s=3.2)
    """

    def __init__(
        self,
        name: str,
        log_dir: Path | None = None,
        enable_json: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            log_dir: Directory for JSON log files (None = disabled)
            enable_json: Enable JSON file logging
            enable_console: Enable console output
        """
        self.name = name
        self.log_dir = log_dir
        self.enable_json = enable_json and log_dir is not None
        self.enable_console = enable_console

        self._logger = logging.getLogger(name)

        self._json_file = None
        if self.enable_json:
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            json_log_path = log_dir / f"ah_cli_manager_{timestamp}.jsonl"
            self._json_file = open(json_log_path, "a", encoding="utf-8")  # noqa: SIM115

        # Session context (added to all log entries)
        self._session_context: dict[str, Any] = {
            "session_id": f"{int(time.time())}_{id(self)}",
            "start_time": datetime.now().isoformat(),
        }

    def set_session_context(self, **kwargs) -> None:
        """Set session-level context that appears in all logs."""
        self._session_context.update(kwargs)

    def _format_message(self, event: str, **context) -> str:
        parts = [f"[{event}]"]
        for key, value in context.items():
            if key not in ("level", "timestamp"):
                parts.append(f"{key}={value}")
        return " ".join(parts)

    def _write_json(self, level: str, event: str, **context) -> None:
        if not self._json_file or self._json_file.closed:
            return

        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "event": event,
            **self._session_context,
            **context,
        }

        try:
            self._json_file.write(json.dumps(entry, default=str) + "\n")
            self._json_file.flush()
        except (OSError, ValueError) as e:
            print(f"JSON logging failed: {e}", file=sys.stderr)

    def _log(self, level: int, event: str, **context) -> None:
        if self.enable_console:
            # Square brackets would be parsed as Rich markup by the CLI handler
            self._logger.log(
                level, self._format_message(event, **context), extra={"markup": False}
            )
        if self.enable_json:
            self._write_json(logging.getLevelName(level), event, **context)

    def debug(self, event: str, **context) -> None:
        self._log(logging.DEBUG, event, **context)

    def info(self, event: str, **context) -> None:
        self._log(logging.INFO, event, **context)

    def warning(self, event: str, **context) -> None:
        self._log(logging.WARNING, event, **context)

    def error(self, event: str, **context) -> None:
        self._log(logging.ERROR, event, **context)

    def close(self) -> None:
        """Close JSON log file."""
        if self._json_file and not self._json_file.closed:
            self._json_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class OperationLogger:
    """Specialized logger for manager operation events."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def operation_started(self, operation: str, project_folder: str | None = None):
        self.logger.debug(
            "operation_started", operation=operation, project_folder=project_folder
        )

    def operation_completed(self, operation: str, duration_s: float):
        self.logger.debug(
            "operation_completed",
            operation=operation,
            duration_s=round(duration_s, 2),
        )

    def operation_failed(self, operation: str, error: BaseException, duration_s: float):
        self.logger.warning(
            "operation_failed",
            operation=operation,
            error_type=type(error).__name__,
            error=str(error),
            duration_s=round(duration_s, 2),
        )

    def operation_rejected(self, operation: str, reason: str):
        """Log an operation refused because the manager is busy."""
        self.logger.warning("operation_rejected", operation=operation, reason=reason)

    def operation_aborted(self, killed_processes: int):
        self.logger.info("operation_aborted", killed_processes=killed_processes)


class ProcessLogger:
    """Specialized logger for external process events."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def process_started(self, name: str, command_line: str | None = None):
        self.logger.debug("process_started", process=name, command=command_line)

    def process_finished(self, name: str, outcome: str, duration_s: float):
        self.logger.debug(
            "process_finished",
            process=name,
            outcome=outcome,
            duration_s=round(duration_s, 2),
        )

    def process_failed(self, name: str, error: BaseException):
        self.logger.debug(
            "process_failed",
            process=name,
            error_type=type(error).__name__,
            error=str(error),
        )


def create_structured_logger(
    log_dir: Path | None = None, enable_json: bool = False
) -> tuple[StructuredLogger, OperationLogger, ProcessLogger]:
    """
    Create all structured loggers.

    Returns:
        Tuple of (base_logger, operation_logger, process_logger)
    """
    base = StructuredLogger("ah_cli_manager", log_dir=log_dir, enable_json=enable_json)
    operation = OperationLogger(base)
    process = ProcessLogger(base)

    return base, operation, process
