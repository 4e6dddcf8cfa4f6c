"""
Process Layer.

This package spawns Aura Helper CLI and turns its output into outcomes the
manager understands.
"""

from .factory import OperationKind, ProcessFactory
from .handler import CLIProcess, parse_output, parse_progress_line, run_process

__all__ = [
    "CLIProcess",
    "OperationKind",
    "ProcessFactory",
    "parse_output",
    "parse_progress_line",
    "run_process",
]
