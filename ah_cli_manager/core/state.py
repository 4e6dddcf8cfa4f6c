"""
Operation gate and process registry.

Both work on a `ManagerState` owned by a single `CLIManager`. Nothing else
mutates the busy flag or the registry.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from ah_cli_manager.exceptions import OperationInProgressError

log = logging.getLogger(__name__)


class ProcessHandle(Protocol):
    """What the registry needs from a running process."""

    name: str

    async def run(self) -> Any: ...

    def kill(self) -> None: ...


@dataclass
class ManagerState:
    """Mutable per-manager execution state."""

    in_progress: bool = False
    aborted: bool = False
    processes: dict[str, ProcessHandle] = field(default_factory=dict)


def start_operation(state: ManagerState, allow_concurrence: bool = False) -> None:
    """
    Acquires the gate for a new operation.

    Raises:
        OperationInProgressError: If another operation holds the gate and
        concurrent operations are not allowed. State is left untouched.
    """
    if allow_concurrence:
        return
    if state.in_progress:
        raise OperationInProgressError()
    state.aborted = False
    state.in_progress = True
    state.processes = {}


def end_operation(state: ManagerState) -> None:
    """Releases the gate, whatever the outcome of the finished operation."""
    state.in_progress = False
    state.processes = {}


def add_process(state: ManagerState, process: ProcessHandle) -> None:
    state.processes[process.name] = process


def discard_process(state: ManagerState, process: ProcessHandle) -> None:
    """Removes a finished process, if it is still registered."""
    if state.processes.get(process.name) is process:
        del state.processes[process.name]


def kill_processes(state: ManagerState) -> int:
    """
    Sends kill to every registered process and unregisters it.

    Kill is a signal only: a process may still be shutting down when this
    returns. Returns the number of processes signalled.
    """
    killed = 0
    for name in list(state.processes):
        process = state.processes.pop(name)
        log.debug(f"Killing process '{name}'")
        process.kill()
        killed += 1
    return killed
