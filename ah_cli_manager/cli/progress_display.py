"""
Manages a Rich progress display fed by the progress events of a running
Aura Helper CLI process.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from ah_cli_manager.models.results import CLIProgress

log = logging.getLogger("ah_cli_manager")


class ProgressDisplay:
    """
    Shows a single task bar for the running operation.

    Use it as an async context manager and register `handle_progress` as the
    manager's progress listener:

        async with ProgressDisplay(console, "Describing metadata") as display:
            manager.on_progress(display.handle_progress)
            await manager.describe_local_metadata()
    """

    def __init__(self, console: Console, description: str, quiet: bool = False):
        self.console = console
        self.description = description
        self.quiet = quiet

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=30),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            TimeElapsedColumn(),
            console=console,
            transient=True,
        )
        self._task_id: TaskID | None = None
        self._stats = {
            "events": 0,
            "last_message": "",
            "start_time": None,
        }

    def handle_progress(self, payload: Any) -> None:
        """Updates the bar from a progress payload (CLIProgress or raw dict)."""
        if isinstance(payload, dict):
            payload = CLIProgress.from_dict(payload)
        if not isinstance(payload, CLIProgress):
            return

        self._stats["events"] += 1
        if payload.message:
            self._stats["last_message"] = payload.message

        if self.quiet or self._task_id is None:
            log.debug(f"Progress: {payload.message}")
            return

        description = payload.message[:60] or self.description
        if payload.percentage is not None:
            self.progress.update(
                self._task_id, completed=payload.percentage, description=description
            )
        elif payload.increment is not None:
            self.progress.update(
                self._task_id, advance=payload.increment, description=description
            )
        else:
            self.progress.update(self._task_id, description=description)

    def get_statistics(self) -> dict:
        return self._stats.copy()

    async def __aenter__(self):
        self._stats["start_time"] = datetime.now()
        if self.quiet:
            return self
        self._task_id = self.progress.add_task(self.description, total=100)
        self.progress.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if not self.quiet:
            await asyncio.sleep(0.1)
            self.progress.stop()
