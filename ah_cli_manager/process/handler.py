"""
Runs Aura Helper CLI as an asyncio subprocess, relaying its progress lines and
decoding its final output into a ToolOutcome.
"""

import asyncio
import json
import logging
import shutil
import uuid
from typing import Any, Callable, Sequence

from ah_cli_manager.core.responses import ToolOutcome
from ah_cli_manager.exceptions import (
    ProcessError,
    ProcessKilledError,
    ToolNotInstalledError,
)
from ah_cli_manager.models.results import CLIProgress

log = logging.getLogger(__name__)

# Describe/compare responses are printed as a single JSON line and can be large
STREAM_LIMIT = 64 * 1024 * 1024

ProgressCallback = Callable[[Any], Any]


def parse_progress_line(line: str) -> CLIProgress | None:
    """
    Returns a CLIProgress if the line is a progress notification.

    Progress lines are single-line JSON objects without a `status` key; the
    final response is the only JSON object carrying one.
    """
    stripped = line.strip()
    if not (stripped.startswith("{") and stripped.endswith("}")):
        return None
    try:
        data = json.loads(stripped)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict) or "status" in data:
        return None
    return CLIProgress.from_dict(data)


def parse_output(output: str) -> ToolOutcome:
    """Decodes everything the process printed that was not progress."""
    output = output.strip()
    if not output:
        return ToolOutcome.empty()
    try:
        value = json.loads(output)
    except json.JSONDecodeError:
        # Text commands (version, update) or a JSON response preceded by log lines
        start = output.rfind("\n{")
        if start != -1:
            try:
                value = json.loads(output[start + 1 :])
            except json.JSONDecodeError:
                value = output
        else:
            value = output
    return ToolOutcome.from_value(value)


class CLIProcess:
    """A single invocation of an external command with streamed stdout."""

    def __init__(
        self,
        command: str,
        args: Sequence[str],
        cwd: str | None = None,
        on_progress: ProgressCallback | None = None,
        name: str | None = None,
    ):
        self.command = command
        self.args = [str(arg) for arg in args]
        self.cwd = cwd
        self.on_progress = on_progress
        self.name = name or f"{command}-{uuid.uuid4().hex[:8]}"
        self._proc: asyncio.subprocess.Process | None = None
        self._killed = False

    def __repr__(self) -> str:
        return f"CLIProcess(name={self.name!r}, args={self.args!r})"

    @property
    def killed(self) -> bool:
        return self._killed

    @property
    def command_line(self) -> str:
        return " ".join([self.command, *self.args])

    def kill(self) -> None:
        """Signals the process to stop. Does not wait for it to exit."""
        self._killed = True
        if self._proc is not None:
            self._signal_kill()

    def _signal_kill(self) -> None:
        if self._proc.returncode is not None:
            return
        try:
            self._proc.kill()
        except ProcessLookupError:
            log.debug(f"Process '{self.name}' already exited before kill")

    async def run(self) -> ToolOutcome:
        """
        Spawns the process and waits for it to finish.

        Raises:
            ToolNotInstalledError: If the command can't be found.
            ProcessKilledError: If the process was killed before finishing.
            ProcessError: If the process failed without printing a response.
        """
        if self._killed:
            raise ProcessKilledError(f"Process '{self.name}' was killed before start")

        executable = shutil.which(self.command) or self.command
        log.debug(f"Running [cyan]{self.command_line}[/cyan] in {self.cwd or '.'}")
        try:
            self._proc = await asyncio.create_subprocess_exec(
                executable,
                *self.args,
                cwd=self.cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=STREAM_LIMIT,
            )
        except FileNotFoundError as e:
            raise ToolNotInstalledError(
                f"'{self.command}' not found. Is it installed and on your PATH?"
            ) from e

        # kill() may have arrived while the process was being spawned
        if self._killed:
            self._signal_kill()

        stderr_task = asyncio.create_task(self._proc.stderr.read())
        output_lines: list[str] = []
        try:
            while True:
                try:
                    raw_line = await self._proc.stdout.readline()
                except (ValueError, asyncio.LimitOverrunError) as e:
                    raise ProcessError(
                        f"'{self.command}' printed a line longer than {STREAM_LIMIT} bytes"
                    ) from e
                if not raw_line:
                    break
                line = raw_line.decode("utf-8", errors="replace").rstrip("\r\n")
                progress = parse_progress_line(line) if self.on_progress else None
                if progress is not None:
                    self.on_progress(progress)
                else:
                    output_lines.append(line)
            stderr = (await stderr_task).decode("utf-8", errors="replace")
            return_code = await self._proc.wait()
        except BaseException:
            self.kill()
            stderr_task.cancel()
            raise

        if self._killed:
            raise ProcessKilledError(
                f"Process '{self.name}' was killed", return_code, stderr
            )

        output = "\n".join(output_lines)
        if return_code != 0 and not output.strip():
            raise ProcessError(
                stderr.strip() or f"'{self.command}' exited with code {return_code}",
                return_code,
                stderr,
            )
        return parse_output(output)


async def run_process(process: Any) -> ToolOutcome:
    """Runs a process handle and returns its classified outcome."""
    return ToolOutcome.from_value(await process.run())
