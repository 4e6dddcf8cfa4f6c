import asyncio
import sys
import textwrap

import pytest

from ah_cli_manager.core.responses import OutcomeKind
from ah_cli_manager.exceptions import ProcessError, ProcessKilledError, ToolNotInstalledError
from ah_cli_manager.models.results import CLIProgress
from ah_cli_manager.process import handler
from ah_cli_manager.process.handler import (
    CLIProcess,
    parse_output,
    parse_progress_line,
    run_process,
)
from conftest import wait_until


def python_process(script, on_progress=None):
    return CLIProcess(
        sys.executable, ["-c", textwrap.dedent(script)], on_progress=on_progress
    )


def test_parse_progress_line():
    progress = parse_progress_line('{"message": "Describing ApexClass", "increment": 10}')

    assert isinstance(progress, CLIProgress)
    assert progress.message == "Describing ApexClass"
    assert progress.increment == 10
    assert parse_progress_line('{"status": 0, "result": {}}') is None
    assert parse_progress_line("plain text") is None
    assert parse_progress_line("{broken") is None


def test_parse_output():
    assert parse_output("  ").kind is OutcomeKind.EMPTY
    assert parse_output("Aura Helper CLI Version: v4.1.0").raw == (
        "Aura Helper CLI Version: v4.1.0"
    )

    outcome = parse_output('Some warning\n{"status": 0, "result": [1]}')
    assert outcome.kind is OutcomeKind.RESPONSE
    assert outcome.response.result == [1]


@pytest.mark.asyncio
async def test_progress_lines_are_relayed_and_response_parsed():
    received = []
    process = python_process(
        """
        import json
        print(json.dumps({"message": "step 1", "increment": 50}), flush=True)
        print(json.dumps({"message": "step 2", "increment": 50}), flush=True)
        print(json.dumps({"status": 0, "message": "", "result": {"ok": True}}))
        """,
        on_progress=received.append,
    )

    outcome = await run_process(process)

    assert [progress.message for progress in received] == ["step 1", "step 2"]
    assert outcome.kind is OutcomeKind.RESPONSE
    assert outcome.response.result == {"ok": True}


@pytest.mark.asyncio
async def test_text_and_empty_outputs():
    text = await run_process(python_process("print('Aura Helper CLI Version: v4.1.0')"))
    empty = await run_process(python_process("pass"))

    assert text.kind is OutcomeKind.RAW
    assert text.raw == "Aura Helper CLI Version: v4.1.0"
    assert empty.kind is OutcomeKind.EMPTY


@pytest.mark.asyncio
async def test_failed_exit_without_output_raises_process_error():
    process = python_process(
        """
        import sys
        sys.stderr.write("org not authorized")
        sys.exit(3)
        """
    )

    with pytest.raises(ProcessError) as exc_info:
        await process.run()

    assert exc_info.value.return_code == 3
    assert "org not authorized" in str(exc_info.value)


@pytest.mark.asyncio
async def test_failed_exit_with_response_returns_the_response():
    process = python_process(
        """
        import json, sys
        print(json.dumps({"status": 1, "message": "Wrong project"}))
        sys.exit(1)
        """
    )

    outcome = await run_process(process)

    assert outcome.response.status == 1
    assert outcome.response.message == "Wrong project"


@pytest.mark.asyncio
async def test_missing_executable_raises_tool_not_installed():
    process = CLIProcess("aura-helper-does-not-exist-42", ["--version"])

    with pytest.raises(ToolNotInstalledError):
        await process.run()


@pytest.mark.asyncio
async def test_kill_stops_a_running_process():
    process = python_process("import time; time.sleep(30)")
    task = asyncio.create_task(process.run())
    await wait_until(lambda: process._proc is not None)

    process.kill()

    with pytest.raises(ProcessKilledError):
        await asyncio.wait_for(task, timeout=10)
    assert process.killed is True


@pytest.mark.asyncio
async def test_kill_while_spawning_stops_the_process():
    process = python_process("import time; time.sleep(30)")
    task = asyncio.create_task(process.run())
    await asyncio.sleep(0)

    process.kill()

    with pytest.raises(ProcessKilledError):
        await asyncio.wait_for(task, timeout=10)

@pytest.mark.asyncio
async def test_killed_before_start_never_spawns():
    process = python_process("print('never')")
    process.kill()

    with pytest.raises(ProcessKilledError):
        await process.run()
    assert process._proc is None


@pytest.mark.asyncio
async def test_overlong_output_line_raises_process_error(monkeypatch):
    monkeypatch.setattr(handler, "STREAM_LIMIT", 1024)
    process = python_process("print('x' * 5000)")

    with pytest.raises(ProcessError, match="longer than 1024 bytes"):
        await process.run()
