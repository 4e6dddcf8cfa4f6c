import asyncio

import pytest

from ah_cli_manager.core.manager import CLIManager
from ah_cli_manager.exceptions import ProcessKilledError
from ah_cli_manager.process.factory import OperationKind


class FakeProcess:
    """Stand-in for CLIProcess driven by a script instead of a real executable."""

    def __init__(
        self,
        name,
        kind,
        cwd,
        options,
        on_progress,
        outcome=None,
        error=None,
        progress=(),
        block=False,
    ):
        self.name = name
        self.kind = kind
        self.cwd = cwd
        self.options = options
        self.on_progress = on_progress
        self.outcome = outcome
        self.error = error
        self.progress = list(progress)
        self.block = block
        self.started = False
        self.released = False
        self.killed = False
        self.kill_calls = 0

    def kill(self):
        self.killed = True
        self.kill_calls += 1

    def release(self):
        self.released = True

    async def run(self):
        self.started = True
        for payload in self.progress:
            if self.on_progress is not None:
                self.on_progress(payload)
        while self.block and not self.released and not self.killed:
            await asyncio.sleep(0.005)
        if self.killed:
            raise ProcessKilledError(f"Process '{self.name}' was killed")
        if self.error is not None:
            raise self.error
        return self.outcome


class FakeProcessFactory:
    """Records every process request and hands out scripted FakeProcess objects."""

    def __init__(self):
        self.created: list[FakeProcess] = []
        self._scripts: dict[OperationKind, dict] = {}

    def script(self, kind, outcome=None, *, error=None, progress=(), block=False):
        self._scripts[OperationKind(kind)] = {
            "outcome": outcome,
            "error": error,
            "progress": progress,
            "block": block,
        }

    def create(self, kind, cwd=None, options=None, on_progress=None):
        kind = OperationKind(kind)
        process = FakeProcess(
            f"{kind.value}-{len(self.created)}",
            kind,
            cwd,
            options or {},
            on_progress,
            **self._scripts.get(kind, {}),
        )
        self.created.append(process)
        return process

    @property
    def last(self) -> FakeProcess:
        return self.created[-1]


async def wait_until(predicate, timeout=2.0):
    """Polls `predicate` until it is true or the timeout expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture
def factory():
    return FakeProcessFactory()


@pytest.fixture
def project_dir(tmp_path):
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def manager(project_dir, factory):
    manager = CLIManager(project_dir, 58, process_factory=factory)
    yield manager
    manager.close()


@pytest.fixture
def metadata_tree():
    """A selection tree with a checked type, a checked object and a checked item."""
    return {
        "CustomObject": {
            "name": "CustomObject",
            "checked": False,
            "childs": {
                "Account": {"name": "Account", "checked": True, "childs": {}},
                "Case": {
                    "name": "Case",
                    "checked": False,
                    "childs": {
                        "Subject": {"name": "Subject", "checked": True},
                        "Status": {"name": "Status", "checked": False},
                    },
                },
            },
        },
        "ApexClass": {"name": "ApexClass", "checked": True, "childs": {}},
        "Profile": {"name": "Profile", "checked": False, "childs": {}},
    }
