import io
from typing import Callable, Optional, Sequence, Union

import pytest
from rich.console import Console

from p4_mediator.config.settings import Settings
from p4_mediator.core.confirm import StaticConfirmationProvider
from p4_mediator.core.engine import PerforceEngine
from p4_mediator.core.executor import CommandExecutor, CommandResult
from p4_mediator.models.connection import Connection
from p4_mediator.models.preferences import Preferences
from p4_mediator.store.memory import MemoryKeyValueStore
from p4_mediator.store.preferences import PreferenceStore
from p4_mediator.utils.debug import DebugLogger
from p4_mediator.utils.output import OutputConsole

Response = Union[CommandResult, Exception, Callable[[list[str]], CommandResult]]


def fstat_output(depot_file: str, action: Optional[str] = None, head_rev: int = 1) -> bytes:
    """Build tagged `p4 fstat` output for one file."""
    lines = [
        f"... depotFile {depot_file}",
        "... headAction edit",
        "... headType text",
        f"... headRev {head_rev}",
        f"... haveRev {head_rev}",
    ]
    if action:
        lines.append(f"... action {action}")
        lines.append("... change default")
    return ("\n".join(lines) + "\n\n").encode("utf-8")


NOT_IN_DEPOT = CommandResult(exit_code=1, stderr=b"foo.txt - no such file(s).\n")


class FakeExecutor(CommandExecutor):
    """
    Test-only executor that records every argv and answers from a script.

    Responses are looked up by p4 verb (the first argument after the
    connection flags). Scripted responses are consumed in order and the last
    one repeats. Unscripted verbs succeed with empty output.
    """

    def __init__(self):
        self.calls: list[list[str]] = []
        self.cwds: list[Optional[str]] = []
        self.timeouts: list[Optional[float]] = []
        self.responses: dict[str, list[Response]] = {}

    def script(self, verb: str, *responses: Response) -> None:
        self.responses.setdefault(verb, []).extend(responses)

    @staticmethod
    def verb_of(argv: Sequence[str]) -> str:
        # Skip the binary and flag/value pairs (-p x -u y -c z -P w)
        i = 1
        while i < len(argv) and argv[i] in ("-p", "-u", "-c", "-P"):
            i += 2
        return argv[i] if i < len(argv) else ""

    @property
    def verbs(self) -> list[str]:
        return [self.verb_of(argv) for argv in self.calls]

    def execute(self, argv, cwd=None, timeout=None) -> CommandResult:
        argv = list(argv)
        self.calls.append(argv)
        self.cwds.append(cwd)
        self.timeouts.append(timeout)

        queue = self.responses.get(self.verb_of(argv))
        if not queue:
            return CommandResult(exit_code=0)
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(argv)
        return response


class RecordingConfirmer(StaticConfirmationProvider):
    """Static answer that also records every question asked."""

    def __init__(self, answer: bool):
        super().__init__(answer)
        self.asked: list[tuple[str, str]] = []

    def confirm(self, title: str, message: str) -> bool:
        self.asked.append((title, message))
        return self.answer


def make_console() -> tuple[OutputConsole, io.StringIO, io.StringIO]:
    out, err = io.StringIO(), io.StringIO()
    console = OutputConsole(
        out=Console(file=out, markup=False, highlight=False, width=400),
        err=Console(file=err, markup=False, highlight=False, width=400),
    )
    return console, out, err


@pytest.fixture(autouse=True)
def reset_debug_logger():
    """Keep DebugLogger disabled unless a test turns it on."""
    DebugLogger.configure(enabled=False, log_dir=None)
    yield
    DebugLogger.configure(enabled=False, log_dir=None)


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def confirmer():
    return RecordingConfirmer(True)


@pytest.fixture
def store():
    return PreferenceStore(MemoryKeyValueStore())


@pytest.fixture
def workspace(tmp_path):
    """A resolved workspace root directory."""
    root = tmp_path.resolve() / "ws"
    root.mkdir()
    return root


@pytest.fixture
def connection(workspace):
    return Connection(
        server="perforce:1666",
        user="jsmith",
        client="jsmith-ws",
        password="secret123",
        workspace_path=str(workspace),
    )


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / "data", p4_binary="p4", command_timeout=5.0)


@pytest.fixture
def make_engine(store, executor, confirmer, settings, connection):
    """Factory building an engine with one connection and the given preferences."""

    def _make(preferences: Optional[Preferences] = None, connections=None) -> PerforceEngine:
        console, _, _ = make_console()
        engine = PerforceEngine(
            store,
            executor=executor,
            confirmer=confirmer,
            settings=settings,
            console=console,
        )
        engine.set_connections([connection] if connections is None else connections)
        if preferences is not None:
            engine.set_preferences(preferences)
        return engine

    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()
