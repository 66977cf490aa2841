"""
Tests for PerforceEngine:
- Loading and saving configuration through the preference store
- Recovery from corrupt stored values
- Routing republish on connection and preference changes
- File actions and original-file retrieval
"""

import threading
import time

import pytest

from conftest import FakeExecutor, fstat_output, make_console
from p4_mediator.config.codec import encode_connection
from p4_mediator.config.settings import Settings
from p4_mediator.core.engine import PerforceEngine, open_engine
from p4_mediator.core.executor import CommandResult
from p4_mediator.models.connection import Connection
from p4_mediator.models.preferences import Preferences
from p4_mediator.store.memory import MemoryKeyValueStore
from p4_mediator.store.preferences import PreferenceStore


def engine_from(data: dict, executor=None) -> PerforceEngine:
    console, _, _ = make_console()
    return PerforceEngine(
        PreferenceStore(MemoryKeyValueStore(data)),
        executor=executor or FakeExecutor(),
        console=console,
    )


def conn(root: str, client: str = "c") -> Connection:
    return Connection(server="p:1666", user="u", client=client, password="pw", workspace_path=root)


class TestConfigurationLoading:
    def test_empty_store_uses_defaults(self):
        engine = engine_from({})
        assert engine.preferences == Preferences()
        assert engine.connections == []

    def test_loads_stored_values(self):
        a, b = conn("/a", "ca"), conn("/b", "cb")
        engine = engine_from({
            "preferences": "tfttft",
            "connections.0": encode_connection(a),
            "connections.1": encode_connection(b),
        })
        assert engine.connections == [a, b]
        assert engine.preferences.case_sensitive_workspaces is False
        assert engine.preferences.intercept_delete is False

    def test_corrupt_preferences_fall_back_to_defaults(self):
        engine = engine_from({"preferences": "tf"})
        assert engine.preferences == Preferences()

    def test_corrupt_connection_entry_is_skipped(self):
        good = conn("/good")
        engine = engine_from({
            "connections.0": "garbage",
            "connections.1": encode_connection(good),
        })
        assert engine.connections == [good]

    def test_corrupt_list_index_falls_back_to_empty(self):
        engine = engine_from({
            "connections.0": encode_connection(conn("/a")),
            "connections.x": encode_connection(conn("/b")),
        })
        assert engine.connections == []

    def test_case_insensitive_preference_applies_at_startup(self):
        engine = engine_from({
            "preferences": "tttfft",
            "connections.0": encode_connection(conn("/proj")),
        })
        assert engine.find_connection("/Proj/src/Main.txt") is not None


class TestConfigurationChanges:
    def test_set_connections_persists_and_routes(self, store):
        console, _, _ = make_console()
        engine = PerforceEngine(store, executor=FakeExecutor(), console=console)
        a, b = conn("/srv/a", "ca"), conn("/srv/b", "cb")

        engine.set_connections([a, b])

        assert store.get_string_list("connections") == [encode_connection(a), encode_connection(b)]
        assert engine.find_connection("/srv/b/file") == b
        reloaded = PerforceEngine(store, executor=FakeExecutor(), console=console)
        assert reloaded.connections == [a, b]

    def test_set_connections_replaces_wholesale(self, store):
        console, _, _ = make_console()
        engine = PerforceEngine(store, executor=FakeExecutor(), console=console)
        engine.set_connections([conn("/x"), conn("/y")])

        engine.set_connections([conn("/z")])

        assert engine.connections == [conn("/z")]
        assert engine.find_connection("/x/file") is None
        assert store.get_string_list("connections") == [encode_connection(conn("/z"))]

    def test_set_preferences_persists_and_rebuilds_routing(self, store):
        console, _, _ = make_console()
        engine = PerforceEngine(store, executor=FakeExecutor(), console=console)
        engine.set_connections([conn("/Proj")])
        assert engine.find_connection("/proj/file") is None

        engine.set_preferences(Preferences(case_sensitive_workspaces=False))

        assert store.get_string("preferences") == "tttfft"
        assert engine.find_connection("/proj/file") is not None

    def test_connection_change_clears_status_cache(self, engine, executor, workspace):
        executor.script("fstat", CommandResult(exit_code=0, stdout=fstat_output("//depot/a.txt")))
        path = workspace / "a.txt"
        engine.get_status_now(path)

        engine.set_connections(engine.connections)

        assert engine.status_provider.is_cached(path) is False


class TestCommands:
    def test_topmost_managed_ancestor(self, engine, workspace):
        assert engine.get_topmost_managed_ancestor(workspace / "a" / "b.txt") == workspace
        assert engine.get_topmost_managed_ancestor(None) is None

    def test_run_file_action_runs_each_file(self, engine, executor, workspace):
        files = [workspace / "a.txt", workspace / "b.txt"]

        engine.run_file_action("sync -f", files)

        assert executor.calls[0][-3:] == ["sync", "-f", str(files[0])]
        assert executor.calls[1][-3:] == ["sync", "-f", str(files[1])]

    def test_run_file_action_invalidates_status(self, engine, executor, workspace):
        executor.script("fstat", CommandResult(exit_code=0, stdout=fstat_output("//depot/a.txt")))
        path = workspace / "a.txt"
        engine.get_status_now(path)

        engine.run_file_action("edit", [path])

        assert engine.status_provider.is_cached(path) is False

    def test_unknown_file_action(self, engine):
        with pytest.raises(ValueError, match="Unknown file action"):
            engine.run_file_action("obliterate", ["/ws/a"])

    def test_get_original_file_uses_print(self, engine, executor, workspace, tmp_path):
        working = workspace / "a.txt"
        original = tmp_path.resolve() / "orig with space.txt"

        engine.get_original_file(working, original)

        assert executor.calls[0][-5:] == ["print", "-o", str(original), "-q", str(working)]

    def test_print_output_preference_suppresses_echo(self, store, workspace):
        console, out, _ = make_console()
        engine = PerforceEngine(store, executor=FakeExecutor(), console=None)
        engine.console.out = console.out
        engine.console.err = console.err
        engine.set_connections([conn(str(workspace))])

        engine.set_preferences(Preferences(print_output=False))
        engine.run_file_action("sync", [workspace / "a.txt"])
        assert out.getvalue() == ""

        engine.set_preferences(Preferences(print_output=True))
        engine.run_file_action("sync", [workspace / "a.txt"])
        assert "sync" in out.getvalue()
        assert "-P ********" in out.getvalue()


def test_open_engine_uses_sqlite_store(tmp_path):
    settings = Settings(data_dir=tmp_path / "data", _env_file=None)
    with open_engine(settings, executor=FakeExecutor()) as engine:
        engine.set_connections([conn("/srv/a")])

    assert settings.store_path.exists()
    with open_engine(settings, executor=FakeExecutor()) as engine:
        assert engine.connections == [conn("/srv/a")]


class SlowWriteBackend(MemoryKeyValueStore):
    """Memory store that stalls writes of values containing `marker`."""

    def __init__(self, marker: str, delay: float = 0.2):
        super().__init__()
        self.marker = marker
        self.delay = delay
        self.entered = threading.Event()

    def put(self, key: str, value: str) -> None:
        if self.marker in value:
            self.entered.set()
            time.sleep(self.delay)
        super().put(key, value)


def test_concurrent_set_connections_keep_store_and_routing_in_step():
    backend = SlowWriteBackend(marker="/slow")
    store = PreferenceStore(backend)
    console, _, _ = make_console()
    engine = PerforceEngine(store, executor=FakeExecutor(), console=console)
    slow, fast = conn("/slow", "cs"), conn("/fast", "cf")

    writer = threading.Thread(target=engine.set_connections, args=([slow],))
    writer.start()
    assert backend.entered.wait(timeout=5)
    engine.set_connections([fast])
    writer.join(timeout=5)

    persisted = store.get_string_list("connections")
    assert persisted == [encode_connection(c) for c in engine.connections]
    assert engine.connections == [fast]


def test_concurrent_preference_and_connection_writes_stay_consistent():
    backend = SlowWriteBackend(marker="/slow")
    store = PreferenceStore(backend)
    console, _, _ = make_console()
    engine = PerforceEngine(store, executor=FakeExecutor(), console=console)

    writer = threading.Thread(target=engine.set_connections, args=([conn("/slow")],))
    writer.start()
    assert backend.entered.wait(timeout=5)
    engine.set_preferences(Preferences(case_sensitive_workspaces=False))
    writer.join(timeout=5)

    assert engine.connection_store.case_sensitive is False
    assert store.get_string("preferences") == "tttfft"
    assert engine.find_connection("/SLOW/file") == conn("/slow")
