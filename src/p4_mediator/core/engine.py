"""Engine facade wiring routing, p4 execution, status and interception.

A PerforceEngine is constructed explicitly by whatever host integrates it
(the CLI in p4_mediator.__main__, an editor plugin, tests) and owns one
instance of each component. Configuration is loaded from a PreferenceStore
at construction and written back whenever connections or preferences are
replaced.
"""

import threading
from pathlib import Path
from typing import Iterable, Optional, Sequence

from p4_mediator.config.codec import (
    decode_connection,
    decode_preferences,
    encode_connection,
    encode_preferences,
)
from p4_mediator.config.settings import KEY_CONNECTIONS, KEY_PREFERENCES, Settings
from p4_mediator.core.cli import CliWrapper, FILE_ACTIONS, STATE_CHANGING_VERBS, command_args
from p4_mediator.core.confirm import ConfirmationProvider
from p4_mediator.core.executor import CommandExecutor, CommandResult
from p4_mediator.core.interceptor import InterceptionPolicy
from p4_mediator.core.routing import ConnectionStore, PathLike, RoutingEngine, canonical_path
from p4_mediator.core.status import FileStatusProvider
from p4_mediator.exceptions import ConfigDecodeError
from p4_mediator.models.connection import Connection
from p4_mediator.models.file_status import FileStatus
from p4_mediator.models.preferences import Preferences
from p4_mediator.store.preferences import PreferenceStore
from p4_mediator.utils.log import log_warning
from p4_mediator.utils.output import OutputConsole


class PerforceEngine:
    """Connection routing and file-operation mediation for Perforce workspaces."""

    def __init__(
        self,
        store: PreferenceStore,
        executor: Optional[CommandExecutor] = None,
        confirmer: Optional[ConfirmationProvider] = None,
        settings: Optional[Settings] = None,
        console: Optional[OutputConsole] = None,
    ):
        """Create an engine and load its configuration from store.

        Args:
            store: Persistence for connections and preferences
            executor: Process runner (default: subprocess)
            confirmer: Yes/no provider for edit and delete confirmations
                       (default: always "no")
            settings: Application settings (p4 binary, timeout)
            console: Sink for echoed p4 commands (default: stdout/stderr,
                     gated by the print_output preference)
        """
        self.store = store
        self.settings = settings or Settings()
        # Held across persisting and publishing a configuration change
        self._config_lock = threading.Lock()

        self._preferences = self._load_preferences()
        self.connection_store = ConnectionStore(
            self._load_connections(),
            case_sensitive=self._preferences.case_sensitive_workspaces,
        )

        self.console = console or OutputConsole(lambda: self._preferences.print_output)
        self.routing = RoutingEngine(self.connection_store)
        self.wrapper = CliWrapper(
            self.routing,
            executor=executor,
            console=self.console,
            p4_binary=self.settings.p4_binary,
            timeout=self.settings.command_timeout,
        )
        self.status_provider = FileStatusProvider(self.routing, self.wrapper)
        self.interceptor = InterceptionPolicy(
            self.routing,
            self.wrapper,
            self.status_provider,
            preferences=lambda: self._preferences,
            confirmer=confirmer,
        )

    # Configuration

    def _load_preferences(self) -> Preferences:
        value = self.store.get_string(KEY_PREFERENCES)
        if value is None:
            return Preferences()
        try:
            return decode_preferences(value)
        except ConfigDecodeError as e:
            log_warning(f"Ignoring stored preferences, using defaults: {e}")
            return Preferences()

    def _load_connections(self) -> list[Connection]:
        try:
            values = self.store.get_string_list(KEY_CONNECTIONS)
        except ConfigDecodeError as e:
            log_warning(f"Ignoring stored connections: {e}")
            return []

        connections = []
        for i, value in enumerate(values):
            try:
                connections.append(decode_connection(value))
            except ConfigDecodeError as e:
                log_warning(f"Skipping stored connection #{i}: {e.reason}")
        return connections

    @property
    def connections(self) -> list[Connection]:
        return self.connection_store.connections

    def set_connections(self, connections: Iterable[Connection]) -> None:
        """Replace the whole connection list, persist it, and republish routing."""
        connections = list(connections)
        with self._config_lock:
            self.store.put_string_list(
                KEY_CONNECTIONS, [encode_connection(c) for c in connections]
            )
            self.connection_store.replace(connections=connections)
            # Ownership of paths may have changed
            self.status_provider.clear()

    @property
    def preferences(self) -> Preferences:
        return self._preferences

    def set_preferences(self, preferences: Preferences) -> None:
        """Replace preferences, persist them, and republish routing."""
        with self._config_lock:
            self.store.put_string(KEY_PREFERENCES, encode_preferences(preferences))
            self._preferences = preferences
            if self.connection_store.case_sensitive != preferences.case_sensitive_workspaces:
                self.connection_store.replace(case_sensitive=preferences.case_sensitive_workspaces)
                self.status_provider.clear()

    # Queries

    def find_connection(self, path: Optional[PathLike]) -> Optional[Connection]:
        return self.routing.find_connection(path)

    def get_topmost_managed_ancestor(self, path: Optional[PathLike]) -> Optional[Path]:
        return self.routing.topmost_managed_ancestor(path)

    def get_status_now(self, path: PathLike, refresh: bool = False) -> Optional[FileStatus]:
        return self.status_provider.get_status_now(path, refresh=refresh)

    # Commands

    def execute(self, command, target_file: PathLike, check: bool = True) -> CommandResult:
        """Run an arbitrary p4 command against target_file.

        The file's cached status is invalidated if the command can change it.
        """
        args = command_args(command)
        try:
            return self.wrapper.execute(args, target_file, check=check)
        finally:
            if args and args[0] in STATE_CHANGING_VERBS:
                self.status_provider.invalidate(target_file)

    def run_file_action(self, action: str, files: Sequence[PathLike]) -> list[CommandResult]:
        """Run one of the FILE_ACTIONS commands on each file in order.

        Stops at the first failure, which propagates to the caller.
        """
        if action not in dict(FILE_ACTIONS):
            raise ValueError(
                f"Unknown file action '{action}'. Choose from: "
                + ", ".join(cmd for cmd, _ in FILE_ACTIONS)
            )
        return [self.execute(action, f) for f in files]

    def get_original_file(self, working_copy: PathLike, original_file: PathLike) -> CommandResult:
        """Write the depot revision of working_copy to original_file (`p4 print -o`)."""
        original_path = canonical_path(original_file)
        return self.wrapper.execute(["print", "-o", original_path, "-q"], working_copy)

    def close(self) -> None:
        self.store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def open_engine(
    settings: Settings,
    executor: Optional[CommandExecutor] = None,
    confirmer: Optional[ConfirmationProvider] = None,
) -> PerforceEngine:
    """Create an engine backed by the SQLite store under settings.data_dir."""
    from p4_mediator.store.sqlite import SQLiteKeyValueStore

    store = PreferenceStore(SQLiteKeyValueStore(settings.store_path))
    return PerforceEngine(store, executor=executor, confirmer=confirmer, settings=settings)
