"""Connection storage and path-to-connection routing.

The configured connections and their normalized workspace roots are kept
together in one immutable RoutingSnapshot. A configuration change builds a
new snapshot and publishes it with a single reference assignment, so a
lookup always sees a connection list and root list that belong together.
"""

import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

from p4_mediator.exceptions import ConnectionNotFoundError
from p4_mediator.models.connection import Connection

PathLike = Union[str, os.PathLike]


def canonical_path(path: PathLike) -> str:
    """Return the canonical absolute form of path.

    Symlinks are resolved when possible; if resolution fails the plain
    absolute path is returned instead. Never raises for a path-like value.
    """
    try:
        return os.path.realpath(os.fspath(path))
    except (OSError, ValueError):
        return os.path.abspath(os.fspath(path))


@dataclass(frozen=True)
class RouteEntry:
    connection: Connection
    normalized_root: str


@dataclass(frozen=True)
class RoutingSnapshot:
    """Connections in configured order, each paired with its normalized root."""

    entries: tuple[RouteEntry, ...] = ()
    case_sensitive: bool = True

    @classmethod
    def build(cls, connections: Iterable[Connection], case_sensitive: bool) -> "RoutingSnapshot":
        entries = tuple(
            RouteEntry(
                connection=c,
                normalized_root=c.workspace_path if case_sensitive else c.workspace_path.lower(),
            )
            for c in connections
        )
        return cls(entries=entries, case_sensitive=case_sensitive)

    @property
    def connections(self) -> list[Connection]:
        return [entry.connection for entry in self.entries]

    def match(self, path: str) -> Optional[Connection]:
        """Return the first connection whose root is a string prefix of path.

        Matching is a plain prefix test, not path-segment aware: a root of
        "/ws1" also matches "/ws12/file". Configuration order decides between
        overlapping roots.
        """
        if not self.case_sensitive:
            path = path.lower()
        for entry in self.entries:
            if path.startswith(entry.normalized_root):
                return entry.connection
        return None


class ConnectionStore:
    """Owns the connection list and its routing snapshot (single writer)."""

    def __init__(self, connections: Iterable[Connection] = (), case_sensitive: bool = True):
        self._write_lock = threading.Lock()
        self._snapshot = RoutingSnapshot.build(connections, case_sensitive)

    @property
    def snapshot(self) -> RoutingSnapshot:
        return self._snapshot

    @property
    def connections(self) -> list[Connection]:
        """Return a copy of the configured connections in order."""
        return self._snapshot.connections

    @property
    def case_sensitive(self) -> bool:
        return self._snapshot.case_sensitive

    def replace(
        self,
        connections: Optional[Iterable[Connection]] = None,
        case_sensitive: Optional[bool] = None,
    ) -> RoutingSnapshot:
        """Rebuild and publish a new snapshot.

        Args:
            connections: New connection list (None keeps the current list)
            case_sensitive: New case sensitivity (None keeps the current mode)

        Returns:
            The published snapshot
        """
        with self._write_lock:
            current = self._snapshot
            snapshot = RoutingSnapshot.build(
                current.connections if connections is None else list(connections),
                current.case_sensitive if case_sensitive is None else case_sensitive,
            )
            self._snapshot = snapshot
            return snapshot


class RoutingEngine:
    """Finds the connection that owns a filesystem path."""

    def __init__(self, store: ConnectionStore):
        self.store = store

    def find_connection(self, path: Optional[PathLike]) -> Optional[Connection]:
        """Return the owning connection for path, or None if no workspace contains it."""
        if path is None:
            return None
        # Read the published snapshot once so the whole scan uses one version
        snapshot = self.store.snapshot
        if not snapshot.entries:
            return None
        return snapshot.match(canonical_path(path))

    def require_connection(self, path: PathLike) -> Connection:
        """Like find_connection() but raises ConnectionNotFoundError on a miss."""
        connection = self.find_connection(path)
        if connection is None:
            raise ConnectionNotFoundError(os.fspath(path))
        return connection

    def is_managed(self, path: PathLike) -> bool:
        return self.find_connection(path) is not None

    def topmost_managed_ancestor(self, path: Optional[PathLike]) -> Optional[Path]:
        """Return the workspace root that owns path, or None if unmanaged."""
        connection = self.find_connection(path)
        if connection is None:
            return None
        return Path(connection.workspace_path)
