"""Per-file Perforce status lookup with an invalidation-driven cache.

Statuses are fetched with `p4 fstat` on first request and cached, including
negative results for files Perforce does not know. Entries live until they
are invalidated; every state-changing command issued through the engine
invalidates its file. Lookups and invalidations for a path are serialized by
a lock chosen by the path's hash from a fixed set, so an invalidation is
always visible to the next lookup of the same path.
"""

import threading
from typing import Optional

from p4_mediator.core.cli import CliWrapper
from p4_mediator.core.routing import PathLike, RoutingEngine, canonical_path
from p4_mediator.exceptions import CommandFailedError
from p4_mediator.models.file_status import FileAction, FileStatus

# stderr fragments p4 uses when a file is simply not revisioned
NOT_REVISIONED_MARKERS = (
    "no such file",
    "not in client view",
    "not under client's root",
    "file(s) not on client",
)

# Number of striped locks shared by all paths
LOCK_STRIPES = 64


def parse_fstat(output: str, path: str) -> Optional[FileStatus]:
    """Parse tagged `p4 fstat` output for a single file.

    Output format:
    ```
    ... depotFile //depot/src/main.c
    ... clientFile /home/me/ws/src/main.c
    ... headAction edit
    ... headRev 4
    ... haveRev 4
    ... action edit
    ... change default
    ```

    Only the first record is read. Returns None if no depotFile is present.
    """
    tags: dict[str, str] = {}
    for line in output.splitlines():
        line = line.strip()
        if not line:
            if tags:
                # Blank line ends the first record
                break
            continue
        if not line.startswith("... "):
            continue
        parts = line[4:].split(" ", 1)
        key = parts[0]
        if key in tags:
            continue
        tags[key] = parts[1].strip() if len(parts) > 1 else ""

    depot_file = tags.get("depotFile")
    if not depot_file:
        return None

    return FileStatus(
        path=path,
        depot_file=depot_file,
        action=FileAction.from_p4(tags.get("action")),
        head_action=tags.get("headAction"),
        head_rev=_to_int(tags.get("headRev")),
        have_rev=_to_int(tags.get("haveRev")),
        change=tags.get("change"),
    )


def _to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _is_not_revisioned(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in NOT_REVISIONED_MARKERS)


class FileStatusProvider:
    """Queries and caches FileStatus per canonical path."""

    def __init__(self, routing: RoutingEngine, wrapper: CliWrapper):
        self.routing = routing
        self.wrapper = wrapper
        self._cache: dict[str, Optional[FileStatus]] = {}
        self._locks = tuple(threading.Lock() for _ in range(LOCK_STRIPES))

    def _lock_for(self, key: str) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]

    def get_status_now(self, path: PathLike, refresh: bool = False) -> Optional[FileStatus]:
        """Return the file's status, querying p4 synchronously on a cache miss.

        Args:
            path: Local file path
            refresh: Ignore any cached entry and query p4 again

        Returns:
            FileStatus, or None if the file is not known to Perforce or is not
            under any configured workspace

        Raises:
            CommandFailedError: If the status query itself fails
        """
        key = canonical_path(path)
        if not self.routing.is_managed(key):
            return None

        with self._lock_for(key):
            if not refresh and key in self._cache:
                return self._cache[key]
            status = self._query(key)
            self._cache[key] = status
            return status

    def _query(self, key: str) -> Optional[FileStatus]:
        try:
            result = self.wrapper.execute("fstat", key)
        except CommandFailedError as e:
            if e.exit_code is not None and _is_not_revisioned(e.stderr):
                return None
            raise
        return parse_fstat(result.stdout_text, key)

    def get_cached(self, path: PathLike) -> Optional[FileStatus]:
        """Return the cached status without querying (None if absent or not cached)."""
        return self._cache.get(canonical_path(path))

    def is_cached(self, path: PathLike) -> bool:
        return canonical_path(path) in self._cache

    def invalidate(self, path: PathLike) -> None:
        """Drop the cached status for path."""
        key = canonical_path(path)
        with self._lock_for(key):
            self._cache.pop(key, None)

    def clear(self) -> None:
        """Drop every cached status."""
        # Stripes are always taken in index order
        for lock in self._locks:
            lock.acquire()
        try:
            self._cache.clear()
        finally:
            for lock in reversed(self._locks):
                lock.release()
