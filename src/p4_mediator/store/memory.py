"""In-memory key-value store."""

import threading
from typing import Mapping, Optional

from p4_mediator.store.base import KeyValueStore


class MemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store, used for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
