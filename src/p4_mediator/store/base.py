"""Abstract base class for key-value preference storage.

This module defines the KeyValueStore interface that all preference storage
backends must implement. Values are plain strings; structure (lists,
connections, preference flags) is layered on top by PreferenceStore and the
codecs in p4_mediator.config.codec.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """Abstract base class for string key-value storage."""

    @abstractmethod
    def keys(self) -> list[str]:
        """Return all keys currently stored."""
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value for key, or None if absent."""
        pass

    @abstractmethod
    def put(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove key if present."""
        pass

    def close(self) -> None:
        """Release any resources held by the store."""
        pass
