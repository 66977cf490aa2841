"""Structured access to a KeyValueStore: strings and ordered string lists."""

from typing import Optional, Sequence

from p4_mediator.exceptions import ConfigDecodeError
from p4_mediator.store.base import KeyValueStore


class PreferenceStore:
    """String and string-list persistence on top of a KeyValueStore.

    A list stored under `key` occupies the entries `key.0`, `key.1`, ...
    Reading collects every `key.<n>` entry, parses the index after the last
    '.', and orders values by that index, so gaps left by external edits are
    compacted rather than rejected.
    """

    def __init__(self, backend: KeyValueStore):
        self.backend = backend

    def get_string(self, key: str) -> Optional[str]:
        return self.backend.get(key)

    def put_string(self, key: str, value: str) -> None:
        self.backend.put(key, value)

    def get_string_list(self, key: str) -> list[str]:
        """Read an ordered list of strings.

        Args:
            key: List key (entries live under "<key>.<index>")

        Returns:
            Values ordered by their stored index (empty if none)

        Raises:
            ConfigDecodeError: If an entry's index suffix is not an integer
        """
        prefix = key + "."
        indexed: list[tuple[int, str]] = []
        for k in self.backend.keys():
            if not k or not k.startswith(prefix):
                continue
            suffix = k[k.rfind(".") + 1:]
            try:
                idx = int(suffix)
            except ValueError as e:
                raise ConfigDecodeError(k, f"list index '{suffix}' is not an integer") from e
            value = self.backend.get(k)
            if value is not None:
                indexed.append((idx, value))

        indexed.sort(key=lambda item: item[0])
        return [value for _, value in indexed]

    def put_string_list(self, key: str, values: Sequence[str]) -> None:
        """Replace the list stored under key with values."""
        prefix = key + "."
        for k in self.backend.keys():
            if k and k.startswith(prefix):
                self.backend.remove(k)
        for idx, value in enumerate(values):
            self.backend.put(f"{prefix}{idx}", value)

    def close(self) -> None:
        self.backend.close()
