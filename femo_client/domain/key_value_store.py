"""Domain-level protocol for the client's persistent key-value state."""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Protocol


class KeyValueStore(Protocol):
    """Abstraction for durable client-side key-value storage.

    ``set_many`` and ``remove_many`` apply all of their keys as one unit so
    readers never observe a half-written session.
    """

    def get(self, key: str) -> Optional[object]:
        """Return the stored value for ``key`` or ``None``."""

    def get_many(self, keys: Iterable[str]) -> Dict[str, object]:
        """Return the stored values for the keys that are present."""

    def set_many(self, values: Mapping[str, object], *, remove: Iterable[str] = ()) -> None:
        """Persist every key in ``values`` and drop every key in ``remove``."""

    def remove_many(self, keys: Iterable[str]) -> None:
        """Delete every key in ``keys``; missing keys are ignored."""


__all__ = ["KeyValueStore"]
