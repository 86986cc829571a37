"""Infrastructure implementations of the client's key-value storage."""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

from femo_client.domain.key_value_store import KeyValueStore
from femo_client.infrastructure.log_utils import log_message


class JsonFileKeyValueStore(KeyValueStore):
    """Persist values to a single JSON document on disk.

    Every write rewrites the whole document, so a ``set_many`` or
    ``remove_many`` lands as one unit.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> Dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            log_message(f"Failed to read client state from {self._path}: {exc}", "WARN")
            return {}
        if not isinstance(data, dict):
            log_message(f"Ignoring non-object client state in {self._path}.", "WARN")
            return {}
        return data

    def _write_all(self, data: Dict[str, object]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2)

        try:
            os.chmod(self._path, 0o600)
        except OSError as exc:  # pragma: no cover - depends on platform
            log_message(f"Could not set permissions on {self._path}: {exc}", "WARN")

    def get(self, key: str) -> Optional[object]:
        with self._lock:
            return self._read_all().get(key)

    def get_many(self, keys: Iterable[str]) -> Dict[str, object]:
        with self._lock:
            data = self._read_all()
        return {key: data[key] for key in keys if key in data}

    def set_many(self, values: Mapping[str, object], *, remove: Iterable[str] = ()) -> None:
        with self._lock:
            data = self._read_all()
            for key in remove:
                data.pop(key, None)
            data.update(values)
            self._write_all(data)

    def remove_many(self, keys: Iterable[str]) -> None:
        with self._lock:
            data = self._read_all()
            removed = False
            for key in keys:
                if key in data:
                    del data[key]
                    removed = True
            if removed:
                self._write_all(data)


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store, used for tests and throwaway sessions."""

    def __init__(self, initial: Mapping[str, object] | None = None) -> None:
        self._data: Dict[str, object] = dict(initial or {})
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[object]:
        with self._lock:
            return self._data.get(key)

    def get_many(self, keys: Iterable[str]) -> Dict[str, object]:
        with self._lock:
            return {key: self._data[key] for key in keys if key in self._data}

    def set_many(self, values: Mapping[str, object], *, remove: Iterable[str] = ()) -> None:
        with self._lock:
            for key in remove:
                self._data.pop(key, None)
            self._data.update(values)

    def remove_many(self, keys: Iterable[str]) -> None:
        with self._lock:
            for key in keys:
                self._data.pop(key, None)

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return dict(self._data)


__all__ = ["InMemoryKeyValueStore", "JsonFileKeyValueStore"]
