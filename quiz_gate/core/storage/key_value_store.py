"""Durable string slots addressed by key, the storage primitive under the gate."""

from __future__ import annotations

import os
from pathlib import Path
import re
import tempfile
from threading import Lock
from typing import Protocol

from quiz_gate.constants.storage_constants import SLOT_FILE_SUFFIX

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStore(Protocol):
    """Minimal slot storage: whole-string get and set per key."""

    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...


class InMemoryStore:
    """Process-local store, used for tests and throwaway runs."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._slots: dict[str, str] = dict(initial or {})
        self._lock = Lock()

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._slots.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._slots[key] = value


class JsonFileStore:
    """Stores every slot as ``<data_dir>/<key>.json``.

    Writes go to a temporary file in the same directory first and are then
    moved into place, so a crash mid-write leaves the previous value intact.
    """

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir.resolve()

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def get_item(self, key: str) -> str | None:
        path = self._slot_path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._slot_path(key)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._data_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _slot_path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}{SLOT_FILE_SUFFIX}"
