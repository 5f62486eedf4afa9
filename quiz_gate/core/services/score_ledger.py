"""Append-only history of redeemed quiz scores."""

from __future__ import annotations

import logging
from threading import Lock

from quiz_gate.constants.session_constants import SCORES_KEY
from quiz_gate.core.models import ScoreRecord
from quiz_gate.core.storage.json_slots import read_json_slot, write_json_slot
from quiz_gate.core.storage.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)


class ScoreLedger:
    """Keeps score records in insertion order; records are never changed or removed."""

    def __init__(self, store: KeyValueStore, key: str = SCORES_KEY) -> None:
        self._store = store
        self._key = key
        self._lock = Lock()

    def append(self, record: ScoreRecord) -> None:
        """Add a record to the end of the ledger, keeping everything already stored."""
        with self._lock:
            entries = read_json_slot(self._store, self._key, list)
            entries.append(record.to_record())
            write_json_slot(self._store, self._key, entries)

    def list_records(self) -> list[ScoreRecord]:
        with self._lock:
            entries = read_json_slot(self._store, self._key, list)
        records: list[ScoreRecord] = []
        for entry in entries:
            if not isinstance(entry, dict):
                logger.warning("Skipping non-object score entry")
                continue
            try:
                records.append(ScoreRecord.from_record(entry))
            except ValueError as exc:
                logger.warning("Skipping malformed score entry: %s", exc)
        return records

    def __len__(self) -> int:
        return len(self.list_records())
