"""JSON encoding of store slots with permissive reads."""

from __future__ import annotations

import json
import logging

from quiz_gate.core.errors import StorageFailure
from quiz_gate.core.storage.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)


def read_json_slot(store: KeyValueStore, key: str, expected_type: type) -> object:
    """Load a slot, falling back to an empty ``expected_type`` when absent or unreadable.

    Only errors raised by the store itself become ``StorageFailure``; bad
    contents are logged and treated as an empty collection.
    """
    try:
        raw = store.get_item(key)
    except (OSError, ValueError) as exc:
        raise StorageFailure(f"Could not read slot {key!r}: {exc}") from exc

    if raw is None:
        return expected_type()
    try:
        value = json.loads(raw)
    except ValueError:
        logger.warning("Slot %r holds malformed JSON; treating it as empty", key)
        return expected_type()
    if not isinstance(value, expected_type):
        logger.warning(
            "Slot %r holds %s instead of %s; treating it as empty",
            key,
            type(value).__name__,
            expected_type.__name__,
        )
        return expected_type()
    return value


def write_json_slot(store: KeyValueStore, key: str, value: object) -> None:
    try:
        store.set_item(key, json.dumps(value, separators=(",", ":")))
    except (OSError, ValueError, TypeError) as exc:
        raise StorageFailure(f"Could not write slot {key!r}: {exc}") from exc
