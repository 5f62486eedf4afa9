"""Persistent mapping of session ticket ids to ticket records."""

from __future__ import annotations

from contextlib import contextmanager
import logging
from threading import Lock
from typing import Iterator

from quiz_gate.constants.session_constants import PENDING_SESSIONS_KEY
from quiz_gate.core.models import SessionTicket
from quiz_gate.core.storage.json_slots import read_json_slot, write_json_slot
from quiz_gate.core.storage.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)


class TicketStore:
    """Stores tickets in a single slot; all mutation goes through ``transaction``."""

    def __init__(self, store: KeyValueStore, key: str = PENDING_SESSIONS_KEY) -> None:
        self._store = store
        self._key = key
        self._lock = Lock()

    @contextmanager
    def transaction(self) -> Iterator[dict[str, SessionTicket]]:
        """Yield the ticket map under the store lock and persist it on clean exit.

        The slot is only rewritten when the map actually changed. An exception
        raised inside the block discards every change.
        """
        with self._lock:
            tickets = self._load()
            before = self._serialize(tickets)
            yield tickets
            after = self._serialize(tickets)
            if after != before:
                write_json_slot(self._store, self._key, after)

    def get(self, ticket_id: str) -> SessionTicket | None:
        with self._lock:
            return self._load().get(ticket_id)

    def list_tickets(self) -> list[SessionTicket]:
        with self._lock:
            return sorted(self._load().values(), key=lambda t: t.created_at)

    def count(self) -> int:
        with self._lock:
            return len(self._load())

    def _load(self) -> dict[str, SessionTicket]:
        raw = read_json_slot(self._store, self._key, dict)
        tickets: dict[str, SessionTicket] = {}
        for ticket_id, record in raw.items():
            if not isinstance(record, dict):
                logger.warning("Skipping non-object ticket record %r", ticket_id)
                continue
            try:
                ticket = SessionTicket.from_record(record)
            except ValueError as exc:
                logger.warning("Skipping malformed ticket record %r: %s", ticket_id, exc)
                continue
            if ticket.id != ticket_id:
                logger.warning("Skipping ticket stored under mismatched key %r", ticket_id)
                continue
            tickets[ticket_id] = ticket
        return tickets

    @staticmethod
    def _serialize(tickets: dict[str, SessionTicket]) -> dict[str, dict[str, object]]:
        return {ticket_id: ticket.to_record() for ticket_id, ticket in tickets.items()}
