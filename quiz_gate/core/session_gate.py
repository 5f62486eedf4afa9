"""Entry point the quiz and results flows use to hand off a finished quiz."""

from __future__ import annotations

import logging

from quiz_gate.constants.session_constants import (
    DEFAULT_TOTAL_QUESTIONS,
    MAX_PENDING_SESSIONS,
    SESSION_TTL_MS,
)
from quiz_gate.core.clock import Clock, now_ms
from quiz_gate.core.errors import InvalidCompletion, StorageFailure, TicketNotFound
from quiz_gate.core.models import RedemptionResult, ScoreRecord
from quiz_gate.core.services.redemption_validator import RedemptionValidator
from quiz_gate.core.services.score_ledger import ScoreLedger
from quiz_gate.core.services.ticket_lifecycle import TicketLifecycleManager
from quiz_gate.core.services.ticket_store import TicketStore
from quiz_gate.core.storage.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)


class QuizSessionGate:
    """Facade over the ticket store, score ledger, lifecycle and redemption services."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock = now_ms,
        ttl_ms: int = SESSION_TTL_MS,
        max_pending: int = MAX_PENDING_SESSIONS,
    ) -> None:
        self._tickets = TicketStore(store)
        self._ledger = ScoreLedger(store)
        self._lifecycle = TicketLifecycleManager(self._tickets, clock=clock, max_pending=max_pending)
        self._validator = RedemptionValidator(self._tickets, self._ledger, clock=clock, ttl_ms=ttl_ms)

    # --- Quiz flow ---

    def open_session(self, total_questions: int = DEFAULT_TOTAL_QUESTIONS) -> str:
        """Open a ticket for a new attempt. Storage failures are logged and re-raised."""
        try:
            return self._lifecycle.open(total_questions)
        except StorageFailure:
            logger.exception("Could not open a session ticket")
            raise

    def complete_session(self, ticket_id: str, final_score: int) -> bool:
        """Record the final score; returns False instead of raising so the quiz can move on."""
        try:
            self._lifecycle.complete(ticket_id, final_score)
        except TicketNotFound:
            logger.warning("Cannot complete unknown session ticket %s", ticket_id)
            return False
        except InvalidCompletion as exc:
            logger.warning("Refused completion of ticket %s: %s", ticket_id, exc)
            return False
        except StorageFailure:
            logger.exception("Storage failure while completing ticket %s", ticket_id)
            return False
        return True

    # --- Results flow ---

    def redeem_results(
        self,
        ticket_id: object,
        claimed_score: object,
        claimed_total: object,
    ) -> RedemptionResult:
        return self._validator.redeem(ticket_id, claimed_score, claimed_total)

    # --- History ---

    def get_score_history(self) -> list[ScoreRecord]:
        try:
            return self._ledger.list_records()
        except StorageFailure:
            logger.exception("Could not load score history")
            return []
