"""Service that opens, completes and prunes session tickets."""

from __future__ import annotations

import logging
from uuid import uuid4

from quiz_gate.constants.session_constants import DEFAULT_TOTAL_QUESTIONS, MAX_PENDING_SESSIONS
from quiz_gate.core.clock import Clock, now_ms
from quiz_gate.core.errors import InvalidCompletion, TicketNotFound
from quiz_gate.core.models import SessionTicket
from quiz_gate.core.services.ticket_store import TicketStore

logger = logging.getLogger(__name__)


class TicketLifecycleManager:
    """Creates a ticket at quiz start and records the true score at quiz end."""

    def __init__(
        self,
        tickets: TicketStore,
        clock: Clock = now_ms,
        max_pending: int = MAX_PENDING_SESSIONS,
    ) -> None:
        if max_pending <= 0:
            raise ValueError("Retention cap must be a positive integer.")
        self._tickets = tickets
        self._clock = clock
        self._max_pending = max_pending

    def open(self, expected_total: int = DEFAULT_TOTAL_QUESTIONS) -> str:
        """Insert a fresh, uncompleted ticket and return its id."""
        if isinstance(expected_total, bool) or not isinstance(expected_total, int):
            raise ValueError("Total questions must be provided as an integer.")
        if expected_total <= 0:
            raise ValueError("Total questions must be a positive integer.")

        created_at = self._clock()
        with self._tickets.transaction() as tickets:
            ticket_id = self._new_ticket_id(created_at)
            while ticket_id in tickets:
                ticket_id = self._new_ticket_id(created_at)
            tickets[ticket_id] = SessionTicket(
                id=ticket_id,
                created_at=created_at,
                expected_total=expected_total,
            )
            self._prune(tickets, keep_id=ticket_id)

        logger.info("Opened session ticket %s (%d questions)", ticket_id, expected_total)
        return ticket_id

    def complete(self, ticket_id: str, final_score: int) -> SessionTicket:
        """Record the final score of a finished attempt.

        Completing again with the same score is a no-op; a different score is
        refused because the recorded score can only be set once.
        """
        with self._tickets.transaction() as tickets:
            ticket = tickets.get(ticket_id)
            if ticket is None:
                raise TicketNotFound(ticket_id)
            if isinstance(final_score, bool) or not isinstance(final_score, int):
                raise InvalidCompletion("Final score must be an integer.")
            if not 0 <= final_score <= ticket.expected_total:
                raise InvalidCompletion(
                    f"Final score {final_score} is outside 0..{ticket.expected_total}."
                )
            if ticket.completed:
                if ticket.final_score != final_score:
                    raise InvalidCompletion(
                        f"Ticket {ticket_id} was already completed with a different score."
                    )
                return ticket
            ticket.final_score = final_score
            ticket.completed = True

        logger.info("Completed session ticket %s with score %d/%d", ticket_id, final_score, ticket.expected_total)
        return ticket

    def _prune(self, tickets: dict[str, SessionTicket], keep_id: str) -> None:
        if len(tickets) <= self._max_pending:
            return
        # Newest first; among equal timestamps the later insertion is newer.
        ranked = sorted(
            enumerate(tickets.values()),
            key=lambda pair: (pair[1].created_at, pair[0]),
            reverse=True,
        )
        others = [ticket for _, ticket in ranked if ticket.id != keep_id]
        dropped = others[self._max_pending - 1:]
        for ticket in dropped:
            del tickets[ticket.id]
        logger.info("Pruned %d stale session ticket(s)", len(dropped))

    @staticmethod
    def _new_ticket_id(created_at: int) -> str:
        # Time component plus random suffix; uniqueness only, not an auth token.
        return f"{created_at:x}-{uuid4().hex[:12]}"
