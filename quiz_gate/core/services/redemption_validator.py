"""Service that decides whether a results request may reveal a score."""

from __future__ import annotations

import logging

from quiz_gate.constants.session_constants import SESSION_TTL_MS
from quiz_gate.core.clock import Clock, now_ms
from quiz_gate.core.errors import StorageFailure
from quiz_gate.core.models import (
    RedemptionResult,
    RejectionReason,
    ScoreRecord,
    SessionTicket,
    format_timestamp,
)
from quiz_gate.core.param_parser import parse_int_param, parse_ticket_id
from quiz_gate.core.services.score_ledger import ScoreLedger
from quiz_gate.core.services.ticket_store import TicketStore

logger = logging.getLogger(__name__)


class RedemptionValidator:
    """Consumes a completed ticket exactly once and confirms its recorded score.

    The score and total passed in by the caller are never displayed or stored;
    they only have to match what was recorded when the quiz finished.
    """

    def __init__(
        self,
        tickets: TicketStore,
        ledger: ScoreLedger,
        clock: Clock = now_ms,
        ttl_ms: int = SESSION_TTL_MS,
    ) -> None:
        self._tickets = tickets
        self._ledger = ledger
        self._clock = clock
        self._ttl_ms = ttl_ms

    def redeem(
        self,
        ticket_id: object,
        claimed_score: object,
        claimed_total: object,
    ) -> RedemptionResult:
        """Validate a results request and, if it holds, mark the ticket used.

        Checks run in a fixed order and the first failure is reported. Storage
        errors are reported as a rejection, never as an acceptance.
        """
        parsed_id = parse_ticket_id(ticket_id)
        score = parse_int_param(claimed_score)
        total = parse_int_param(claimed_total)
        if parsed_id is None:
            return self._rejected(RejectionReason.SESSION_MISSING, None)

        now = self._clock()
        try:
            with self._tickets.transaction() as tickets:
                ticket = tickets.get(parsed_id)
                reason = self._check(ticket, score, total, now)
                if reason is not None:
                    return self._rejected(reason, parsed_id)
                ticket.used = True
        except StorageFailure:
            logger.exception("Storage failure while redeeming ticket %s", parsed_id)
            return self._rejected(RejectionReason.STORAGE_FAILURE, parsed_id)

        record = ScoreRecord(
            score=ticket.final_score,
            total_questions=ticket.expected_total,
            timestamp=format_timestamp(now),
        )
        try:
            self._ledger.append(record)
        except StorageFailure:
            # The ticket is already spent; history is best effort.
            logger.exception("Redeemed ticket %s but could not record its score", parsed_id)

        logger.info("Redeemed ticket %s with score %d/%d", parsed_id, record.score, record.total_questions)
        return RedemptionResult.accept(record.score, record.total_questions)

    def _check(
        self,
        ticket: SessionTicket | None,
        score: int | None,
        total: int | None,
        now: int,
    ) -> RejectionReason | None:
        if ticket is None:
            return RejectionReason.SESSION_MISSING
        if ticket.used:
            return RejectionReason.ALREADY_USED
        if not ticket.completed or ticket.final_score is None:
            return RejectionReason.NOT_COMPLETED
        if score is None or total is None:
            return RejectionReason.PARAMS_TAMPERED
        if score != ticket.final_score or total != ticket.expected_total:
            return RejectionReason.PARAMS_TAMPERED
        if now - ticket.created_at > self._ttl_ms:
            return RejectionReason.EXPIRED
        return None

    @staticmethod
    def _rejected(reason: RejectionReason, ticket_id: str | None) -> RedemptionResult:
        logger.warning("Rejected results request for ticket %s: %s", ticket_id, reason.value)
        return RedemptionResult.reject(reason)
