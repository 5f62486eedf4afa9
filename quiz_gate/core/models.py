"""Domain models for session tickets and score history."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


class RejectionReason(Enum):
    """Why a redemption attempt was refused."""

    SESSION_MISSING = "session_missing"
    ALREADY_USED = "already_used"
    NOT_COMPLETED = "not_completed"
    PARAMS_TAMPERED = "params_tampered"
    EXPIRED = "expired"
    STORAGE_FAILURE = "storage_failure"


@dataclass(slots=True)
class SessionTicket:
    """One quiz attempt, from quiz start until its results are revealed."""

    id: str
    created_at: int  # ms since epoch
    expected_total: int
    final_score: int | None = None
    completed: bool = False
    used: bool = False

    def to_record(self) -> dict[str, object]:
        record: dict[str, object] = {
            "id": self.id,
            "createdAt": self.created_at,
            "expectedTotal": self.expected_total,
            "completed": self.completed,
            "used": self.used,
        }
        if self.final_score is not None:
            record["finalScore"] = self.final_score
        return record

    @classmethod
    def from_record(cls, record: dict[str, object]) -> SessionTicket:
        """Build a ticket from its stored form, raising ValueError on bad shapes."""
        ticket_id = record.get("id")
        created_at = record.get("createdAt")
        expected_total = record.get("expectedTotal")
        final_score = record.get("finalScore")
        if not isinstance(ticket_id, str) or not ticket_id:
            raise ValueError("Ticket record has no id.")
        if not _is_int(created_at) or not _is_int(expected_total):
            raise ValueError(f"Ticket record {ticket_id} has malformed timing or total.")
        if final_score is not None and not _is_int(final_score):
            raise ValueError(f"Ticket record {ticket_id} has a malformed final score.")
        return cls(
            id=ticket_id,
            created_at=created_at,
            expected_total=expected_total,
            final_score=final_score,
            completed=bool(record.get("completed", False)),
            used=bool(record.get("used", False)),
        )


@dataclass(frozen=True, slots=True)
class ScoreRecord:
    """Immutable ledger entry written once per successful redemption."""

    score: int
    total_questions: int
    timestamp: str

    def to_record(self) -> dict[str, object]:
        return {
            "score": self.score,
            "totalQuestions": self.total_questions,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_record(cls, record: dict[str, object]) -> ScoreRecord:
        score = record.get("score")
        total = record.get("totalQuestions")
        timestamp = record.get("timestamp")
        if not _is_int(score) or not _is_int(total) or not isinstance(timestamp, str):
            raise ValueError("Score record is malformed.")
        return cls(score=score, total_questions=total, timestamp=timestamp)


@dataclass(frozen=True, slots=True)
class RedemptionResult:
    """Outcome of a redemption; score and total are only set when accepted."""

    accepted: bool
    score: int | None = None
    total: int | None = None
    reason: RejectionReason | None = None

    @classmethod
    def accept(cls, score: int, total: int) -> RedemptionResult:
        return cls(accepted=True, score=score, total=total)

    @classmethod
    def reject(cls, reason: RejectionReason) -> RedemptionResult:
        return cls(accepted=False, reason=reason)

    def to_payload(self) -> dict[str, object]:
        if self.accepted:
            return {"accepted": True, "score": self.score, "total": self.total}
        return {"accepted": False, "reason": self.reason.value if self.reason else None}


def format_timestamp(epoch_ms: int) -> str:
    """Render epoch milliseconds as an ISO-8601 UTC string ending in ``Z``."""
    moment = datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
