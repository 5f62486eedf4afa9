from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

import pytest

from conftest import START_MS, FailingStore, FakeClock
from quiz_gate.constants.session_constants import SESSION_TTL_MS
from quiz_gate.core.models import RejectionReason
from quiz_gate.core.services.redemption_validator import RedemptionValidator
from quiz_gate.core.services.score_ledger import ScoreLedger
from quiz_gate.core.services.ticket_lifecycle import TicketLifecycleManager
from quiz_gate.core.services.ticket_store import TicketStore
from quiz_gate.core.storage.key_value_store import InMemoryStore


@pytest.fixture
def lifecycle(tickets: TicketStore, clock: FakeClock) -> TicketLifecycleManager:
    return TicketLifecycleManager(tickets, clock=clock)


@pytest.fixture
def validator(tickets: TicketStore, ledger: ScoreLedger, clock: FakeClock) -> RedemptionValidator:
    return RedemptionValidator(tickets, ledger, clock=clock)


def _completed(lifecycle: TicketLifecycleManager, score: int = 7, total: int = 10) -> str:
    ticket_id = lifecycle.open(total)
    lifecycle.complete(ticket_id, score)
    return ticket_id


def test_accepts_matching_claim_and_records_score(
    lifecycle: TicketLifecycleManager, validator: RedemptionValidator, ledger: ScoreLedger, tickets: TicketStore
) -> None:
    ticket_id = _completed(lifecycle)

    result = validator.redeem(ticket_id, "7", "10")

    assert result.accepted
    assert (result.score, result.total) == (7, 10)
    assert result.reason is None
    assert tickets.get(ticket_id).used
    records = ledger.list_records()
    assert len(records) == 1
    assert (records[0].score, records[0].total_questions) == (7, 10)
    assert records[0].timestamp == "2023-11-14T22:13:20.000Z"


def test_second_redemption_is_already_used(
    lifecycle: TicketLifecycleManager, validator: RedemptionValidator, ledger: ScoreLedger
) -> None:
    ticket_id = _completed(lifecycle)
    assert validator.redeem(ticket_id, 7, 10).accepted

    for _ in range(3):
        result = validator.redeem(ticket_id, 7, 10)
        assert not result.accepted
        assert result.reason is RejectionReason.ALREADY_USED
    assert len(ledger.list_records()) == 1


@pytest.mark.parametrize("ticket_id", [None, "", "   ", [], "unknown-id", 12])
def test_missing_or_unknown_ticket(validator: RedemptionValidator, ticket_id: object) -> None:
    result = validator.redeem(ticket_id, 7, 10)
    assert result.reason is RejectionReason.SESSION_MISSING


def test_uncompleted_ticket_is_never_redeemable(
    lifecycle: TicketLifecycleManager, validator: RedemptionValidator, clock: FakeClock
) -> None:
    ticket_id = lifecycle.open()

    assert validator.redeem(ticket_id, 0, 10).reason is RejectionReason.NOT_COMPLETED
    clock.advance(SESSION_TTL_MS * 10)
    assert validator.redeem(ticket_id, 0, 10).reason is RejectionReason.NOT_COMPLETED


@pytest.mark.parametrize(
    "score, total",
    [(8, 10), (6, 10), (0, 10), (10, 10), (7, 9), (7, 11), ("7", "abc"), (None, 10), (7, None), ("", "")],
)
def test_claims_must_match_recorded_values(
    lifecycle: TicketLifecycleManager,
    validator: RedemptionValidator,
    ledger: ScoreLedger,
    tickets: TicketStore,
    score: object,
    total: object,
) -> None:
    ticket_id = _completed(lifecycle, score=7, total=10)

    result = validator.redeem(ticket_id, score, total)

    assert result.reason is RejectionReason.PARAMS_TAMPERED
    assert not tickets.get(ticket_id).used
    assert ledger.list_records() == []


def test_tampered_attempt_does_not_burn_ticket(
    lifecycle: TicketLifecycleManager, validator: RedemptionValidator
) -> None:
    ticket_id = _completed(lifecycle)

    assert validator.redeem(ticket_id, 10, 10).reason is RejectionReason.PARAMS_TAMPERED
    assert validator.redeem(ticket_id, 7, 10).accepted


def test_expiry_boundary(lifecycle: TicketLifecycleManager, validator: RedemptionValidator, clock: FakeClock) -> None:
    late = _completed(lifecycle)
    on_time = _completed(lifecycle)

    clock.now = START_MS + SESSION_TTL_MS + 1
    assert validator.redeem(late, 7, 10).reason is RejectionReason.EXPIRED

    clock.now = START_MS + SESSION_TTL_MS - 1
    assert validator.redeem(on_time, 7, 10).accepted


def test_check_order_reports_first_failure(
    lifecycle: TicketLifecycleManager, validator: RedemptionValidator, clock: FakeClock
) -> None:
    ticket_id = _completed(lifecycle)
    clock.advance(SESSION_TTL_MS + 1)

    # Wrong claim on an expired ticket is reported as tampering.
    assert validator.redeem(ticket_id, 8, 10).reason is RejectionReason.PARAMS_TAMPERED
    assert validator.redeem(ticket_id, 7, 10).reason is RejectionReason.EXPIRED


def test_pruned_ticket_is_missing(
    lifecycle: TicketLifecycleManager, validator: RedemptionValidator, clock: FakeClock
) -> None:
    opened = []
    for _ in range(25):
        opened.append(_completed(lifecycle))
        clock.advance(1)

    for ticket_id in opened[:5]:
        assert validator.redeem(ticket_id, 7, 10).reason is RejectionReason.SESSION_MISSING
    assert validator.redeem(opened[5], 7, 10).accepted


def test_concurrent_redemptions_accept_exactly_once(
    lifecycle: TicketLifecycleManager, validator: RedemptionValidator, ledger: ScoreLedger
) -> None:
    ticket_id = _completed(lifecycle)
    workers = 8
    barrier = Barrier(workers)

    def attempt() -> bool:
        barrier.wait()
        return validator.redeem(ticket_id, 7, 10).accepted

    with ThreadPoolExecutor(max_workers=workers) as pool:
        outcomes = list(pool.map(lambda _: attempt(), range(workers)))

    assert outcomes.count(True) == 1
    assert len(ledger.list_records()) == 1


def test_concurrent_redemptions_of_different_tickets_all_persist(
    lifecycle: TicketLifecycleManager, validator: RedemptionValidator, tickets: TicketStore, ledger: ScoreLedger
) -> None:
    ticket_ids = [_completed(lifecycle, score=i) for i in range(10)]

    with ThreadPoolExecutor(max_workers=5) as pool:
        results = list(pool.map(lambda pair: validator.redeem(pair[1], pair[0], 10), enumerate(ticket_ids)))

    assert all(result.accepted for result in results)
    assert all(tickets.get(ticket_id).used for ticket_id in ticket_ids)
    assert sorted(record.score for record in ledger.list_records()) == list(range(10))


def test_ticket_write_failure_is_a_rejection(clock: FakeClock) -> None:
    backing = InMemoryStore()
    healthy_tickets = TicketStore(backing)
    ticket_id = TicketLifecycleManager(healthy_tickets, clock=clock).open()
    TicketLifecycleManager(healthy_tickets, clock=clock).complete(ticket_id, 7)

    failing = FailingStore(backing, fail_writes_for={"pendingSessions"})
    validator = RedemptionValidator(TicketStore(failing), ScoreLedger(failing), clock=clock)

    result = validator.redeem(ticket_id, 7, 10)

    assert result.reason is RejectionReason.STORAGE_FAILURE
    assert not healthy_tickets.get(ticket_id).used


def test_ticket_read_failure_is_a_rejection(clock: FakeClock) -> None:
    failing = FailingStore(InMemoryStore(), fail_reads=True)
    validator = RedemptionValidator(TicketStore(failing), ScoreLedger(failing), clock=clock)

    assert validator.redeem("any", 7, 10).reason is RejectionReason.STORAGE_FAILURE


def test_ledger_failure_still_accepts(clock: FakeClock) -> None:
    backing = InMemoryStore()
    failing = FailingStore(backing, fail_writes_for={"scores"})
    tickets = TicketStore(failing)
    ledger = ScoreLedger(failing)
    lifecycle = TicketLifecycleManager(tickets, clock=clock)
    ticket_id = _completed(lifecycle)

    result = RedemptionValidator(tickets, ledger, clock=clock).redeem(ticket_id, 7, 10)

    assert result.accepted
    assert tickets.get(ticket_id).used
    assert ledger.list_records() == []
