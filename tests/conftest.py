from __future__ import annotations

import pytest

from quiz_gate.core.services.score_ledger import ScoreLedger
from quiz_gate.core.services.ticket_store import TicketStore
from quiz_gate.core.session_gate import QuizSessionGate
from quiz_gate.core.storage.key_value_store import InMemoryStore

START_MS = 1_700_000_000_000


class FakeClock:
    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FailingStore:
    """Store whose reads and/or writes raise, to exercise storage-failure paths."""

    def __init__(self, inner: InMemoryStore, fail_reads: bool = False, fail_writes_for: set[str] | None = None) -> None:
        self.inner = inner
        self.fail_reads = fail_reads
        self.fail_writes_for = fail_writes_for or set()

    def get_item(self, key: str) -> str | None:
        if self.fail_reads:
            raise OSError("disk unavailable")
        return self.inner.get_item(key)

    def set_item(self, key: str, value: str) -> None:
        if key in self.fail_writes_for:
            raise OSError("disk full")
        self.inner.set_item(key, value)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def tickets(store: InMemoryStore) -> TicketStore:
    return TicketStore(store)


@pytest.fixture
def ledger(store: InMemoryStore) -> ScoreLedger:
    return ScoreLedger(store)


@pytest.fixture
def gate(store: InMemoryStore, clock: FakeClock) -> QuizSessionGate:
    return QuizSessionGate(store, clock=clock)
