"""Exception types raised by the session gate services."""

from __future__ import annotations


class SessionGateError(Exception):
    """Base class for session gate failures."""


class StorageFailure(SessionGateError):
    """The underlying key-value store could not be read or written."""


class TicketNotFound(SessionGateError):
    """No ticket with the requested id exists (never opened or pruned)."""

    def __init__(self, ticket_id: str) -> None:
        super().__init__(f"Session ticket {ticket_id!r} not found.")
        self.ticket_id = ticket_id


class InvalidCompletion(SessionGateError):
    """A completion score was out of range or conflicts with the recorded one."""
