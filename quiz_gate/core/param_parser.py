"""Defensive parsing of loosely typed navigation parameters."""

from __future__ import annotations

import re

_INTEGER_PATTERN = re.compile(r"^[+-]?[0-9]+$")
_MAX_PARAM_LENGTH = 32


def _first_value(value: object) -> object:
    # Repeated query keys arrive as lists; only the first one counts.
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def parse_int_param(value: object) -> int | None:
    """Return the integer carried by ``value`` or None when it is absent or not a plain integer."""
    value = _first_value(value)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if len(text) > _MAX_PARAM_LENGTH or not _INTEGER_PATTERN.match(text):
            return None
        return int(text)
    return None


def parse_ticket_id(value: object) -> str | None:
    value = _first_value(value)
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None
