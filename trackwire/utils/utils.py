"""Misc cross-cutting helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping


def utc_now() -> datetime:
    """Return a timezone-aware UTC *datetime* object."""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render an aware datetime as RFC3339, using ``Z`` for UTC.

    Examples:
        >>> format_timestamp(datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc))
        '2024-05-01T12:30:00Z'
    """
    text = value.isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def sort_keys(value: Any) -> Any:
    """Return *value* with every JSON object's keys sorted, recursively."""
    if isinstance(value, Mapping):
        return {key: sort_keys(value[key]) for key in sorted(value)}
    if isinstance(value, (list, tuple)):
        return [sort_keys(item) for item in value]
    return value
