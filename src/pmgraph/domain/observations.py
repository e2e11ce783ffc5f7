"""``Key: value`` observation convention and date parsing.

Observations are free text, but many follow a ``Key: value`` shape
(``Status: in_progress``, ``DueDate: 2025-03-01``). This is the one
place that convention is parsed.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime


def observation_value(observations: Iterable[str], key: str) -> str | None:
    """Return the value of the first ``key:`` observation, trimmed.

    The value is everything after the first colon, so times and URLs
    survive intact.

    Examples:
        >>> observation_value(["Status: done", "Status: open"], "Status")
        'done'
        >>> observation_value(["DueDate: 2025-01-01T09:30"], "DueDate")
        '2025-01-01T09:30'
        >>> observation_value(["Owner: x"], "Status") is None
        True
    """
    prefix = f"{key}:"
    for obs in observations:
        if obs.startswith(prefix):
            return obs.split(":", 1)[1].strip()
    return None


def parse_date(value: str | None) -> datetime | None:
    """Parse an ISO-8601 date or datetime into an aware UTC datetime.

    Date-only values become midnight UTC. Returns None for missing or
    unparsable input instead of raising.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def date_sort_key(value: str | None, *, descending: bool = False) -> tuple[int, float]:
    """Sort key placing unparsable or missing dates last.

    With *descending*, parsed dates sort newest first while missing
    ones still trail.
    """
    parsed = parse_date(value)
    if parsed is None:
        return (1, 0.0)
    ts = parsed.timestamp()
    return (0, -ts if descending else ts)
