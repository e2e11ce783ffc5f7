"""Shared service-layer helper functions."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pmgraph.domain.observations import observation_value
from pmgraph.domain.types import DEFAULT_STATUS, RelationType

if TYPE_CHECKING:
    from pmgraph.domain.models import Entity
    from pmgraph.infrastructure.graph.engine import GraphIndex

SECONDS_PER_DAY = 86_400


def now_utc() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Python's ``round`` uses banker's rounding; percentages here follow
    the everyday convention.

    Examples:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(66.666)
        67
        >>> round_half_up(-1.5)
        -1
    """
    return math.floor(value + 0.5)


def percent(part: int, whole: int) -> int:
    """``part / whole`` as a rounded percentage, 0 when *whole* is 0."""
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from *start* to *end* (negative if *end* is earlier)."""
    return (end - start).total_seconds() / SECONDS_PER_DAY


def status_of(index: GraphIndex, entity: Entity, default: str | None = None) -> str:
    """Resolve an entity's status.

    The ``has_status`` relation wins; the ``Status:`` observation is the
    fallback; then the per-type default (or *default* when given).
    """
    value = index.attribute(entity.name, RelationType.HAS_STATUS)
    if value is None:
        value = observation_value(entity.observations, "Status")
    if value:
        return value
    if default is not None:
        return default
    return DEFAULT_STATUS.get(entity.entity_type, "unknown")


def priority_of(index: GraphIndex, entity: Entity) -> str | None:
    """``has_priority`` relation, else ``Priority:`` observation, else None."""
    value = index.attribute(entity.name, RelationType.HAS_PRIORITY)
    if value is None:
        value = observation_value(entity.observations, "Priority")
    return value or None


def group_by_status(
    index: GraphIndex, items: Iterable[Entity], default: str | None = None
) -> dict[str, list[dict[str, Any]]]:
    """Bucket entities (as dicts) by resolved status, first-seen order."""
    groups: dict[str, list[dict[str, Any]]] = {}
    for entity in items:
        groups.setdefault(status_of(index, entity, default), []).append(entity.to_dict())
    return groups


def info_fields(entity: Entity, *keys: str) -> dict[str, str | None]:
    """Read several ``Key:`` observations into a dict keyed by lower-camel name.

    Examples:
        >>> from pmgraph.domain.models import Entity
        >>> e = Entity(name="P", entityType="project", observations=["StartDate: 2025-01-01"])
        >>> info_fields(e, "StartDate", "Goal")
        {'startDate': '2025-01-01', 'goal': None}
    """
    return {key[0].lower() + key[1:]: observation_value(entity.observations, key) for key in keys}


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_int(value: str | None) -> int | None:
    """Leading integer of *value* (``"3 (high)"`` -> 3), or None.

    Examples:
        >>> parse_int("4")
        4
        >>> parse_int("2 units")
        2
        >>> parse_int("high") is None
        True
    """
    if not value:
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None
