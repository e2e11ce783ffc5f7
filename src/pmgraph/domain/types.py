"""Entity types, relation types, and attribute value enums.

These closed sets are process-wide constants. There is no runtime
extension mechanism: adding a type means changing this module.
"""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    """Node types allowed in the project graph."""

    PROJECT = "project"
    TASK = "task"
    MILESTONE = "milestone"
    RESOURCE = "resource"
    TEAM_MEMBER = "teamMember"
    NOTE = "note"
    DOCUMENT = "document"
    ISSUE = "issue"
    RISK = "risk"
    DECISION = "decision"
    DEPENDENCY = "dependency"
    COMPONENT = "component"
    STAKEHOLDER = "stakeholder"
    CHANGE = "change"
    STATUS = "status"
    PRIORITY = "priority"


class RelationType(StrEnum):
    """Edge types allowed between entities."""

    PART_OF = "part_of"
    DEPENDS_ON = "depends_on"
    ASSIGNED_TO = "assigned_to"
    CREATED_BY = "created_by"
    MODIFIED_BY = "modified_by"
    RELATED_TO = "related_to"
    BLOCKS = "blocks"
    MANAGES = "manages"
    CONTRIBUTES_TO = "contributes_to"
    DOCUMENTS = "documents"
    SCHEDULED_FOR = "scheduled_for"
    RESPONSIBLE_FOR = "responsible_for"
    REPORTS_TO = "reports_to"
    CATEGORIZED_AS = "categorized_as"
    REQUIRED_FOR = "required_for"
    DISCOVERED_IN = "discovered_in"
    RESOLVED_BY = "resolved_by"
    IMPACTED_BY = "impacted_by"
    STAKEHOLDER_OF = "stakeholder_of"
    PRIORITIZED_AS = "prioritized_as"
    HAS_STATUS = "has_status"
    HAS_PRIORITY = "has_priority"
    PRECEDES = "precedes"
    USES = "uses"
    REQUIRES = "requires"
    RESOLVES = "resolves"


class StatusValue(StrEnum):
    """Values accepted by ``set_entity_status``."""

    ACTIVE = "active"
    COMPLETED = "completed"
    PENDING = "pending"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"


class PriorityValue(StrEnum):
    """Values accepted by ``set_entity_priority``."""

    HIGH = "high"
    LOW = "low"


VALID_ENTITY_TYPES: frozenset[str] = frozenset(EntityType)
VALID_RELATION_TYPES: frozenset[str] = frozenset(RelationType)
VALID_STATUS_VALUES: frozenset[str] = frozenset(StatusValue)
VALID_PRIORITY_VALUES: frozenset[str] = frozenset(PriorityValue)

# --- Synthetic value entities ---

STATUS_PREFIX = "status"
PRIORITY_PREFIX = "priority"


def status_entity_name(value: str) -> str:
    """Name of the synthetic entity for a status value (``status:<value>``)."""
    return f"{STATUS_PREFIX}:{value}"


def priority_entity_name(value: str) -> str:
    """Name of the synthetic entity for a priority value (``priority:<value>``)."""
    return f"{PRIORITY_PREFIX}:{value}"


def value_segment(entity_name: str) -> str:
    """Return the value part of a synthetic entity name.

    Examples:
        >>> value_segment("status:completed")
        'completed'
        >>> value_segment("priority:high")
        'high'
    """
    return entity_name.split(":", 1)[-1]


# --- Lifecycle vocabularies (observation ``Status:`` values) ---
# Advisory only: analytics read these strings, nothing enforces them.

LIFECYCLE_STATUSES: dict[str, tuple[str, ...]] = {
    "project": ("planning", "in_progress", "on_hold", "completed", "cancelled", "archived"),
    "task": ("not_started", "in_progress", "blocked", "under_review", "completed", "cancelled"),
    "milestone": ("planned", "approaching", "reached", "missed", "rescheduled"),
    "issue": ("identified", "analyzing", "fixing", "testing", "resolved", "wont_fix"),
    "risk": ("identified", "monitoring", "mitigating", "occurred", "avoided", "accepted"),
    "decision": (
        "proposed",
        "under_review",
        "approved",
        "rejected",
        "implemented",
        "reversed",
    ),
}

DEFAULT_STATUS: dict[str, str] = {
    "project": "planning",
    "task": "not_started",
    "milestone": "planned",
    "issue": "identified",
    "risk": "identified",
    "decision": "proposed",
}

# Relations that tie a team member to a project.
TEAM_RELATIONS: frozenset[str] = frozenset(
    {RelationType.ASSIGNED_TO, RelationType.MANAGES, RelationType.CONTRIBUTES_TO}
)
