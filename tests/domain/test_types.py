"""Tests for entity/relation type sets and synthetic value names."""

from __future__ import annotations

import pytest

from pmgraph.domain.types import (
    DEFAULT_STATUS,
    LIFECYCLE_STATUSES,
    TEAM_RELATIONS,
    VALID_ENTITY_TYPES,
    VALID_PRIORITY_VALUES,
    VALID_RELATION_TYPES,
    VALID_STATUS_VALUES,
    EntityType,
    RelationType,
    priority_entity_name,
    status_entity_name,
    value_segment,
)


class TestClosedSets:
    def test_entity_type_count(self) -> None:
        assert len(VALID_ENTITY_TYPES) == 16

    def test_relation_type_count(self) -> None:
        assert len(VALID_RELATION_TYPES) == 26

    def test_team_member_wire_name(self) -> None:
        assert EntityType.TEAM_MEMBER == "teamMember"
        assert "teamMember" in VALID_ENTITY_TYPES

    @pytest.mark.parametrize("name", ["has_status", "has_priority", "depends_on", "requires"])
    def test_relation_members(self, name: str) -> None:
        assert name in VALID_RELATION_TYPES

    def test_status_and_priority_values(self) -> None:
        assert VALID_STATUS_VALUES == {"active", "completed", "pending", "blocked", "cancelled"}
        assert VALID_PRIORITY_VALUES == {"high", "low"}

    def test_team_relations(self) -> None:
        assert TEAM_RELATIONS == {
            RelationType.ASSIGNED_TO,
            RelationType.MANAGES,
            RelationType.CONTRIBUTES_TO,
        }


class TestSyntheticNames:
    def test_status_name(self) -> None:
        assert status_entity_name("completed") == "status:completed"

    def test_priority_name(self) -> None:
        assert priority_entity_name("high") == "priority:high"

    def test_value_segment_keeps_extra_colons(self) -> None:
        assert value_segment("status:a:b") == "a:b"

    def test_value_segment_without_prefix(self) -> None:
        assert value_segment("plain") == "plain"


class TestLifecycles:
    def test_every_default_is_in_its_lifecycle(self) -> None:
        for entity_type, default in DEFAULT_STATUS.items():
            assert default in LIFECYCLE_STATUSES[entity_type]

    def test_task_default(self) -> None:
        assert DEFAULT_STATUS["task"] == "not_started"
