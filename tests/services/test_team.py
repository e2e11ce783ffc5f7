"""Tests for TeamService.assignments."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from pmgraph.infrastructure.workspace import Workspace
from pmgraph.services.team import UNASSIGNED, TeamService

if TYPE_CHECKING:
    from tests.conftest import GraphBuilder


def _due(offset: int) -> str:
    return "DueDate: " + (datetime.now(UTC) + timedelta(days=offset)).date().isoformat()


@pytest.fixture
def alice(build: GraphBuilder) -> TeamService:
    build.entity("P1", "project")
    build.entity("alice", "teamMember", "Role: engineer", "Skills: python")
    build.entity("T1", "task", _due(-2), "Status: in_progress")
    build.entity("T2", "task", _due(3))
    build.entity("T3", "task", _due(20))
    build.entity("T4", "task", _due(-1))
    build.entity("T5", "task")
    for name in ("T1", "T2", "T3", "T4", "T5"):
        build.relate(name, "alice", "assigned_to")
    build.relate("T1", "P1", "part_of").relate("T2", "P1", "part_of")
    build.relate("alice", "P1", "manages")
    build.status("T4", "completed").priority("T2", "high")
    return TeamService(build.workspace)


class TestAssignments:
    def test_ordered_by_due_date(self, alice: TeamService) -> None:
        data = alice.assignments("alice").data
        assert [a["task"]["name"] for a in data["assignedTasks"]] == [
            "T1",
            "T4",
            "T2",
            "T3",
            "T5",
        ]

    def test_workload(self, alice: TeamService) -> None:
        workload = alice.assignments("alice").data["workload"]
        assert workload == {
            "totalTasks": 5,
            "completedTasks": 1,
            "inProgressTasks": 1,
            "notStartedTasks": 3,
            "blockedTasks": 0,
            "completionRate": 20,
        }

    def test_groupings(self, alice: TeamService) -> None:
        data = alice.assignments("alice").data
        by_project = data["tasksByProject"]
        assert [a["task"]["name"] for a in by_project["P1"]] == ["T1", "T2"]
        assert [a["task"]["name"] for a in by_project[UNASSIGNED]] == ["T4", "T3", "T5"]
        assert set(data["tasksByStatus"]) == {"in_progress", "completed", "not_started"}

    def test_item_fields(self, alice: TeamService) -> None:
        items = {a["task"]["name"]: a for a in alice.assignments("alice").data["assignedTasks"]}
        assert items["T2"]["priority"] == "high"
        assert items["T2"]["project"]["name"] == "P1"
        assert items["T5"]["project"] is None
        assert items["T5"]["dueDate"] is None
        assert items["T4"]["status"] == "completed"

    def test_deadlines(self, alice: TeamService) -> None:
        data = alice.assignments("alice").data
        assert [a["task"]["name"] for a in data["upcomingDeadlines"]] == ["T2"]
        assert [a["task"]["name"] for a in data["overdueTasks"]] == ["T1"]

    def test_due_today_is_upcoming_and_overdue(self, build: GraphBuilder) -> None:
        build.entity("bob", "teamMember").entity("T9", "task", _due(0))
        build.relate("T9", "bob", "assigned_to")
        data = TeamService(build.workspace).assignments("bob").data
        assert [a["task"]["name"] for a in data["upcomingDeadlines"]] == ["T9"]
        assert [a["task"]["name"] for a in data["overdueTasks"]] == ["T9"]

    def test_member_info_and_projects(self, alice: TeamService) -> None:
        data = alice.assignments("alice").data
        assert data["info"] == {"role": "engineer", "skills": "python", "availability": None}
        assert [p["name"] for p in data["projects"]] == ["P1"]
        assert data["teamMember"]["name"] == "alice"

    def test_member_without_tasks(self, build: GraphBuilder) -> None:
        build.entity("carol", "teamMember")
        data = TeamService(build.workspace).assignments("carol").data
        assert data["workload"]["totalTasks"] == 0
        assert data["workload"]["completionRate"] == 0
        assert data["assignedTasks"] == []

    def test_missing_member(self, workspace: Workspace) -> None:
        result = TeamService(workspace).assignments("nobody")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"
        assert result.error.message == "Team member 'nobody' not found"
