"""Tests for DependencyService and the critical-path search."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from pmgraph.infrastructure.workspace import Workspace
from pmgraph.services.dependency import DependencyService, critical_path

if TYPE_CHECKING:
    from tests.conftest import GraphBuilder


@pytest.fixture
def chain(build: GraphBuilder) -> DependencyService:
    """T4 -> T3 -> T2 -> T1 (each depends_on the next), T2 in P1 and assigned to alice."""
    build.entity("P1", "project").entity("alice", "teamMember")
    for name in ("T1", "T2", "T3", "T4"):
        build.entity(name, "task")
    build.relate("T2", "T1", "depends_on").relate("T3", "T2", "depends_on")
    build.relate("T4", "T3", "depends_on")
    build.relate("T2", "P1", "part_of").relate("T2", "alice", "assigned_to")
    return DependencyService(build.workspace)


def _rows(data: dict[str, Any]) -> dict[str, dict[str, Any]]:
    return {r["task"]["name"]: r for r in data["dependencies"]}


class TestTaskDependencies:
    def test_tree_in_both_directions(self, chain: DependencyService) -> None:
        result = chain.task_dependencies("T2", depth=2)
        assert result.ok
        data = result.data
        assert [r["task"]["name"] for r in data["dependencies"]] == ["T2", "T3", "T4", "T1"]

        rows = _rows(data)
        assert rows["T1"]["level"] == 1
        assert rows["T2"]["level"] == 0
        assert rows["T4"]["level"] == 0
        assert rows["T2"]["dependsOn"] == ["T1"]
        assert rows["T2"]["dependedOnBy"] == ["T3"]
        assert rows["T1"]["dependsOn"] == []
        assert rows["T4"]["dependedOnBy"] == []

        assert data["criticalPath"] == ["T1", "T2", "T3", "T4"]
        assert data["summary"] == {"totalDependencies": 3, "maxDepth": 2, "blockedBy": 1}

    def test_row_details(self, chain: DependencyService) -> None:
        data = chain.task_dependencies("T2").data
        row = _rows(data)["T2"]
        assert row["status"] == "not_started"
        assert row["assignee"] == "alice"
        assert row["dueDate"] is None
        assert data["projectName"] == "P1"
        assert data["task"]["name"] == "T2"

    def test_depth_limits_both_directions(self, chain: DependencyService) -> None:
        data = chain.task_dependencies("T2", depth=1).data
        rows = _rows(data)
        assert set(rows) == {"T1", "T2", "T3"}
        assert rows["T3"]["dependedOnBy"] == []
        assert data["criticalPath"] == ["T1", "T2", "T3"]

    def test_depth_zero_is_root_only(self, chain: DependencyService) -> None:
        data = chain.task_dependencies("T3", depth=0).data
        assert [r["task"]["name"] for r in data["dependencies"]] == ["T3"]
        assert data["summary"]["totalDependencies"] == 0
        assert data["criticalPath"] == ["T3"]

    def test_completed_prerequisites_do_not_block(
        self, chain: DependencyService, build: GraphBuilder
    ) -> None:
        build.status("T1", "completed")
        assert chain.task_dependencies("T3", depth=2).data["summary"]["blockedBy"] == 1
        build.status("T2", "completed")
        assert chain.task_dependencies("T3", depth=2).data["summary"]["blockedBy"] == 0

    def test_completed_root_is_never_blocked(
        self, chain: DependencyService, build: GraphBuilder
    ) -> None:
        build.status("T4", "completed")
        assert chain.task_dependencies("T4", depth=3).data["summary"]["blockedBy"] == 0

    def test_level_is_shortest_distance(self, build: GraphBuilder) -> None:
        # R needs A and B directly; A also needs B.
        for name in ("R", "A", "B"):
            build.entity(name, "task")
        build.relate("R", "A", "depends_on").relate("A", "B", "depends_on")
        build.relate("R", "B", "depends_on")

        data = DependencyService(build.workspace).task_dependencies("R", depth=2).data
        rows = _rows(data)
        assert [r["task"]["name"] for r in data["dependencies"]] == ["R", "A", "B"]
        assert rows["A"]["level"] == 1
        assert rows["B"]["level"] == 1
        assert rows["R"]["dependsOn"] == ["A", "B"]
        assert rows["B"]["dependedOnBy"] == ["A", "R"]
        assert data["criticalPath"] == ["B", "A", "R"]
        assert data["summary"]["blockedBy"] == 2

    def test_cycle_terminates(self, build: GraphBuilder) -> None:
        build.entity("A", "task").entity("B", "task")
        build.relate("A", "B", "depends_on").relate("B", "A", "depends_on")
        result = DependencyService(build.workspace).task_dependencies("A", depth=10)
        assert result.ok
        rows = _rows(result.data)
        assert set(rows) == {"A", "B"}
        assert rows["B"]["level"] == 1
        assert result.data["criticalPath"] == []

    def test_non_task_dependencies_ignored(self, build: GraphBuilder) -> None:
        build.entity("T1", "task").entity("P2", "project")
        build.relate("T1", "P2", "depends_on")
        data = DependencyService(build.workspace).task_dependencies("T1").data
        assert [r["task"]["name"] for r in data["dependencies"]] == ["T1"]

    def test_missing_task(self, workspace: Workspace) -> None:
        result = DependencyService(workspace).task_dependencies("T404")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"
        assert result.error.message == "Task 'T404' not found"


class TestCriticalPath:
    @staticmethod
    def _row(name: str, depends_on: list[str], depended_on_by: list[str]) -> dict[str, object]:
        return {"task": {"name": name}, "dependsOn": depends_on, "dependedOnBy": depended_on_by}

    def test_longest_branch_wins(self) -> None:
        rows = [
            self._row("A", [], ["B", "D"]),
            self._row("B", ["A"], ["C"]),
            self._row("C", ["B"], []),
            self._row("D", ["A"], []),
        ]
        assert critical_path(rows) == ["A", "B", "C"]

    def test_first_of_equal_length_wins(self) -> None:
        rows = [
            self._row("A", [], ["B", "C"]),
            self._row("B", ["A"], []),
            self._row("C", ["A"], []),
        ]
        assert critical_path(rows) == ["A", "B"]

    def test_empty(self) -> None:
        assert critical_path([]) == []

    def test_isolated_node(self) -> None:
        assert critical_path([self._row("A", [], [])]) == ["A"]

    def test_start_feeding_a_cycle(self) -> None:
        rows = [
            self._row("A", [], ["B"]),
            self._row("B", ["A", "C"], ["C"]),
            self._row("C", ["B"], ["B"]),
        ]
        assert critical_path(rows) == []

    def test_isolated_start_beside_a_chain(self) -> None:
        rows = [
            self._row("X", [], []),
            self._row("A", [], ["B"]),
            self._row("B", ["A"], []),
        ]
        assert critical_path(rows) == ["A", "B"]
