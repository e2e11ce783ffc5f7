"""DependencyService — task dependency tree and critical path.

``A depends_on B`` means B must finish before A. The tree is walked
breadth-first in both directions from the root task, each direction with
its own visited set and an explicit depth bound, so cyclic dependency
data always terminates.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterator
from typing import Any

import networkx as nx

from pmgraph.domain.errors import GraphError
from pmgraph.domain.models import Entity
from pmgraph.domain.observations import observation_value
from pmgraph.domain.types import EntityType, RelationType
from pmgraph.infrastructure.graph.engine import GraphIndex
from pmgraph.infrastructure.store import StoreError
from pmgraph.services._helpers import status_of
from pmgraph.services.base import BaseService
from pmgraph.services.contracts import DependencyData, dump_validated
from pmgraph.services.result import ServiceResult
from pmgraph.services.telemetry import trace_span, traced


def _bfs(root: str, depth: int, step: Callable[[str], list[Entity]]) -> dict[str, int]:
    """Hop distance from *root* to every task reachable within *depth* hops."""
    distance = {root: 0}
    queue: deque[str] = deque([root])
    while queue:
        node = queue.popleft()
        hops = distance[node]
        if hops >= depth:
            continue
        for neighbor in step(node):
            if neighbor.name not in distance:
                distance[neighbor.name] = hops + 1
                queue.append(neighbor.name)
    return distance


def critical_path(rows: list[dict[str, Any]]) -> list[str]:
    """Longest simple path (by node count) through the dependency fragment.

    Paths run from a task with no prerequisites to a task nothing depends
    on, following prerequisite -> dependent. Enumeration is depth-first in
    row order and the first longest path wins.
    """
    fragment = nx.DiGraph()
    for row in rows:
        fragment.add_node(row["task"]["name"])
    for row in rows:
        for prerequisite in row["dependsOn"]:
            fragment.add_edge(prerequisite, row["task"]["name"])

    starts = [row["task"]["name"] for row in rows if not row["dependsOn"]]
    ends = {row["task"]["name"] for row in rows if not row["dependedOnBy"]}

    def paths() -> Iterator[list[str]]:
        for start in starts:
            # A task with neither prerequisites nor dependents is its own path.
            if start in ends:
                yield [start]
            elif ends:
                # Ends have no successors, so each yielded path stops at its end.
                yield from nx.all_simple_paths(fragment, start, ends)

    return max(paths(), key=len, default=[])


class DependencyService(BaseService):
    """Dependency analytics rooted at one task."""

    @traced
    def task_dependencies(self, task_name: str, *, depth: int | None = None) -> ServiceResult:
        """Build the dependency tree around *task_name*.

        Each row carries ``level``, the shortest number of ``depends_on``
        hops from the root to that prerequisite; the root and tasks found
        only downstream sit at level 0. ``dependsOn``/``dependedOnBy``
        name the neighbors that are inside the tree.

        Args:
            task_name: The root task.
            depth: Hops to follow in each direction (defaults to
                ``[analytics] dependency_depth``).
        """
        op = "task_dependencies"
        if depth is None:
            depth = self._workspace.settings.analytics.dependency_depth
        try:
            index = self._index()
            task = self._require(index, task_name, EntityType.TASK, "Task")
        except (GraphError, StoreError) as exc:
            return self._failure(op, exc)

        with trace_span("traverse") as span:
            upstream = _bfs(
                task_name,
                depth,
                lambda n: index.targets(n, RelationType.DEPENDS_ON, EntityType.TASK),
            )
            downstream = _bfs(
                task_name,
                depth,
                lambda n: index.sources(n, RelationType.DEPENDS_ON, EntityType.TASK),
            )
            included = list(upstream)
            included.extend(n for n in downstream if n not in upstream)
            if span:
                span.annotate("upstream", len(upstream) - 1)
                span.annotate("downstream", len(downstream) - 1)

        members = set(included)
        rows = [
            self._row(index, entity, upstream.get(name, 0), members)
            for name in included
            if (entity := index.entity(name)) is not None
        ]
        rows.sort(key=lambda r: r["level"])

        with trace_span("critical_path"):
            path = critical_path(rows)

        root_status = status_of(index, task)
        blocked_by = 0
        if root_status != "completed":
            blocked_by = sum(
                1
                for r in rows
                if r["task"]["name"] != task_name
                and r["task"]["name"] in upstream
                and r["status"] != "completed"
            )

        projects = index.targets(task_name, RelationType.PART_OF, EntityType.PROJECT)
        data = {
            "task": task.to_dict(),
            "projectName": projects[0].name if projects else None,
            "dependencies": rows,
            "criticalPath": path,
            "summary": {
                "totalDependencies": len(rows) - 1,
                "maxDepth": depth,
                "blockedBy": blocked_by,
            },
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(DependencyData, data))

    @staticmethod
    def _row(index: GraphIndex, task: Entity, level: int, members: set[str]) -> dict[str, Any]:
        assignees = index.targets(task.name, RelationType.ASSIGNED_TO, EntityType.TEAM_MEMBER)
        return {
            "task": task.to_dict(),
            "level": level,
            "dependsOn": [
                t.name
                for t in index.targets(task.name, RelationType.DEPENDS_ON, EntityType.TASK)
                if t.name in members
            ],
            "dependedOnBy": [
                t.name
                for t in index.sources(task.name, RelationType.DEPENDS_ON, EntityType.TASK)
                if t.name in members
            ],
            "status": status_of(index, task),
            "dueDate": observation_value(task.observations, "DueDate"),
            "assignee": assignees[0].name if assignees else None,
        }
