"""TeamService — workload view for one team member."""

from __future__ import annotations

import math
from typing import Any

from pmgraph.domain.errors import GraphError
from pmgraph.domain.observations import date_sort_key, observation_value, parse_date
from pmgraph.domain.types import EntityType, RelationType
from pmgraph.infrastructure.store import StoreError
from pmgraph.services._helpers import (
    days_between,
    info_fields,
    now_utc,
    percent,
    priority_of,
    status_of,
)
from pmgraph.services.base import BaseService
from pmgraph.services.contracts import AssignmentsData, dump_validated
from pmgraph.services.result import ServiceResult
from pmgraph.services.telemetry import traced

UNASSIGNED = "Unassigned"


class TeamService(BaseService):
    """Team-member-rooted analytics."""

    @traced
    def assignments(self, member_name: str) -> ServiceResult:
        """Tasks ``assigned_to`` a team member, ordered by due date.

        Upcoming deadlines fall within ``[analytics] upcoming_window_days``
        (whole days, rounded up, today included); overdue tasks are past
        due. Completed tasks are in neither list.
        """
        op = "assignments"
        try:
            index = self._index()
            member = self._require(index, member_name, EntityType.TEAM_MEMBER, "Team member")
        except (GraphError, StoreError) as exc:
            return self._failure(op, exc)

        assigned: list[dict[str, Any]] = []
        for task in index.sources(member_name, RelationType.ASSIGNED_TO, EntityType.TASK):
            projects = index.targets(task.name, RelationType.PART_OF, EntityType.PROJECT)
            assigned.append(
                {
                    "task": task.to_dict(),
                    "project": projects[0].to_dict() if projects else None,
                    "dueDate": observation_value(task.observations, "DueDate"),
                    "status": status_of(index, task),
                    "priority": priority_of(index, task),
                }
            )
        assigned.sort(key=lambda a: date_sort_key(a["dueDate"]))

        by_project: dict[str, list[dict[str, Any]]] = {}
        by_status: dict[str, list[dict[str, Any]]] = {}
        for item in assigned:
            project_key = item["project"]["name"] if item["project"] else UNASSIGNED
            by_project.setdefault(project_key, []).append(item)
            by_status.setdefault(item["status"], []).append(item)

        def count(status: str) -> int:
            return len(by_status.get(status, []))

        now = now_utc()
        window = self._workspace.settings.analytics.upcoming_window_days
        upcoming: list[dict[str, Any]] = []
        overdue: list[dict[str, Any]] = []
        for item in assigned:
            due = parse_date(item["dueDate"])
            if due is None or item["status"] == "completed":
                continue
            if 0 <= math.ceil(days_between(now, due)) <= window:
                upcoming.append(item)
            if due < now:
                overdue.append(item)

        projects = index.targets(
            member_name,
            {RelationType.MANAGES, RelationType.CONTRIBUTES_TO},
            EntityType.PROJECT,
        )
        data = {
            "teamMember": member.to_dict(),
            "info": info_fields(member, "Role", "Skills", "Availability"),
            "workload": {
                "totalTasks": len(assigned),
                "completedTasks": count("completed"),
                "inProgressTasks": count("in_progress"),
                "notStartedTasks": count("not_started"),
                "blockedTasks": count("blocked"),
                "completionRate": percent(count("completed"), len(assigned)),
            },
            "assignedTasks": assigned,
            "tasksByProject": by_project,
            "tasksByStatus": by_status,
            "projects": [p.to_dict() for p in projects],
            "upcomingDeadlines": upcoming,
            "overdueTasks": overdue,
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(AssignmentsData, data))
