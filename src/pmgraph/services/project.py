"""ProjectService — read-only project views.

Every view loads one snapshot, checks that the root is a ``project``
entity, and joins ``part_of`` (and friends) through the GraphIndex.
Dates come from ``Key: value`` observations; missing or unparsable
dates never raise, they sort last.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from pmgraph.domain.errors import GraphError, NotFoundError
from pmgraph.domain.models import Entity
from pmgraph.domain.observations import date_sort_key, observation_value, parse_date
from pmgraph.domain.types import TEAM_RELATIONS, EntityType, RelationType
from pmgraph.infrastructure.graph.engine import GraphIndex
from pmgraph.infrastructure.store import StoreError
from pmgraph.services._helpers import (
    days_between,
    group_by_status,
    info_fields,
    now_utc,
    parse_int,
    percent,
    priority_of,
    round_half_up,
    status_of,
)
from pmgraph.services.base import BaseService
from pmgraph.services.contracts import OverviewData, dump_validated
from pmgraph.services.result import ServiceResult
from pmgraph.services.telemetry import trace_span, traced

# Primary label of a project connection, strongest first.
_CONNECTION_TYPES = ("dependency", "shared_team", "shared_resources", "shared_stakeholders")


def _obs(entity: Entity, key: str) -> str | None:
    return observation_value(entity.observations, key)


def _bucket(rows: list[dict[str, Any]], key: str) -> dict[str, list[dict[str, Any]]]:
    """Group report rows by one of their ``info`` fields."""
    groups: dict[str, list[dict[str, Any]]] = {}
    for row in rows:
        groups.setdefault(row["info"][key], []).append(row)
    return groups


class ProjectService(BaseService):
    """Project-rooted analytics."""

    # ------------------------------------------------------------------
    # overview
    # ------------------------------------------------------------------

    @traced
    def overview(self, project_name: str) -> ServiceResult:
        """Everything attached to a project, grouped and summarized."""
        op = "overview"
        try:
            index = self._index()
            project = self._require(index, project_name, EntityType.PROJECT, "Project")
        except (GraphError, StoreError) as exc:
            return self._failure(op, exc)

        with trace_span("join"):
            components = index.members_of(project_name, EntityType.COMPONENT)
            tasks = index.members_of(project_name, EntityType.TASK)
            milestones = sorted(
                index.members_of(project_name, EntityType.MILESTONE),
                key=lambda m: date_sort_key(_obs(m, "Date")),
            )
            issues = index.members_of(project_name, EntityType.ISSUE)
            risks = index.members_of(project_name, EntityType.RISK)
            resources = index.members_of(project_name, EntityType.RESOURCE)
            team_members = index.sources(project_name, TEAM_RELATIONS, EntityType.TEAM_MEMBER)
            stakeholders = index.sources(
                project_name, RelationType.STAKEHOLDER_OF, EntityType.STAKEHOLDER
            )

        now = now_utc()
        upcoming = [
            m for m in milestones if (d := parse_date(_obs(m, "Date"))) is not None and d >= now
        ]
        completed = sum(1 for t in tasks if status_of(index, t) == "completed")
        fields = info_fields(project, "Description", "StartDate", "EndDate", "Goal", "Budget")

        data = {
            "project": project.to_dict(),
            "info": {
                "description": fields["description"],
                "startDate": fields["startDate"],
                "endDate": fields["endDate"],
                "priority": priority_of(index, project),
                "status": status_of(index, project),
                "goal": fields["goal"],
                "budget": fields["budget"],
            },
            "summary": {
                "taskCount": len(tasks),
                "completedTasks": completed,
                "taskCompletionRate": percent(completed, len(tasks)),
                "milestoneCount": len(milestones),
                "teamMemberCount": len(team_members),
                "issueCount": len(issues),
                "riskCount": len(risks),
                "componentCount": len(components),
            },
            "components": [e.to_dict() for e in components],
            "tasks": [e.to_dict() for e in tasks],
            "tasksByStatus": group_by_status(index, tasks),
            "milestones": [e.to_dict() for e in milestones],
            "upcomingMilestones": [e.to_dict() for e in upcoming],
            "teamMembers": [e.to_dict() for e in team_members],
            "issues": [e.to_dict() for e in issues],
            "issuesByStatus": group_by_status(index, issues),
            "risks": [e.to_dict() for e in risks],
            "resources": [e.to_dict() for e in resources],
            "stakeholders": [e.to_dict() for e in stakeholders],
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(OverviewData, data))

    # ------------------------------------------------------------------
    # milestone_progress
    # ------------------------------------------------------------------

    @traced
    def milestone_progress(
        self, project_name: str, milestone_name: str | None = None
    ) -> ServiceResult:
        """Completion of each milestone from its ``required_for`` tasks.

        With *milestone_name*, only that milestone is reported; it must be
        ``part_of`` the project or the call fails with ``NOT_FOUND``.
        """
        op = "milestone_progress"
        try:
            index = self._index()
            project = self._require(index, project_name, EntityType.PROJECT, "Project")
            milestones = index.members_of(project_name, EntityType.MILESTONE)
            if milestone_name is not None:
                milestones = [m for m in milestones if m.name == milestone_name]
                if not milestones:
                    raise NotFoundError("Milestone", milestone_name, project=project_name)
        except (GraphError, StoreError) as exc:
            return self._failure(op, exc)

        now = now_utc()
        rows = [self._milestone_row(index, m, now) for m in milestones]
        rows.sort(key=lambda r: date_sort_key(r["info"]["date"]))

        total = len(rows)
        reached = sum(1 for r in rows if r["info"]["status"] == "reached")
        average = (
            sum(r["progress"]["completionPercentage"] for r in rows) / total if total else 0
        )
        next_milestone = next(
            (r for r in rows if r["info"]["status"] not in ("reached", "missed")), None
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "project": project.to_dict(),
                "milestones": rows,
                "summary": {
                    "totalMilestones": total,
                    "reachedMilestones": reached,
                    "milestoneCompletionRate": percent(reached, total),
                    "averageCompletion": round_half_up(average),
                    "nextMilestone": next_milestone,
                    "overdueMilestones": sum(1 for r in rows if r["progress"]["isOverdue"]),
                },
            },
        )

    @staticmethod
    def _milestone_row(index: GraphIndex, milestone: Entity, now: datetime) -> dict[str, Any]:
        status = status_of(index, milestone)
        related = index.sources(milestone.name, RelationType.REQUIRED_FOR, EntityType.TASK)
        statuses = [status_of(index, t) for t in related]
        completed = statuses.count("completed")
        if related:
            completion = percent(completed, len(related))
        else:
            completion = 100 if status == "reached" else 0

        date = _obs(milestone, "Date")
        due = parse_date(date)
        days_remaining: int | None = None
        overdue = False
        if due is not None:
            delta = days_between(now, due)
            days_remaining = math.ceil(delta)
            overdue = delta < 0 and status not in ("reached", "missed")

        blockers = [
            t.to_dict()
            for t, s in zip(related, statuses, strict=True)
            if s not in ("completed", "cancelled")
        ]
        return {
            "milestone": milestone.to_dict(),
            "info": {
                "description": _obs(milestone, "Description"),
                "date": date,
                "status": status,
                "criteria": _obs(milestone, "Criteria"),
            },
            "progress": {
                "totalTasks": len(related),
                "completedTasks": completed,
                "completionPercentage": completion,
                "daysRemaining": days_remaining,
                "isOverdue": overdue,
            },
            "relatedTasks": [t.to_dict() for t in related],
            "blockers": blockers,
        }

    # ------------------------------------------------------------------
    # timeline
    # ------------------------------------------------------------------

    @traced
    def timeline(self, project_name: str) -> ServiceResult:
        """Project start/end, milestone dates and task due dates in order.

        Entities without the date observation are not on the timeline. A
        date that is present but unparsable still yields an event: it
        sorts after every dated event, with ``date``, ``dateString`` and
        the day gaps set to None, and takes no part in position or
        progress.
        """
        op = "timeline"
        try:
            index = self._index()
            project = self._require(index, project_name, EntityType.PROJECT, "Project")
        except (GraphError, StoreError) as exc:
            return self._failure(op, exc)

        events: list[tuple[datetime, dict[str, Any]]] = []
        undated: list[dict[str, Any]] = []

        def add(entity: Entity, key: str, event_type: str, description: str | None) -> None:
            raw = _obs(entity, key)
            if not raw:
                return
            when = parse_date(raw)
            status = status_of(index, entity) if event_type in ("milestone", "task") else None
            event = {
                "date": when.isoformat() if when else None,
                "dateString": when.date().isoformat() if when else None,
                "entity": entity.to_dict(),
                "eventType": event_type,
                "description": description,
                "status": status,
            }
            if when is None:
                undated.append({**event, "daysFromPrevious": None, "daysToNext": None})
            else:
                events.append((when, event))

        add(project, "StartDate", "project_start", "Project Start")
        add(project, "EndDate", "project_end", "Project End")
        for milestone in index.members_of(project_name, EntityType.MILESTONE):
            add(milestone, "Date", "milestone", _obs(milestone, "Description"))
        for task in index.members_of(project_name, EntityType.TASK):
            add(task, "DueDate", "task", _obs(task, "Description"))
        events.sort(key=lambda pair: pair[0])

        for i, (when, event) in enumerate(events):
            event["daysFromPrevious"] = (
                round_half_up(days_between(events[i - 1][0], when)) if i > 0 else 0
            )
            event["daysToNext"] = (
                round_half_up(days_between(when, events[i + 1][0])) if i < len(events) - 1 else 0
            )

        now = now_utc()
        current = next((i for i, (when, _) in enumerate(events) if when >= now), -1)
        if current == -1 and events:
            current = len(events) - 1

        progress = 0
        duration = 0
        if len(events) >= 2:
            first, last = events[0][0], events[-1][0]
            total = (last - first).total_seconds()
            if total > 0:
                elapsed = (now - first).total_seconds()
                progress = min(100, max(0, round_half_up(elapsed / total * 100)))
            duration = round_half_up(days_between(first, last))

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "project": project.to_dict(),
                "timeline": [event for _, event in events] + undated,
                "currentPosition": current,
                "progressPercentage": progress,
                "projectDuration": duration,
                "upcomingEvents": [event for when, event in events if when >= now][:5],
            },
        )

    # ------------------------------------------------------------------
    # resource_allocation
    # ------------------------------------------------------------------

    @traced
    def resource_allocation(
        self, project_name: str, resource_name: str | None = None
    ) -> ServiceResult:
        """Load on each project resource from the tasks that ``requires`` it.

        Usage is in-progress tasks over ``Capacity``, capped at 100, so a
        zero capacity reads 100 as soon as one task is in progress. With a
        missing, unparsable or negative capacity, a resource with tasks
        reads 50 and one without reads 0.
        """
        op = "resource_allocation"
        try:
            index = self._index()
            project = self._require(index, project_name, EntityType.PROJECT, "Project")
            resources = index.members_of(project_name, EntityType.RESOURCE)
            if resource_name is not None:
                resources = [r for r in resources if r.name == resource_name]
                if not resources:
                    raise NotFoundError("Resource", resource_name, project=project_name)
        except (GraphError, StoreError) as exc:
            return self._failure(op, exc)

        rows = [self._resource_row(index, r) for r in resources]
        rows.sort(key=lambda r: r["usage"]["usagePercentage"], reverse=True)

        over = [r for r in rows if r["usage"]["usagePercentage"] > 90]
        under = [
            r for r in rows if r["usage"]["usagePercentage"] < 20 and r["usage"]["totalTasks"] > 0
        ]
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "project": project.to_dict(),
                "resources": rows,
                "summary": {
                    "totalResources": len(rows),
                    "overallocatedCount": len(over),
                    "underutilizedCount": len(under),
                },
                "overallocatedResources": over,
                "underutilizedResources": under,
            },
        )

    @staticmethod
    def _resource_row(index: GraphIndex, resource: Entity) -> dict[str, Any]:
        info = info_fields(resource, "Type", "Availability", "Capacity", "Cost")
        tasks = sorted(
            index.sources(resource.name, RelationType.REQUIRES, EntityType.TASK),
            key=lambda t: date_sort_key(_obs(t, "DueDate")),
        )
        by_status = group_by_status(index, tasks)
        in_progress = len(by_status.get("in_progress", []))

        capacity = parse_int(info["capacity"])
        if capacity is None or capacity < 0:
            usage = 50 if tasks else 0
        elif capacity == 0:
            usage = 100 if in_progress else 0
        else:
            usage = min(100, round_half_up(in_progress / capacity * 100))

        return {
            "resource": resource.to_dict(),
            "info": info,
            "usage": {
                "totalTasks": len(tasks),
                "inProgressTasks": in_progress,
                "usagePercentage": usage,
            },
            "assignedTasks": [t.to_dict() for t in tasks],
            "tasksByStatus": by_status,
            "teamMembers": [
                m.to_dict()
                for m in index.sources(resource.name, RelationType.USES, EntityType.TEAM_MEMBER)
            ],
        }

    # ------------------------------------------------------------------
    # risks
    # ------------------------------------------------------------------

    @traced
    def risks(self, project_name: str) -> ServiceResult:
        """Project risks scored as likelihood x impact, highest first."""
        op = "risks"
        try:
            index = self._index()
            project = self._require(index, project_name, EntityType.PROJECT, "Project")
        except (GraphError, StoreError) as exc:
            return self._failure(op, exc)

        threshold = self._workspace.settings.analytics.high_risk_threshold
        rows: list[dict[str, Any]] = []
        for risk in index.members_of(project_name, EntityType.RISK):
            likelihood = _obs(risk, "Likelihood")
            impact = _obs(risk, "Impact")
            l_value, i_value = parse_int(likelihood), parse_int(impact)
            score = l_value * i_value if l_value is not None and i_value is not None else None
            rows.append(
                {
                    "risk": risk.to_dict(),
                    "info": {
                        "description": _obs(risk, "Description"),
                        "likelihood": likelihood,
                        "impact": impact,
                        "status": status_of(index, risk),
                        "mitigation": _obs(risk, "Mitigation"),
                        "riskScore": score,
                    },
                    "affectedEntities": [
                        e.to_dict() for e in index.sources(risk.name, RelationType.IMPACTED_BY)
                    ],
                }
            )

        rows.sort(key=lambda r: (r["info"]["riskScore"] is None, -(r["info"]["riskScore"] or 0)))
        by_status = _bucket(rows, "status")

        def high_priority(row: dict[str, Any]) -> bool:
            info = row["info"]
            if info["riskScore"] is not None:
                return info["riskScore"] >= threshold
            return info["impact"] == "high" or info["likelihood"] == "high"

        high = [r for r in rows if high_priority(r)]
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "project": project.to_dict(),
                "risks": rows,
                "risksByStatus": by_status,
                "summary": {
                    "totalRisks": len(rows),
                    "highPriorityCount": len(high),
                    "mitigatedCount": len(by_status.get("mitigating", [])),
                    "avoidedCount": len(by_status.get("avoided", [])),
                    "acceptedCount": len(by_status.get("accepted", [])),
                    "occurredCount": len(by_status.get("occurred", [])),
                },
                "highPriorityRisks": high,
            },
        )

    # ------------------------------------------------------------------
    # related_projects
    # ------------------------------------------------------------------

    @traced
    def related_projects(self, project_name: str, *, depth: int | None = None) -> ServiceResult:
        """Projects connected through shared people, resources or dependencies.

        Discovery runs level by level: projects found at depth 1 seed the
        search at depth 2, and so on up to *depth*. A project is reported
        once, at the first depth where it connects.

        Args:
            project_name: The seed project.
            depth: Maximum discovery depth (defaults to
                ``[analytics] related_depth``).
        """
        op = "related_projects"
        if depth is None:
            depth = self._workspace.settings.analytics.related_depth
        try:
            index = self._index()
            project = self._require(index, project_name, EntityType.PROJECT, "Project")
        except (GraphError, StoreError) as exc:
            return self._failure(op, exc)

        projects = index.entities_of_type(EntityType.PROJECT)
        visited: set[str] = {project_name}
        frontier = [project_name]
        level = 1
        related: list[dict[str, Any]] = []

        with trace_span("discover") as span:
            while frontier and level <= depth:
                next_frontier: list[str] = []
                for current in frontier:
                    for other in projects:
                        if other.name in visited:
                            continue
                        connection = _connection(index, current, other.name)
                        if connection["connectionStrength"] <= 0:
                            continue
                        visited.add(other.name)
                        next_frontier.append(other.name)
                        related.append(
                            {
                                "project": other.to_dict(),
                                **connection,
                                "depth": level,
                                "discoveredFrom": current,
                            }
                        )
                frontier = next_frontier
                level += 1
            if span:
                span.annotate("levels", level - 1)
                span.annotate("found", len(related))

        related.sort(key=lambda r: r["connectionStrength"], reverse=True)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "project": project.to_dict(),
                "relatedProjects": related,
                "summary": {
                    "totalRelated": len(related),
                    "byConnectionType": {
                        kind: sum(1 for r in related if r["connectionType"] == kind)
                        for kind in _CONNECTION_TYPES
                    },
                    "maxDepth": depth,
                },
            },
        )

    # ------------------------------------------------------------------
    # decision_log
    # ------------------------------------------------------------------

    @traced
    def decision_log(self, project_name: str) -> ServiceResult:
        """Project decisions, most recent first."""
        op = "decision_log"
        try:
            index = self._index()
            project = self._require(index, project_name, EntityType.PROJECT, "Project")
        except (GraphError, StoreError) as exc:
            return self._failure(op, exc)

        rows: list[dict[str, Any]] = []
        for decision in index.members_of(project_name, EntityType.DECISION):
            info = info_fields(decision, "Description", "Date", "Rationale", "Alternatives")
            info["status"] = status_of(index, decision)
            involved = index.targets(
                decision.name, RelationType.CREATED_BY, EntityType.TEAM_MEMBER
            )
            affected = index.sources(decision.name, RelationType.IMPACTED_BY)
            rows.append(
                {
                    "decision": decision.to_dict(),
                    "info": info,
                    "involvedTeamMembers": [m.to_dict() for m in involved],
                    "affectedEntities": [e.to_dict() for e in affected],
                }
            )

        rows.sort(key=lambda r: date_sort_key(r["info"]["date"], descending=True))
        by_status = _bucket(rows, "status")
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "project": project.to_dict(),
                "decisions": rows,
                "decisionsByStatus": by_status,
                "summary": {
                    "totalDecisions": len(rows),
                    "approvedCount": len(by_status.get("approved", [])),
                    "implementedCount": len(by_status.get("implemented", [])),
                    "rejectedCount": len(by_status.get("rejected", [])),
                    "proposedCount": len(by_status.get("proposed", [])),
                },
            },
        )


def _connection(index: GraphIndex, current: str, other: str) -> dict[str, Any]:
    """Shared entities between two projects and the resulting strength."""

    def shared(relation_types: str | frozenset[str], entity_type: str) -> list[str]:
        mine = {e.name for e in index.sources(current, relation_types, entity_type)}
        return [
            e.name for e in index.sources(other, relation_types, entity_type) if e.name in mine
        ]

    team = shared(TEAM_RELATIONS, EntityType.TEAM_MEMBER)
    resources = shared(RelationType.PART_OF, EntityType.RESOURCE)
    stakeholders = shared(RelationType.STAKEHOLDER_OF, EntityType.STAKEHOLDER)
    dependencies = [
        {"from": a, "to": b}
        for a, b in ((current, other), (other, current))
        if index.has_edge(a, b, RelationType.DEPENDS_ON)
    ]

    strength = 2 * len(team) + 1.5 * len(resources) + 3 * len(dependencies) + len(stakeholders)
    counts = {
        "dependency": dependencies,
        "shared_team": team,
        "shared_resources": resources,
        "shared_stakeholders": stakeholders,
    }
    connection_type = next((kind for kind in _CONNECTION_TYPES if counts[kind]), "related")
    return {
        "connectionType": connection_type,
        "connectionStrength": strength,
        "sharedEntities": {
            "teamMembers": team,
            "resources": resources,
            "stakeholders": stakeholders,
            "dependencies": dependencies,
        },
    }
