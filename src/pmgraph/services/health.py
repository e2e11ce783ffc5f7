"""HealthService — composite 0-100 project health score.

Nine equally weighted factors:

==========  ==============================  ===========================
Category    Factor 1                        Factor 2
==========  ==============================  ===========================
tasks       completion rate                 100 - 200 x blocked ratio
milestones  reached rate                    100 - 200 x missed ratio
issues      resolution rate                 100 - 100 x open ratio
risks       mitigation rate                 100 - 100 x active ratio
schedule    70 on schedule, 30 behind
==========  ==============================  ===========================

An empty category scores 50 on both of its factors. A project with no
members and no dates therefore scores round((8 x 50 + 70) / 9) = 52.
"""

from __future__ import annotations

from pmgraph.domain.errors import GraphError
from pmgraph.domain.models import Entity
from pmgraph.domain.observations import observation_value, parse_date
from pmgraph.domain.types import EntityType
from pmgraph.infrastructure.store import StoreError
from pmgraph.services._helpers import (
    now_utc,
    percent,
    priority_of,
    round_half_up,
    status_of,
)
from pmgraph.services.base import BaseService
from pmgraph.services.contracts import HealthData, dump_validated
from pmgraph.services.result import ServiceResult
from pmgraph.services.telemetry import trace_span, traced

NEUTRAL = 50.0
ON_SCHEDULE = 70.0
BEHIND_SCHEDULE = 30.0
TOP_ISSUES = 3

_MITIGATED = frozenset({"mitigating", "avoided"})
_ACTIVE = frozenset({"identified", "monitoring"})
_CLOSED_ISSUES = frozenset({"resolved", "wont_fix"})


def health_tier(score: int) -> str:
    """Map a 0-100 score onto its tier name.

    Examples:
        >>> health_tier(80), health_tier(60), health_tier(40), health_tier(39)
        ('healthy', 'attention_needed', 'at_risk', 'critical')
    """
    if score >= 80:
        return "healthy"
    if score >= 60:
        return "attention_needed"
    if score >= 40:
        return "at_risk"
    return "critical"


def recommendations(
    tier: str,
    *,
    blocked_tasks: int,
    open_issues: int,
    behind_schedule: bool,
    active_risks: int,
) -> list[str]:
    """Tier-specific advice, filtered by which problems are actually present."""
    advice: list[str] = []
    if tier == "healthy":
        advice.append("Continue current management practices")
        advice.append("Document successful strategies for future projects")
    elif tier == "attention_needed":
        if blocked_tasks > 0:
            advice.append("Address blocked tasks to maintain momentum")
        if open_issues > 2:
            advice.append("Resolve open issues to prevent escalation")
        if behind_schedule:
            advice.append("Review project timeline and adjust as needed")
    elif tier == "at_risk":
        if blocked_tasks > 0:
            advice.append("Urgently resolve blocked tasks - consider reassigning resources")
        if behind_schedule:
            advice.append("Reevaluate project scope and timeline - consider adjustments")
        if active_risks > 0:
            advice.append("Implement mitigation strategies for active risks immediately")
        if open_issues > 0:
            advice.append("Prioritize issue resolution and prevent new issues")
    else:
        advice.append("Conduct emergency project review with stakeholders")
        advice.append("Consider project restructuring or reset")
        advice.append("Implement daily status meetings and tight monitoring")
        if blocked_tasks > 0:
            advice.append("Escalate blocked tasks to management for immediate action")
        if active_risks > 0:
            advice.append("Reassess all project risks and implement mitigation measures")
    return advice


def _ratio_factors(hits: int, misses: int, total: int, penalty: float) -> tuple[float, float]:
    """(rate factor, inverse-ratio factor) for one category."""
    if total == 0:
        return NEUTRAL, NEUTRAL
    return (
        min(100.0, hits / total * 100),
        max(0.0, 100 - misses / total * penalty),
    )


def _issue_rank(priority: str | None) -> int:
    if priority == "high":
        return 0
    if priority == "low":
        return 2
    return 1


class HealthService(BaseService):
    """Project health scoring."""

    @traced
    def project_health(self, project_name: str) -> ServiceResult:
        """Score a project and suggest actions for its tier."""
        op = "project_health"
        try:
            index = self._index()
            project = self._require(index, project_name, EntityType.PROJECT, "Project")
        except (GraphError, StoreError) as exc:
            return self._failure(op, exc)

        def statuses(entity_type: str) -> list[tuple[Entity, str]]:
            return [(e, status_of(index, e)) for e in index.members_of(project_name, entity_type)]

        with trace_span("collect"):
            tasks = statuses(EntityType.TASK)
            milestones = statuses(EntityType.MILESTONE)
            issues = statuses(EntityType.ISSUE)
            risks = statuses(EntityType.RISK)

        completed = sum(1 for _, s in tasks if s == "completed")
        blocked = sum(1 for _, s in tasks if s == "blocked")
        reached = sum(1 for _, s in milestones if s == "reached")
        missed = sum(1 for _, s in milestones if s == "missed")
        resolved = sum(1 for _, s in issues if s == "resolved")
        open_issues = len(issues) - resolved
        mitigated = sum(1 for _, s in risks if s in _MITIGATED)
        active = sum(1 for _, s in risks if s in _ACTIVE)

        task_rate = completed / len(tasks) * 100 if tasks else 0.0
        milestone_rate = reached / len(milestones) * 100 if milestones else 0.0

        slack = self._workspace.settings.analytics.schedule_slack
        progress = 0
        behind = False
        start = parse_date(observation_value(project.observations, "StartDate"))
        end = parse_date(observation_value(project.observations, "EndDate"))
        if start is not None and end is not None and end > start:
            elapsed = (now_utc() - start).total_seconds() / (end - start).total_seconds()
            elapsed_pct = min(100.0, max(0.0, elapsed * 100))
            behind = task_rate < elapsed_pct - slack
            progress = round_half_up(elapsed_pct)

        factors = [
            *_ratio_factors(completed, blocked, len(tasks), 200),
            *_ratio_factors(reached, missed, len(milestones), 200),
            *_ratio_factors(resolved, open_issues, len(issues), 100),
            *_ratio_factors(mitigated, active, len(risks), 100),
            BEHIND_SCHEDULE if behind else ON_SCHEDULE,
        ]
        score = round_half_up(sum(factors) / len(factors))
        tier = health_tier(score)

        unresolved = [e for e, s in issues if s not in _CLOSED_ISSUES]
        unresolved.sort(key=lambda e: _issue_rank(priority_of(index, e)))

        data = {
            "project": project.to_dict(),
            "healthScore": score,
            "healthStatus": tier,
            "metrics": {
                "tasks": {
                    "total": len(tasks),
                    "completed": completed,
                    "blocked": blocked,
                    "completionRate": round_half_up(task_rate),
                },
                "milestones": {
                    "total": len(milestones),
                    "reached": reached,
                    "missed": missed,
                    "completionRate": round_half_up(milestone_rate),
                },
                "issues": {
                    "total": len(issues),
                    "resolved": resolved,
                    "open": open_issues,
                    "resolutionRate": percent(resolved, len(issues)),
                },
                "risks": {
                    "total": len(risks),
                    "mitigated": mitigated,
                    "active": active,
                    "mitigationRate": percent(mitigated, len(risks)),
                },
                "timeline": {"progress": progress, "behindSchedule": behind},
            },
            "topIssues": [e.to_dict() for e in unresolved[:TOP_ISSUES]],
            "recommendations": recommendations(
                tier,
                blocked_tasks=blocked,
                open_issues=open_issues,
                behind_schedule=behind,
                active_risks=active,
            ),
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(HealthData, data))
