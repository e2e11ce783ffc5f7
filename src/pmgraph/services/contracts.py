"""Typed payload contracts for service and adapter boundaries.

These models validate operation payload shapes before they leave the
service layer so key regressions (for example ``taskCount`` vs
``task_count``) fail fast in tests and during development. Keys follow
the camelCase wire format of the stored graph.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


def dump_validated[T: BaseModel](model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="python")


class GraphPayload(BaseModel):
    """``{entities, relations}`` snapshot returned by query operations."""

    model_config = ConfigDict(extra="allow")

    entities: list[dict[str, Any]]
    relations: list[dict[str, Any]]


class OverviewSummary(BaseModel):
    taskCount: int
    completedTasks: int
    taskCompletionRate: int
    milestoneCount: int
    teamMemberCount: int
    issueCount: int
    riskCount: int
    componentCount: int


class OverviewData(BaseModel):
    """Payload contract for ``ProjectService.overview``."""

    model_config = ConfigDict(extra="allow")

    project: dict[str, Any]
    info: dict[str, Any]
    summary: OverviewSummary


class DependencyRow(BaseModel):
    """One node of a task dependency tree."""

    task: dict[str, Any]
    level: int
    dependsOn: list[str]
    dependedOnBy: list[str]
    status: str
    dueDate: str | None = None
    assignee: str | None = None


class DependencySummary(BaseModel):
    totalDependencies: int
    maxDepth: int
    blockedBy: int


class DependencyData(BaseModel):
    """Payload contract for ``DependencyService.task_dependencies``."""

    task: dict[str, Any]
    projectName: str | None = None
    dependencies: list[DependencyRow]
    criticalPath: list[str]
    summary: DependencySummary


class Workload(BaseModel):
    totalTasks: int
    completedTasks: int
    inProgressTasks: int
    notStartedTasks: int
    blockedTasks: int
    completionRate: int


class AssignmentsData(BaseModel):
    """Payload contract for ``TeamService.assignments``."""

    model_config = ConfigDict(extra="allow")

    teamMember: dict[str, Any]
    workload: Workload
    assignedTasks: list[dict[str, Any]]


class TaskMetrics(BaseModel):
    total: int
    completed: int
    blocked: int
    completionRate: int


class MilestoneMetrics(BaseModel):
    total: int
    reached: int
    missed: int
    completionRate: int


class IssueMetrics(BaseModel):
    total: int
    resolved: int
    open: int
    resolutionRate: int


class RiskMetrics(BaseModel):
    total: int
    mitigated: int
    active: int
    mitigationRate: int


class TimelineMetrics(BaseModel):
    progress: int
    behindSchedule: bool


class HealthMetrics(BaseModel):
    tasks: TaskMetrics
    milestones: MilestoneMetrics
    issues: IssueMetrics
    risks: RiskMetrics
    timeline: TimelineMetrics


class HealthData(BaseModel):
    """Payload contract for ``HealthService.project_health``."""

    project: dict[str, Any]
    healthScore: int
    healthStatus: Literal["healthy", "attention_needed", "at_risk", "critical"]
    metrics: HealthMetrics
    topIssues: list[dict[str, Any]]
    recommendations: list[str]
