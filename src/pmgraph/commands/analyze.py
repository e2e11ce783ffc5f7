"""Command group: read-only project analytics."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from pmgraph.commands._base import PmGroup
from pmgraph.services.dependency import DependencyService
from pmgraph.services.health import HealthService
from pmgraph.services.project import ProjectService
from pmgraph.services.team import TeamService

if TYPE_CHECKING:
    from pmgraph.commands._context import AppContext

_ANALYZE_EXAMPLES = """\
  pmgraph --json analyze project P1
  pmgraph --json analyze dependencies T3 --depth 3
  pmgraph --json analyze assignments alice
  pmgraph --json analyze milestones P1 --milestone M1
  pmgraph --json analyze health P1"""


@click.group(cls=PmGroup, examples=_ANALYZE_EXAMPLES)
@click.pass_obj
def analyze(app: AppContext) -> None:
    """Project views computed from the graph."""


@analyze.command(examples="""\
  pmgraph --json analyze project P1""")
@click.argument("project_name")
@click.pass_obj
def project(app: AppContext, project_name: str) -> None:
    """Overview of a project: members, groupings, and summary counts."""
    app.emit(ProjectService(app.workspace).overview(project_name))


@analyze.command(examples="""\
  pmgraph --json analyze dependencies T3
  pmgraph --json analyze dependencies T3 --depth 4""")
@click.argument("task_name")
@click.option("--depth", default=None, type=click.IntRange(min=0), help="Hops in each direction.")
@click.pass_obj
def dependencies(app: AppContext, task_name: str, depth: int | None) -> None:
    """Dependency tree and critical path around a task."""
    app.emit(DependencyService(app.workspace).task_dependencies(task_name, depth=depth))


@analyze.command(examples="""\
  pmgraph --json analyze assignments alice""")
@click.argument("member_name")
@click.pass_obj
def assignments(app: AppContext, member_name: str) -> None:
    """Tasks, workload, and deadlines for a team member."""
    app.emit(TeamService(app.workspace).assignments(member_name))


@analyze.command(examples="""\
  pmgraph --json analyze milestones P1
  pmgraph --json analyze milestones P1 --milestone M1""")
@click.argument("project_name")
@click.option("--milestone", "milestone_name", default=None, help="Report one milestone only.")
@click.pass_obj
def milestones(app: AppContext, project_name: str, milestone_name: str | None) -> None:
    """Progress toward each project milestone."""
    app.emit(ProjectService(app.workspace).milestone_progress(project_name, milestone_name))


@analyze.command(examples="""\
  pmgraph --json analyze timeline P1""")
@click.argument("project_name")
@click.pass_obj
def timeline(app: AppContext, project_name: str) -> None:
    """Dated project events in order."""
    app.emit(ProjectService(app.workspace).timeline(project_name))


@analyze.command(examples="""\
  pmgraph --json analyze resources P1
  pmgraph --json analyze resources P1 --resource R1""")
@click.argument("project_name")
@click.option("--resource", "resource_name", default=None, help="Report one resource only.")
@click.pass_obj
def resources(app: AppContext, project_name: str, resource_name: str | None) -> None:
    """Resource usage across project tasks."""
    app.emit(ProjectService(app.workspace).resource_allocation(project_name, resource_name))


@analyze.command(examples="""\
  pmgraph --json analyze risks P1""")
@click.argument("project_name")
@click.pass_obj
def risks(app: AppContext, project_name: str) -> None:
    """Scored project risks."""
    app.emit(ProjectService(app.workspace).risks(project_name))


@analyze.command(examples="""\
  pmgraph --json analyze related P1
  pmgraph --json analyze related P1 --depth 2""")
@click.argument("project_name")
@click.option("--depth", default=None, type=click.IntRange(min=1), help="Discovery depth.")
@click.pass_obj
def related(app: AppContext, project_name: str, depth: int | None) -> None:
    """Other projects sharing people, resources, or dependencies."""
    app.emit(ProjectService(app.workspace).related_projects(project_name, depth=depth))


@analyze.command(examples="""\
  pmgraph --json analyze decisions P1""")
@click.argument("project_name")
@click.pass_obj
def decisions(app: AppContext, project_name: str) -> None:
    """Project decisions, most recent first."""
    app.emit(ProjectService(app.workspace).decision_log(project_name))


@analyze.command(examples="""\
  pmgraph --json analyze health P1""")
@click.argument("project_name")
@click.pass_obj
def health(app: AppContext, project_name: str) -> None:
    """Composite health score with recommendations."""
    app.emit(HealthService(app.workspace).project_health(project_name))
