"""Command group: graph mutations and attribute lookups.

Batch commands take their JSON payload from ``--file`` or stdin (see
``PmCommand``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from pmgraph.commands._base import PmGroup
from pmgraph.domain.types import VALID_PRIORITY_VALUES, VALID_STATUS_VALUES
from pmgraph.services.graph import GraphService

if TYPE_CHECKING:
    from pmgraph.commands._context import AppContext

_GRAPH_EXAMPLES = """\
  pmgraph graph init
  echo '[{"name": "P1", "entityType": "project", "observations": []}]' \\
    | pmgraph graph create-entities
  pmgraph graph create-relations --file relations.json
  pmgraph graph add-observations P1 "Status: in_progress" "Goal: ship v1"
  pmgraph graph set-status T1 completed
  pmgraph --json graph status T1"""


@click.group(cls=PmGroup, examples=_GRAPH_EXAMPLES)
@click.pass_obj
def graph(app: AppContext) -> None:
    """Create, change, and delete entities and relations."""


@graph.command(
    "init",
    examples="""\
  pmgraph graph init""",
)
@click.pass_obj
def init_cmd(app: AppContext) -> None:
    """Create the status:* and priority:* value entities if missing."""
    app.emit(GraphService(app.workspace).initialize_status_and_priority())


@graph.command(
    "create-entities",
    payload="entities",
    examples="""\
  pmgraph graph create-entities --file entities.json
  echo '{"entities": [{"name": "T1", "entityType": "task"}]}' | pmgraph graph create-entities""",
)
@click.pass_obj
def create_entities(app: AppContext, payload: list[Any]) -> None:
    """Create entities (all or nothing)."""
    app.emit(GraphService(app.workspace).create_entities(payload))


@graph.command(
    "create-relations",
    payload="relations",
    examples="""\
  echo '[{"from": "T1", "to": "P1", "relationType": "part_of"}]' \\
    | pmgraph graph create-relations""",
)
@click.pass_obj
def create_relations(app: AppContext, payload: list[Any]) -> None:
    """Create relations (all or nothing)."""
    app.emit(GraphService(app.workspace).create_relations(payload))


@graph.command(
    "add-observations",
    payload="observations",
    payload_required=False,
    examples="""\
  pmgraph graph add-observations T1 "DueDate: 2025-03-01" "Status: in_progress"
  pmgraph graph add-observations --file additions.json""",
)
@click.argument("entity_name", required=False)
@click.argument("observations", nargs=-1)
@click.pass_obj
def add_observations(
    app: AppContext,
    entity_name: str | None,
    observations: tuple[str, ...],
    payload: list[Any] | None,
) -> None:
    """Append observations to one entity, or to several from a payload."""
    service = GraphService(app.workspace)
    if payload is not None:
        app.emit(service.add_observations_batch(payload))
        return
    if entity_name is None:
        raise click.UsageError("Give ENTITY_NAME and observations, or --file.")
    app.emit(service.add_observations(entity_name, observations))


@graph.command(
    "delete-entities",
    examples="""\
  pmgraph graph delete-entities T1 T2""",
)
@click.argument("names", nargs=-1, required=True)
@click.pass_obj
def delete_entities(app: AppContext, names: tuple[str, ...]) -> None:
    """Delete entities and every relation touching them."""
    app.emit(GraphService(app.workspace).delete_entities(names))


@graph.command(
    "delete-observations",
    payload="deletions",
    examples="""\
  echo '[{"entityName": "T1", "observations": ["Status: blocked"]}]' \\
    | pmgraph graph delete-observations""",
)
@click.pass_obj
def delete_observations(app: AppContext, payload: list[Any]) -> None:
    """Remove exact-match observations."""
    app.emit(GraphService(app.workspace).delete_observations(payload))


@graph.command(
    "delete-relations",
    payload="relations",
    examples="""\
  echo '[{"from": "T1", "to": "P1", "relationType": "part_of"}]' \\
    | pmgraph graph delete-relations""",
)
@click.pass_obj
def delete_relations(app: AppContext, payload: list[Any]) -> None:
    """Remove relations by (from, to, relationType)."""
    app.emit(GraphService(app.workspace).delete_relations(payload))


@graph.command(
    "set-status",
    examples="""\
  pmgraph graph set-status T1 completed""",
)
@click.argument("name")
@click.argument("value", type=click.Choice(sorted(VALID_STATUS_VALUES)))
@click.pass_obj
def set_status(app: AppContext, name: str, value: str) -> None:
    """Set an entity's status (replaces any previous one)."""
    app.emit(GraphService(app.workspace).set_entity_status(name, value))


@graph.command(
    "set-priority",
    examples="""\
  pmgraph graph set-priority T1 high""",
)
@click.argument("name")
@click.argument("value", type=click.Choice(sorted(VALID_PRIORITY_VALUES)))
@click.pass_obj
def set_priority(app: AppContext, name: str, value: str) -> None:
    """Set an entity's priority (replaces any previous one)."""
    app.emit(GraphService(app.workspace).set_entity_priority(name, value))


@graph.command(examples="""\
  pmgraph --json graph status T1""")
@click.argument("name")
@click.pass_obj
def status(app: AppContext, name: str) -> None:
    """Show an entity's status relation value."""
    app.emit(GraphService(app.workspace).get_entity_status(name))


@graph.command(examples="""\
  pmgraph --json graph priority T1""")
@click.argument("name")
@click.pass_obj
def priority(app: AppContext, name: str) -> None:
    """Show an entity's priority relation value."""
    app.emit(GraphService(app.workspace).get_entity_priority(name))
