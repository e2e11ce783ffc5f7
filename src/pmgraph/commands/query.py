"""Command group: search and lookup."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from pmgraph.commands._base import PmGroup
from pmgraph.services.query import QueryService

if TYPE_CHECKING:
    from pmgraph.commands._context import AppContext

_QUERY_EXAMPLES = """\
  pmgraph query search "in_progress"
  pmgraph query open P1 T1 T2
  pmgraph --json query dump"""


@click.group(cls=PmGroup, examples=_QUERY_EXAMPLES)
@click.pass_obj
def query(app: AppContext) -> None:
    """Search and read the graph."""


@query.command(
    examples="""\
  pmgraph query search "alice"
  pmgraph --json query search depends_on"""
)
@click.argument("query_text")
@click.pass_obj
def search(app: AppContext, query_text: str) -> None:
    """Case-insensitive substring search over entities and relations."""
    app.emit(QueryService(app.workspace).search_nodes(query_text))


@query.command(
    "open",
    examples="""\
  pmgraph --json query open P1 T1""",
)
@click.argument("names", nargs=-1, required=True)
@click.pass_obj
def open_cmd(app: AppContext, names: tuple[str, ...]) -> None:
    """Show the named entities and the relations among them."""
    app.emit(QueryService(app.workspace).open_nodes(names))


@query.command(
    examples="""\
  pmgraph --json query dump > backup.json"""
)
@click.pass_obj
def dump(app: AppContext) -> None:
    """Print the whole graph."""
    app.emit(QueryService(app.workspace).read_graph())
