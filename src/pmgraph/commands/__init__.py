"""Subcommand modules for pmgraph.

Provides register_commands() which uses deferred imports to keep
``pmgraph --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the command groups on the root CLI group."""
    from pmgraph.commands.analyze import analyze
    from pmgraph.commands.graph import graph
    from pmgraph.commands.query import query

    cli.add_command(graph)
    cli.add_command(query)
    cli.add_command(analyze)
