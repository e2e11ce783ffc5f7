"""Click base classes shared by every pmgraph command.

``PmGroup`` and ``PmCommand`` take an ``examples`` keyword: the text an
eager ``--examples`` flag prints before exiting, so ``--help`` stays short.

``PmCommand`` also takes ``payload``, the wrapper key of a JSON batch
(``"entities"``, ``"relations"``, ...). The command then grows a
``--file/-f`` option (stdin unless ``payload_required=False``) and its
callback receives the parsed list as ``payload``. A payload is either a
bare JSON list or an object holding the list under that key.
"""

from __future__ import annotations

import json
from typing import IO, Any

import click


def read_payload(stream: IO[str], key: str) -> list[Any]:
    """Parse a JSON list, optionally wrapped as ``{key: [...]}``."""
    try:
        raw = json.load(stream)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"Invalid JSON payload: {exc}") from exc
    if isinstance(raw, dict) and key in raw:
        raw = raw[key]
    if not isinstance(raw, list):
        raise click.ClickException(f"Expected a JSON list (or an object with '{key}')")
    return raw


def _show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"Examples for '{ctx.command_path}':\n")
    click.echo(getattr(ctx.command, "examples", None) or "")
    ctx.exit(0)


def _payload_option(key: str, *, required: bool) -> click.Option:
    def parse(ctx: click.Context, _param: click.Parameter, value: IO[str] | None) -> Any:
        if value is None or ctx.resilient_parsing:
            return None
        return read_payload(value, key)

    source = "file, default stdin" if required else "file"
    return click.Option(
        ["--file", "-f", "payload"],
        type=click.File("r"),
        default="-" if required else None,
        callback=parse,
        help=f'JSON list (or {{"{key}": [...]}}) {source}.',
    )


class _ExamplesMixin:
    examples: str | None

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(  # type: ignore[attr-defined]
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=_show_examples,
                    help="Show usage examples.",
                )
            )


class PmCommand(_ExamplesMixin, click.Command):
    """Command with ``--examples`` and an optional JSON batch payload."""

    def __init__(
        self,
        *args: Any,
        payload: str | None = None,
        payload_required: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        if payload is not None:
            self.params.append(_payload_option(payload, required=payload_required))


class PmGroup(_ExamplesMixin, click.Group):
    """Group with ``--examples``; its subcommands are PmCommands."""

    command_class = PmCommand
