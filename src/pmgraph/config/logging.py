"""Log routing for pmgraph.

pmgraph modules log through ``logging.getLogger(__name__)``. One stderr
handler renders those records with structlog, as console lines or as
JSON objects (``--log-json``), so stdout only ever carries results.

Each service call runs inside :func:`operation_context`, which binds the
operation name into structlog's context variables. Every record emitted
during the call, including store and workspace records, carries it as
``op``. Values passed through ``extra=`` become keys of their own.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

PACKAGE_LOGGER = "pmgraph"


def _pre_chain() -> list[structlog.types.Processor]:
    """Processors every record passes through before rendering."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.ExtraAdder(),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Install the stderr handler and set the ``pmgraph`` level.

    Safe to call repeatedly: the root handler list is replaced, not
    appended to.

    Args:
        verbose: DEBUG for ``pmgraph.*`` loggers; WARNING otherwise.
        log_json: One JSON object per line instead of console lines.
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.WARNING)
    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)


@contextmanager
def operation_context(op: str, **values: Any) -> Iterator[None]:
    """Tag every log record inside the block with ``op`` (and *values*).

    Nested blocks shadow the outer binding; the outer values come back
    on exit.
    """
    with structlog.contextvars.bound_contextvars(op=op, **values):
        yield
