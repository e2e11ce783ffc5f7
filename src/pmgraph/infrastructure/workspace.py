"""Workspace — the single dependency injected into every service.

Owns the settings and the graph store. Reads go straight to
:meth:`Workspace.load`; writes go through :meth:`Workspace.transaction`,
which serializes writers on the same graph file within the process:

- load the whole graph,
- hand the in-memory snapshot to the caller,
- save it back only if the caller's block finished without raising.

Separate processes writing the same file still race (last write wins).
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING

from pmgraph.infrastructure.store import JsonGraphStore

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from pmgraph.config.settings import PmSettings
    from pmgraph.domain.models import KnowledgeGraph

logger = logging.getLogger(__name__)

# One writer lock per resolved graph path, shared by every Workspace.
_write_locks: dict[Path, threading.Lock] = {}
_write_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = path.resolve()
    with _write_locks_guard:
        lock = _write_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _write_locks[key] = lock
        return lock


class Workspace:
    """Settings plus the persisted graph they point at."""

    def __init__(self, settings: PmSettings) -> None:
        self._settings = settings
        self._store = JsonGraphStore(settings.graph_path, indent=settings.storage.indent)

    @property
    def root(self) -> Path:
        return self._settings.workspace_root

    @property
    def settings(self) -> PmSettings:
        return self._settings

    @property
    def store(self) -> JsonGraphStore:
        return self._store

    def load(self) -> KnowledgeGraph:
        """Fresh snapshot of the whole graph (read-only use)."""
        return self._store.load()

    @contextmanager
    def transaction(self) -> Iterator[KnowledgeGraph]:
        """Load, yield for mutation, then save — under the writer lock.

        Usage::

            with workspace.transaction() as graph:
                graph.entities.append(entity)
                # saved on exit; nothing saved if the block raises
        """
        with _lock_for(self._store.path):
            graph = self._store.load()
            yield graph
            self._store.save(graph)
