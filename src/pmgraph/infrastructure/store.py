"""JsonGraphStore — whole-graph load/save against a single JSON file.

INVARIANT: The file is the graph. Every operation loads it in full and
every write replaces it in full; there are no partial writes and no
secondary index on disk.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from pmgraph.domain.models import KnowledgeGraph

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """The persisted graph could not be read or written."""


class JsonGraphStore:
    """File-backed persistence gateway exposing ``load()`` and ``save()``."""

    def __init__(self, path: Path, *, indent: int = 2) -> None:
        self._path = path
        self._indent = indent

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> KnowledgeGraph:
        """Read the whole graph.

        A missing or empty file is an empty graph. A file that exists but
        does not parse raises :class:`StoreError` rather than being
        treated as empty, so a later save can never clobber it.
        """
        if not self._path.exists():
            logger.debug("Graph file %s missing, starting empty", self._path)
            return KnowledgeGraph()

        raw = self._path.read_text(encoding="utf-8")
        if not raw.strip():
            return KnowledgeGraph()

        try:
            graph = KnowledgeGraph.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            msg = f"Cannot read graph file {self._path}: {exc}"
            raise StoreError(msg) from exc

        logger.debug(
            "Loaded graph from %s",
            self._path,
            extra={"entities": len(graph.entities), "relations": len(graph.relations)},
        )
        return graph

    def save(self, graph: KnowledgeGraph) -> None:
        """Replace the file with *graph* atomically.

        Writes to a sibling temp file and renames it over the target, so
        readers see either the old graph or the new one.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(graph.to_dict(), indent=self._indent, ensure_ascii=False)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug(
            "Saved graph to %s",
            self._path,
            extra={"entities": len(graph.entities), "relations": len(graph.relations)},
        )
