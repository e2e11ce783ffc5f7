"""BaseService — shared foundation for all pmgraph services.

Every service receives a :class:`Workspace` at construction time.
Write operations own their boundary via ``self._workspace.transaction()``;
read operations take one snapshot via :meth:`BaseService._index`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pmgraph.domain.errors import NotFoundError
from pmgraph.infrastructure.graph.engine import GraphIndex
from pmgraph.services.result import Failure, ServiceError, ServiceResult

if TYPE_CHECKING:
    from pmgraph.domain.models import Entity
    from pmgraph.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class GraphService(BaseService):
            def create_entities(self, entities) -> ServiceResult:
                try:
                    with self._workspace.transaction() as graph:
                        ...
                except GraphError as exc:
                    return self._failure("create_entities", exc)
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    def _index(self) -> GraphIndex:
        """Load a fresh snapshot and wrap it for relation joins."""
        return GraphIndex(self._workspace.load())

    @staticmethod
    def _require(index: GraphIndex, name: str, entity_type: str, label: str) -> Entity:
        """Return the root entity of an analytic, or raise NotFoundError."""
        entity = index.entity(name, entity_type)
        if entity is None:
            raise NotFoundError(label, name, entity_type=entity_type)
        return entity

    @staticmethod
    def _failure(op: str, exc: Failure) -> ServiceResult:
        """Convert a raised error into a failed ServiceResult."""
        error = ServiceError.from_exception(exc)
        logger.debug("%s failed: %s", op, error.message, extra={"code": error.code})
        return ServiceResult(ok=False, op=op, error=error)
