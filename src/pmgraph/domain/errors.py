"""Graph error kinds.

Every error is a synchronous validation failure. Services catch
:class:`GraphError` and surface ``code``/``message``/``detail`` in a
failed ``ServiceResult``; nothing is retried.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


class GraphError(Exception):
    """Base class for graph validation failures."""

    code = "GRAPH_ERROR"

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class DuplicateNameError(GraphError):
    code = "DUPLICATE_NAME"

    def __init__(self, name: str) -> None:
        super().__init__(f"Entity with name '{name}' already exists", name=name)


class UnknownEntityError(GraphError):
    code = "UNKNOWN_ENTITY"

    def __init__(self, name: str) -> None:
        super().__init__(f"Entity '{name}' not found", name=name)


class InvalidTypeError(GraphError):
    code = "INVALID_TYPE"

    def __init__(self, entity_type: str, valid: Iterable[str]) -> None:
        valid_values = sorted(valid)
        super().__init__(
            f"Invalid entity type: {entity_type}. Valid types are: {', '.join(valid_values)}",
            entity_type=entity_type,
            valid_values=valid_values,
        )


class InvalidRelationTypeError(GraphError):
    code = "INVALID_RELATION_TYPE"

    def __init__(self, relation_type: str, valid: Iterable[str]) -> None:
        valid_values = sorted(valid)
        super().__init__(
            f"Invalid relation type: {relation_type}. "
            f"Valid types are: {', '.join(valid_values)}",
            relation_type=relation_type,
            valid_values=valid_values,
        )


class DuplicateRelationError(GraphError):
    code = "DUPLICATE_RELATION"

    def __init__(self, source: str, target: str, relation_type: str) -> None:
        super().__init__(
            f"Relation from '{source}' to '{target}' with type '{relation_type}' already exists",
            source=source,
            target=target,
            relation_type=relation_type,
        )


class InvalidValueError(GraphError):
    code = "INVALID_VALUE"

    def __init__(self, kind: str, value: str, valid: Iterable[str]) -> None:
        valid_values = sorted(valid)
        super().__init__(
            f"Invalid {kind} value: {value}. Valid values are: {', '.join(valid_values)}",
            kind=kind,
            value=value,
            valid_values=valid_values,
        )


class NotFoundError(GraphError):
    code = "NOT_FOUND"

    def __init__(self, label: str, name: str, **detail: Any) -> None:
        super().__init__(f"{label} '{name}' not found", name=name, **detail)
