"""ServiceResult and ServiceError: what every service method returns.

Services never raise to their callers. Domain errors, rejected input
payloads and storage failures all come back as ``ok=False`` results whose
``error.code`` names the failure kind:

* a :class:`GraphError` subclass code (``DUPLICATE_NAME``, ``NOT_FOUND``, ...),
* ``INVALID_INPUT`` for payloads pydantic rejects,
* ``STORE_ERROR`` when the graph file cannot be read or written.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError

from pmgraph.domain.errors import GraphError
from pmgraph.infrastructure.store import StoreError

INVALID_INPUT = "INVALID_INPUT"
STORE_ERROR = "STORE_ERROR"

type Failure = GraphError | StoreError | ValidationError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: Failure) -> ServiceError:
        """Map a raised failure onto its error code, message and detail."""
        if isinstance(exc, GraphError):
            return cls(code=exc.code, message=exc.message, detail=exc.detail)
        if isinstance(exc, ValidationError):
            return cls(
                code=INVALID_INPUT,
                message=f"Invalid input: {exc.error_count()} validation error(s)",
                detail={"errors": exc.errors(include_url=False, include_context=False)},
            )
        return cls(code=STORE_ERROR, message=str(exc))


class ServiceResult(BaseModel):
    """Outcome of one service operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Operation name, e.g. ``"create_entities"`` or ``"overview"``.
        data: camelCase payload on success.
        warnings: Non-fatal notes (printed to stderr in text mode).
        error: Set when ``ok`` is False.
        meta: Telemetry span tree under ``"telemetry"`` when verbose.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None
