"""GraphService — entity/relation CRUD and attributes-as-relations.

Pipeline for every write: LOAD → VALIDATE (whole batch) → APPLY → SAVE.
A validation failure raises before anything is applied, so the
transaction exits without saving and the stored graph is untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import TypeAdapter, ValidationError

from pmgraph.domain.errors import (
    DuplicateNameError,
    DuplicateRelationError,
    GraphError,
    InvalidRelationTypeError,
    InvalidTypeError,
    InvalidValueError,
    UnknownEntityError,
)
from pmgraph.domain.models import (
    Entity,
    KnowledgeGraph,
    ObservationAddition,
    ObservationDeletion,
    Relation,
)
from pmgraph.domain.types import (
    VALID_ENTITY_TYPES,
    VALID_PRIORITY_VALUES,
    VALID_RELATION_TYPES,
    VALID_STATUS_VALUES,
    EntityType,
    RelationType,
    priority_entity_name,
    status_entity_name,
    value_segment,
)
from pmgraph.infrastructure.store import StoreError
from pmgraph.services.base import BaseService
from pmgraph.services.result import ServiceResult
from pmgraph.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)

_ENTITIES = TypeAdapter(list[Entity])
_RELATIONS = TypeAdapter(list[Relation])
_DELETIONS = TypeAdapter(list[ObservationDeletion])
_ADDITIONS = TypeAdapter(list[ObservationAddition])

type EntityInput = Entity | dict[str, Any]
type RelationInput = Relation | dict[str, Any]

# Attribute kind -> (relation type, legal values, synthetic entity type, namer)
_ATTRIBUTES = {
    "status": (
        RelationType.HAS_STATUS,
        VALID_STATUS_VALUES,
        EntityType.STATUS,
        status_entity_name,
    ),
    "priority": (
        RelationType.HAS_PRIORITY,
        VALID_PRIORITY_VALUES,
        EntityType.PRIORITY,
        priority_entity_name,
    ),
}


def _synthetic_entity(kind: str, value: str) -> Entity:
    _, _, entity_type, namer = _ATTRIBUTES[kind]
    return Entity(
        name=namer(value),
        entity_type=entity_type,
        observations=[f"A {value} {kind} value"],
    )


class GraphService(BaseService):
    """Validated mutations of the stored graph."""

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------

    @traced
    def create_entities(self, entities: Iterable[EntityInput]) -> ServiceResult:
        """Add new entities; the whole batch is rejected on any invalid item.

        Fails with ``DUPLICATE_NAME`` if a name exists in the graph or
        repeats within the batch, and ``INVALID_TYPE`` for an entity type
        outside the closed set.
        """
        op = "create_entities"
        try:
            batch = _ENTITIES.validate_python(list(entities))
            with self._workspace.transaction() as graph:
                with trace_span("validate"):
                    existing = graph.entity_names()
                    for entity in batch:
                        if entity.name in existing:
                            raise DuplicateNameError(entity.name)
                        if entity.entity_type not in VALID_ENTITY_TYPES:
                            raise InvalidTypeError(entity.entity_type, VALID_ENTITY_TYPES)
                        existing.add(entity.name)
                graph.entities.extend(batch)
        except (GraphError, ValidationError, StoreError) as exc:
            return self._failure(op, exc)

        logger.debug("Created %d entities", len(batch))
        return ServiceResult(
            ok=True,
            op=op,
            data={"count": len(batch), "entities": [e.to_dict() for e in batch]},
        )

    @traced
    def delete_entities(self, names: Iterable[str]) -> ServiceResult:
        """Remove entities and every relation touching them.

        Unknown names are ignored, so repeating a delete is a no-op.
        """
        op = "delete_entities"
        doomed = set(names)
        try:
            with self._workspace.transaction() as graph:
                before_entities = len(graph.entities)
                before_relations = len(graph.relations)
                graph.entities = [e for e in graph.entities if e.name not in doomed]
                graph.relations = [r for r in graph.relations if not r.touches(doomed)]
                removed_entities = before_entities - len(graph.entities)
                removed_relations = before_relations - len(graph.relations)
        except StoreError as exc:
            return self._failure(op, exc)

        logger.debug("Deleted %d entities, %d relations", removed_entities, removed_relations)
        return ServiceResult(
            ok=True,
            op=op,
            data={"deletedEntities": removed_entities, "deletedRelations": removed_relations},
        )

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    @traced
    def create_relations(self, relations: Iterable[RelationInput]) -> ServiceResult:
        """Add new relations; the whole batch is rejected on any invalid item.

        Fails with ``UNKNOWN_ENTITY`` for a missing endpoint,
        ``INVALID_RELATION_TYPE`` for a type outside the closed set, and
        ``DUPLICATE_RELATION`` for a triple that already exists or
        repeats within the batch.
        """
        op = "create_relations"
        try:
            batch = _RELATIONS.validate_python(list(relations))
            with self._workspace.transaction() as graph:
                with trace_span("validate"):
                    names = graph.entity_names()
                    keys = graph.relation_keys()
                    for rel in batch:
                        for endpoint in (rel.from_, rel.to):
                            if endpoint not in names:
                                raise UnknownEntityError(endpoint)
                        if rel.relation_type not in VALID_RELATION_TYPES:
                            raise InvalidRelationTypeError(rel.relation_type, VALID_RELATION_TYPES)
                        if rel.key in keys:
                            raise DuplicateRelationError(*rel.key)
                        keys.add(rel.key)
                graph.relations.extend(batch)
        except (GraphError, ValidationError, StoreError) as exc:
            return self._failure(op, exc)

        logger.debug("Created %d relations", len(batch))
        return ServiceResult(
            ok=True,
            op=op,
            data={"count": len(batch), "relations": [r.to_dict() for r in batch]},
        )

    @traced
    def delete_relations(self, relations: Iterable[RelationInput]) -> ServiceResult:
        """Remove relations matching the full ``(from, to, relationType)`` triple."""
        op = "delete_relations"
        try:
            doomed = {r.key for r in _RELATIONS.validate_python(list(relations))}
            with self._workspace.transaction() as graph:
                before = len(graph.relations)
                graph.relations = [r for r in graph.relations if r.key not in doomed]
                removed = before - len(graph.relations)
        except (ValidationError, StoreError) as exc:
            return self._failure(op, exc)

        logger.debug("Deleted %d relations", removed)
        return ServiceResult(ok=True, op=op, data={"deleted": removed})

    # ------------------------------------------------------------------
    # Observations
    # ------------------------------------------------------------------

    @traced
    def add_observations(self, entity_name: str, observations: Iterable[str]) -> ServiceResult:
        """Append observations to one entity, keeping duplicates."""
        return self.add_observations_batch(
            [{"entityName": entity_name, "contents": list(observations)}],
            op="add_observations",
        )

    @traced
    def add_observations_batch(
        self,
        additions: Iterable[ObservationAddition | dict[str, Any]],
        *,
        op: str = "add_observations_batch",
    ) -> ServiceResult:
        """Append observations to several entities.

        Every entity name is checked before anything is appended; one
        unknown name fails the whole batch with ``UNKNOWN_ENTITY``.
        """
        try:
            batch = _ADDITIONS.validate_python(list(additions))
            with self._workspace.transaction() as graph:
                targets: list[tuple[Entity, list[str]]] = []
                for item in batch:
                    entity = graph.entity(item.entity_name)
                    if entity is None:
                        raise UnknownEntityError(item.entity_name)
                    targets.append((entity, item.contents))
                for entity, contents in targets:
                    entity.observations.extend(contents)
        except (GraphError, ValidationError, StoreError) as exc:
            return self._failure(op, exc)

        added = [
            {"entityName": entity.name, "addedObservations": contents}
            for entity, contents in targets
        ]
        logger.debug("Added observations to %d entities", len(added))
        return ServiceResult(ok=True, op=op, data={"count": len(added), "results": added})

    @traced
    def delete_observations(
        self, deletions: Iterable[ObservationDeletion | dict[str, Any]]
    ) -> ServiceResult:
        """Remove exact-match observations; unknown entity names are skipped."""
        op = "delete_observations"
        removed = 0
        try:
            batch = _DELETIONS.validate_python(list(deletions))
            with self._workspace.transaction() as graph:
                for item in batch:
                    entity = graph.entity(item.entity_name)
                    if entity is None:
                        continue
                    drop = set(item.observations)
                    kept = [o for o in entity.observations if o not in drop]
                    removed += len(entity.observations) - len(kept)
                    entity.observations = kept
        except (ValidationError, StoreError) as exc:
            return self._failure(op, exc)

        logger.debug("Deleted %d observations", removed)
        return ServiceResult(ok=True, op=op, data={"deleted": removed})

    # ------------------------------------------------------------------
    # Status and priority (attributes as relations)
    # ------------------------------------------------------------------

    @traced
    def set_entity_status(self, name: str, value: str) -> ServiceResult:
        """Point *name* at ``status:<value>``, replacing any previous status."""
        return self._set_attribute("status", name, value)

    @traced
    def set_entity_priority(self, name: str, value: str) -> ServiceResult:
        """Point *name* at ``priority:<value>``, replacing any previous priority."""
        return self._set_attribute("priority", name, value)

    @traced
    def get_entity_status(self, name: str) -> ServiceResult:
        return self._get_attribute("status", name)

    @traced
    def get_entity_priority(self, name: str) -> ServiceResult:
        return self._get_attribute("priority", name)

    @traced
    def initialize_status_and_priority(self) -> ServiceResult:
        """Create any missing ``status:*`` / ``priority:*`` entities.

        Idempotent: existing names are left alone, whatever their type.
        """
        op = "initialize_status_and_priority"
        try:
            with self._workspace.transaction() as graph:
                existing = graph.entity_names()
                created: list[str] = []
                for kind, (_, values, _, _) in _ATTRIBUTES.items():
                    for value in sorted(values):
                        entity = _synthetic_entity(kind, value)
                        if entity.name not in existing:
                            graph.entities.append(entity)
                            existing.add(entity.name)
                            created.append(entity.name)
        except StoreError as exc:
            return self._failure(op, exc)

        logger.debug("Initialized %d synthetic value entities", len(created))
        return ServiceResult(ok=True, op=op, data={"count": len(created), "created": created})

    def _set_attribute(self, kind: str, name: str, value: str) -> ServiceResult:
        op = f"set_entity_{kind}"
        relation_type, legal, _, namer = _ATTRIBUTES[kind]
        try:
            if value not in legal:
                raise InvalidValueError(kind, value, legal)
            with self._workspace.transaction() as graph:
                if graph.entity(name) is None:
                    raise UnknownEntityError(name)
                target = namer(value)
                if graph.entity(target) is None:
                    graph.entities.append(_synthetic_entity(kind, value))
                graph.relations = [
                    r
                    for r in graph.relations
                    if not (r.from_ == name and r.relation_type == relation_type)
                ]
                graph.relations.append(Relation(from_=name, to=target, relation_type=relation_type))
        except (GraphError, StoreError) as exc:
            return self._failure(op, exc)

        logger.debug("Set %s of %s to %s", kind, name, value)
        return ServiceResult(ok=True, op=op, data={"name": name, kind: value})

    def _get_attribute(self, kind: str, name: str) -> ServiceResult:
        op = f"get_entity_{kind}"
        relation_type = _ATTRIBUTES[kind][0]
        try:
            graph = self._workspace.load()
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"name": name, kind: _attribute_value(graph, name, relation_type)},
        )


def _attribute_value(graph: KnowledgeGraph, name: str, relation_type: str) -> str | None:
    for rel in graph.relations:
        if rel.from_ == name and rel.relation_type == relation_type:
            return value_segment(rel.to)
    return None
