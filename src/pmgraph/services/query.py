"""QueryService — read-only lookups over one loaded snapshot.

Three operations:
- search_nodes: case-insensitive substring match
- open_nodes: exact-name lookup
- read_graph: the whole graph
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pmgraph.domain.models import Entity, KnowledgeGraph, Relation, RelationKey
from pmgraph.infrastructure.store import StoreError
from pmgraph.services.base import BaseService
from pmgraph.services.contracts import GraphPayload, dump_validated
from pmgraph.services.result import ServiceResult
from pmgraph.services.telemetry import trace_span, traced


def _entity_matches(entity: Entity, needle: str) -> bool:
    return (
        needle in entity.name.lower()
        or needle in entity.entity_type.lower()
        or any(needle in o.lower() for o in entity.observations)
    )


def _relation_matches(relation: Relation, needle: str) -> bool:
    return needle in relation.relation_type.lower() or any(
        needle in o.lower() for o in relation.observations or []
    )


class QueryService(BaseService):
    """Search and lookup without mutation."""

    @traced
    def search_nodes(self, query: str) -> ServiceResult:
        """Find entities and relations containing *query* (case-insensitive).

        Entities match on name, type, or any observation. Relations match
        on type or any of their observations; their endpoints are pulled
        into the result even if the entities themselves did not match.
        Result relations are the ones induced by the matched entities
        plus the directly matched ones, without repeats.
        """
        op = "search_nodes"
        try:
            graph = self._workspace.load()
        except StoreError as exc:
            return self._failure(op, exc)

        needle = query.lower()
        with trace_span("match") as span:
            entities = [e for e in graph.entities if _entity_matches(e, needle)]
            names = {e.name for e in entities}
            relations = graph.induced_relations(names)
            seen: set[RelationKey] = {r.key for r in relations}

            for rel in graph.relations:
                if rel.key in seen or not _relation_matches(rel, needle):
                    continue
                seen.add(rel.key)
                relations.append(rel)
                for endpoint in (rel.from_, rel.to):
                    if endpoint in names:
                        continue
                    entity = graph.entity(endpoint)
                    if entity is not None:
                        entities.append(entity)
                        names.add(endpoint)
            if span:
                span.annotate("entities", len(entities))
                span.annotate("relations", len(relations))

        return ServiceResult(
            ok=True,
            op=op,
            data=_payload(KnowledgeGraph(entities=entities, relations=relations), query=query),
        )

    @traced
    def open_nodes(self, names: Iterable[str]) -> ServiceResult:
        """Return the named entities and the relations among them."""
        op = "open_nodes"
        wanted = set(names)
        try:
            graph = self._workspace.load()
        except StoreError as exc:
            return self._failure(op, exc)

        result = KnowledgeGraph(
            entities=[e for e in graph.entities if e.name in wanted],
            relations=graph.induced_relations(wanted),
        )
        return ServiceResult(ok=True, op=op, data=_payload(result))

    @traced
    def read_graph(self) -> ServiceResult:
        """Return the complete stored graph."""
        op = "read_graph"
        try:
            graph = self._workspace.load()
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data=_payload(graph))


def _payload(graph: KnowledgeGraph, **extra: str) -> dict[str, Any]:
    data = {
        **graph.to_dict(),
        "entityCount": len(graph.entities),
        "relationCount": len(graph.relations),
        **extra,
    }
    return dump_validated(GraphPayload, data)
