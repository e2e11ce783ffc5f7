"""GraphIndex — lazy-built NetworkX view over one loaded snapshot.

Built per operation from the snapshot it wraps, no cross-call cache.
Analytics use it for relation joins (who is ``part_of`` what, who is
``assigned_to`` whom) and for the status/priority attribute lookup,
instead of scanning the relation list for each question.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import TYPE_CHECKING

import networkx as nx

from pmgraph.domain.types import RelationType, value_segment

if TYPE_CHECKING:
    from pmgraph.domain.models import Entity, KnowledgeGraph

# Multi-edges keyed by relation type: (from, to, type) is unique.
type _Graph = nx.MultiDiGraph


class GraphIndex:
    """Read-only relation index over a :class:`KnowledgeGraph` snapshot."""

    def __init__(self, snapshot: KnowledgeGraph) -> None:
        self._snapshot = snapshot
        self._entities: dict[str, Entity] = {e.name: e for e in snapshot.entities}
        self._graph: _Graph | None = None

    @property
    def snapshot(self) -> KnowledgeGraph:
        return self._snapshot

    @property
    def graph(self) -> _Graph:
        """Return the graph, building it from the snapshot on first access."""
        if self._graph is None:
            self._graph = self._build()
        return self._graph

    def _build(self) -> _Graph:
        """Entities first (so isolated nodes exist), then relations as keyed edges."""
        g: _Graph = nx.MultiDiGraph()
        for entity in self._snapshot.entities:
            g.add_node(entity.name, entity_type=entity.entity_type)
        for rel in self._snapshot.relations:
            g.add_edge(rel.from_, rel.to, key=rel.relation_type)
        return g

    # ------------------------------------------------------------------
    # Entity lookup
    # ------------------------------------------------------------------

    def entity(self, name: str, entity_type: str | None = None) -> Entity | None:
        """Entity called *name*, optionally required to be of *entity_type*."""
        entity = self._entities.get(name)
        if entity is None:
            return None
        if entity_type is not None and entity.entity_type != entity_type:
            return None
        return entity

    def entities_of_type(self, entity_type: str) -> list[Entity]:
        return [e for e in self._snapshot.entities if e.entity_type == entity_type]

    # ------------------------------------------------------------------
    # Relation joins
    # ------------------------------------------------------------------

    def sources(
        self,
        target: str,
        relation_types: str | Collection[str],
        entity_type: str | None = None,
    ) -> list[Entity]:
        """Entities with a *relation_types* edge pointing at *target*.

        Each entity appears once, in first-edge order.
        """
        if target not in self.graph:
            return []
        wanted = {relation_types} if isinstance(relation_types, str) else set(relation_types)
        found: list[Entity] = []
        seen: set[str] = set()
        for source, _, rel_type in self.graph.in_edges(target, keys=True):
            if rel_type not in wanted or source in seen:
                continue
            entity = self.entity(source, entity_type)
            if entity is not None:
                seen.add(source)
                found.append(entity)
        return found

    def targets(
        self,
        source: str,
        relation_types: str | Collection[str],
        entity_type: str | None = None,
    ) -> list[Entity]:
        """Entities that *source* points at through *relation_types* edges."""
        if source not in self.graph:
            return []
        wanted = {relation_types} if isinstance(relation_types, str) else set(relation_types)
        found: list[Entity] = []
        seen: set[str] = set()
        for _, target, rel_type in self.graph.out_edges(source, keys=True):
            if rel_type not in wanted or target in seen:
                continue
            entity = self.entity(target, entity_type)
            if entity is not None:
                seen.add(target)
                found.append(entity)
        return found

    def has_edge(self, source: str, target: str, relation_type: str) -> bool:
        return self.graph.has_edge(source, target, key=relation_type)

    def members_of(self, project: str, entity_type: str) -> list[Entity]:
        """Entities of *entity_type* that are ``part_of`` *project*."""
        return self.sources(project, RelationType.PART_OF, entity_type)

    # ------------------------------------------------------------------
    # Attributes as relations
    # ------------------------------------------------------------------

    def attribute(self, name: str, relation_type: str) -> str | None:
        """Value segment of the ``has_status``/``has_priority`` target, or None."""
        if name not in self.graph:
            return None
        for _, target, rel_type in self.graph.out_edges(name, keys=True):
            if rel_type == relation_type:
                return value_segment(target)
        return None
