"""Tests for the GraphIndex relation joins."""

from __future__ import annotations

from pmgraph.domain.models import Entity, KnowledgeGraph, Relation
from pmgraph.infrastructure.graph.engine import GraphIndex


def _index() -> GraphIndex:
    return GraphIndex(
        KnowledgeGraph(
            entities=[
                Entity(name="P1", entity_type="project"),
                Entity(name="T1", entity_type="task"),
                Entity(name="T2", entity_type="task"),
                Entity(name="M1", entity_type="milestone"),
                Entity(name="alice", entity_type="teamMember"),
                Entity(name="status:completed", entity_type="status"),
            ],
            relations=[
                Relation(from_="T1", to="P1", relation_type="part_of"),
                Relation(from_="T2", to="P1", relation_type="part_of"),
                Relation(from_="M1", to="P1", relation_type="part_of"),
                Relation(from_="T2", to="T1", relation_type="depends_on"),
                Relation(from_="alice", to="P1", relation_type="manages"),
                Relation(from_="alice", to="P1", relation_type="contributes_to"),
                Relation(from_="T1", to="status:completed", relation_type="has_status"),
                Relation(from_="T1", to="ghost", relation_type="related_to"),
            ],
        )
    )


class TestGraphIndex:
    def test_graph_built_lazily(self) -> None:
        index = _index()
        assert index._graph is None
        assert index.graph.number_of_nodes() >= 6
        assert index._graph is not None

    def test_entity_type_filter(self) -> None:
        index = _index()
        assert index.entity("T1") is not None
        assert index.entity("T1", "task") is not None
        assert index.entity("T1", "project") is None
        assert index.entity("nope") is None

    def test_entities_of_type(self) -> None:
        assert [e.name for e in _index().entities_of_type("task")] == ["T1", "T2"]

    def test_members_of(self) -> None:
        assert [e.name for e in _index().members_of("P1", "task")] == ["T1", "T2"]

    def test_sources_dedupe_across_relation_types(self) -> None:
        found = _index().sources("P1", {"manages", "contributes_to"}, "teamMember")
        assert [e.name for e in found] == ["alice"]

    def test_targets(self) -> None:
        assert [e.name for e in _index().targets("T2", "depends_on")] == ["T1"]

    def test_dangling_endpoint_skipped(self) -> None:
        assert _index().targets("T1", "related_to") == []

    def test_unknown_node(self) -> None:
        index = _index()
        assert index.sources("zzz", "part_of") == []
        assert index.targets("zzz", "part_of") == []
        assert index.attribute("zzz", "has_status") is None

    def test_has_edge(self) -> None:
        index = _index()
        assert index.has_edge("T2", "T1", "depends_on")
        assert not index.has_edge("T1", "T2", "depends_on")

    def test_attribute(self) -> None:
        index = _index()
        assert index.attribute("T1", "has_status") == "completed"
        assert index.attribute("T2", "has_status") is None
