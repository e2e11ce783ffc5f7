"""Entity, Relation, and KnowledgeGraph models.

Field names are snake_case in Python and camelCase on the wire
(``entityType``, ``relationType``, ``from``) so persisted graphs keep
the established ``memory.json`` layout.

Type fields are plain strings: a stored graph always loads, and the
closed-set checks happen in the graph service where they can raise the
proper error kind. Keys an entity or relation carries beyond its known
fields are kept and written back unchanged on save.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

type RelationKey = tuple[str, str, str]


class Entity(BaseModel):
    """Uniquely named, typed node carrying free-text observations."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    entity_type: str = Field(alias="entityType")
    observations: list[str] = Field(default_factory=list)
    embedding: list[float] | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Relation(BaseModel):
    """Typed directed edge between two entities."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    from_: str = Field(alias="from")
    to: str
    relation_type: str = Field(alias="relationType")
    observations: list[str] | None = None

    @property
    def key(self) -> RelationKey:
        """The ``(from, to, relationType)`` identity triple."""
        return (self.from_, self.to, self.relation_type)

    def touches(self, names: set[str] | frozenset[str]) -> bool:
        """True if either endpoint is in *names*."""
        return self.from_ in names or self.to in names

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ObservationDeletion(BaseModel):
    """One ``{entityName, observations}`` entry for observation removal."""

    model_config = ConfigDict(populate_by_name=True)

    entity_name: str = Field(alias="entityName")
    observations: list[str] = Field(default_factory=list)


class ObservationAddition(BaseModel):
    """One ``{entityName, contents}`` entry for batch observation appends."""

    model_config = ConfigDict(populate_by_name=True)

    entity_name: str = Field(alias="entityName")
    contents: list[str] = Field(default_factory=list)


class KnowledgeGraph(BaseModel):
    """The whole graph: the unit of persistence.

    Built fresh on every load and discarded after save; nothing holds a
    long-lived instance between operations.
    """

    entities: list[Entity] = Field(default_factory=list)
    relations: list[Relation] = Field(default_factory=list)

    def entity(self, name: str) -> Entity | None:
        """Return the entity called *name*, or None."""
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None

    def entity_names(self) -> set[str]:
        return {e.name for e in self.entities}

    def relation_keys(self) -> set[RelationKey]:
        return {r.key for r in self.relations}

    def induced_relations(self, names: set[str]) -> list[Relation]:
        """Relations whose endpoints are both in *names*."""
        return [r for r in self.relations if r.from_ in names and r.to in names]

    def to_dict(self) -> dict[str, Any]:
        return {
            "entities": [e.to_dict() for e in self.entities],
            "relations": [r.to_dict() for r in self.relations],
        }
