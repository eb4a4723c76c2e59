"""Abstract instances returned to federation callers."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Instance(BaseModel):
    """Base class for abstract instances.

    Instances are immutable and compared by value.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class Classification(Instance):
    name: str
    properties: dict[str, Any] = Field(default_factory=dict)


class EntityProxy(Instance):
    """Reference to an entity: its identity and unique properties only."""

    guid: str
    type_name: str
    metadata_collection_id: str
    qualified_name: str | None = None


class EntityDetail(Instance):
    guid: str
    type_name: str
    metadata_collection_id: str
    properties: dict[str, Any] = Field(default_factory=dict)
    classifications: tuple[Classification, ...] = ()
    created_on: datetime | None = None
    created_by: str | None = None
    modified_on: datetime | None = None
    modified_by: str | None = None

    @property
    def qualified_name(self) -> str | None:
        value = self.properties.get("qualifiedName")
        return value if isinstance(value, str) else None

    def classification(self, name: str) -> Classification | None:
        for classification in self.classifications:
            if classification.name == name:
                return classification
        return None

    def to_proxy(self) -> EntityProxy:
        return EntityProxy(
            guid=self.guid,
            type_name=self.type_name,
            metadata_collection_id=self.metadata_collection_id,
            qualified_name=self.qualified_name,
        )


class Relationship(Instance):
    """A typed link between two entities, ``end_one`` first."""

    guid: str
    type_name: str
    metadata_collection_id: str
    end_one: EntityProxy
    end_two: EntityProxy
    properties: dict[str, Any] = Field(default_factory=dict)

    def other_end(self, guid: str) -> EntityProxy | None:
        if self.end_one.guid == guid:
            return self.end_two
        if self.end_two.guid == guid:
            return self.end_one
        return None


class InstanceGraph(Instance):
    """Entities and relationships around a starting entity."""

    entities: tuple[EntityDetail, ...] = ()
    relationships: tuple[Relationship, ...] = ()
