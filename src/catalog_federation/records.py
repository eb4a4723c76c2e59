"""Minimal backend object model exchanged with the catalog transport."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

ID_PROPERTY = "_id"
TYPE_PROPERTY = "_type"
NAME_PROPERTY = "name"
CREATED_PROPERTY = "created_on"
MODIFIED_PROPERTY = "modified_on"


class Reference(BaseModel):
    """A pointer to another backend object, as embedded in a record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    type: str = Field(alias="_type")
    name: str | None = Field(default=None, alias="_name")


class Record(Reference):
    """
    A backend object as returned by search or fetch-by-id.

    Reference-valued properties hold a :class:`Reference`, a dict in the
    backend's ``{"_id", "_type", "_name"}`` form, or a list of either.
    ``context`` is the record's containment ancestry, root first.
    """

    properties: dict[str, Any] = Field(default_factory=dict)
    context: tuple[Reference, ...] = Field(default=(), alias="_context")
    created_on: datetime | None = None
    created_by: str | None = None
    modified_on: datetime | None = None
    modified_by: str | None = None

    @property
    def ref(self) -> Reference:
        return Reference(id=self.id, type=self.type, name=self.name)

    def value(self, prop: str) -> Any:
        """Value of a top-level property, including the system properties."""
        if prop == ID_PROPERTY:
            return self.id
        if prop == TYPE_PROPERTY:
            return self.type
        if prop == CREATED_PROPERTY:
            return self.created_on
        if prop == MODIFIED_PROPERTY:
            return self.modified_on
        if prop == NAME_PROPERTY:
            return self.properties.get(NAME_PROPERTY, self.name)
        return self.properties.get(prop)

    def references(self, prop: str) -> list[Reference]:
        """Values of a reference-valued property, always as a list."""
        return as_references(self.properties.get(prop))

    @property
    def context_names(self) -> list[str]:
        return [ref.name or "" for ref in self.context]


def as_references(raw: Any) -> list[Reference]:
    if raw is None:
        return []
    items = raw if isinstance(raw, (list, tuple)) else [raw]
    refs: list[Reference] = []
    for item in items:
        if isinstance(item, Reference):
            refs.append(Reference(id=item.id, type=item.type, name=item.name))
        elif isinstance(item, dict) and ID_PROPERTY in item and TYPE_PROPERTY in item:
            refs.append(Reference.model_validate(item))
    return refs
