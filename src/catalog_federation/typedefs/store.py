"""
Abstract type definitions and their single-inheritance hierarchy.

The store is built once at start-up and is read-only thereafter.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum

from ..exceptions import ConfigurationError


class TypeDefCategory(str, Enum):
    ENTITY = "entity"
    RELATIONSHIP = "relationship"
    CLASSIFICATION = "classification"


@dataclass(frozen=True)
class TypeDef:
    """An abstract type. ``attributes`` lists only locally declared names."""

    name: str
    category: TypeDefCategory = TypeDefCategory.ENTITY
    supertype: str | None = None
    attributes: tuple[str, ...] = ()
    description: str = ""
    end_types: tuple[str, str] | None = None
    valid_entity_types: tuple[str, ...] = ()


class TypeDefStore:
    """
    Immutable catalogue of abstract type definitions.

    Usage::

        store = TypeDefStore(default_typedefs())
        store.is_type_of("RelationalColumn", "SchemaAttribute")  # True
    """

    def __init__(self, typedefs: Iterable[TypeDef]) -> None:
        self._typedefs: dict[str, TypeDef] = {}
        for typedef in typedefs:
            if typedef.name in self._typedefs:
                raise ConfigurationError(f"Duplicate type definition '{typedef.name}'")
            self._typedefs[typedef.name] = typedef
        for typedef in self._typedefs.values():
            parent = typedef.supertype
            if parent is not None and parent not in self._typedefs:
                raise ConfigurationError(
                    f"Type '{typedef.name}' extends unknown type '{typedef.supertype}'"
                )
        self._check_acyclic()

    def _check_acyclic(self) -> None:
        for name in self._typedefs:
            seen = {name}
            current = self._typedefs[name].supertype
            while current is not None:
                if current in seen:
                    raise ConfigurationError(f"Type hierarchy cycle through '{name}'")
                seen.add(current)
                current = self._typedefs[current].supertype

    # -- look-up -------------------------------------------------------------

    def get(self, name: str) -> TypeDef | None:
        return self._typedefs.get(name)

    def has(self, name: str) -> bool:
        return name in self._typedefs

    def __contains__(self, name: object) -> bool:
        return name in self._typedefs

    def __iter__(self) -> Iterator[TypeDef]:
        return iter(self._typedefs.values())

    def __len__(self) -> int:
        return len(self._typedefs)

    @property
    def names(self) -> list[str]:
        return list(self._typedefs)

    def of_category(self, category: TypeDefCategory) -> list[TypeDef]:
        return [t for t in self._typedefs.values() if t.category is category]

    # -- hierarchy -----------------------------------------------------------

    def supertypes(self, name: str) -> list[str]:
        """Ancestors of *name*, nearest first."""
        result: list[str] = []
        typedef = self._typedefs.get(name)
        while typedef is not None and typedef.supertype is not None:
            result.append(typedef.supertype)
            typedef = self._typedefs.get(typedef.supertype)
        return result

    def is_type_of(self, name: str, candidate_supertype: str) -> bool:
        """True if *name* is *candidate_supertype* or transitively extends it."""
        if name == candidate_supertype:
            return name in self._typedefs
        return candidate_supertype in self.supertypes(name)

    def subtypes(self, name: str) -> list[str]:
        """Transitive subtypes of *name* in definition order, excluding itself."""
        return [
            t.name
            for t in self._typedefs.values()
            if t.name != name and self.is_type_of(t.name, name)
        ]

    def all_attributes(self, name: str) -> list[str]:
        """Attributes declared by *name* and every supertype, root first."""
        chain = [name, *self.supertypes(name)]
        attributes: list[str] = []
        for type_name in reversed(chain):
            typedef = self._typedefs.get(type_name)
            if typedef is None:
                continue
            attributes.extend(a for a in typedef.attributes if a not in attributes)
        return attributes
