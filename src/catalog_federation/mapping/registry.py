"""
Type mapping registry.

Built once at start-up from a fixed list of mappings, validated against the
abstract type definitions, and read-only thereafter. Lookups are plain table
reads; a miss is reported as ``TypeNotMappedError`` and a deliberately
unimplemented capability as ``TypeNotSupportedError``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from types import MappingProxyType

from ..exceptions import (
    ConfigurationError,
    TypeNotMappedError,
    TypeNotSupportedError,
)
from ..typedefs import BASE_TYPE, TypeDefCategory, TypeDefStore
from .classifications import ClassificationMapping
from .entities import TypeMapping
from .relationships import RelationshipMapping

logger = logging.getLogger("catalog_federation.registry")


class MappingRegistry:
    """
    Immutable table of type mappings with inheritance-aware lookup.

    Usage::

        registry = MappingRegistry(default_typedef_store(), default_mappings())
        registry.expand_to_searchable_subtypes("SchemaAttribute")
    """

    def __init__(
        self,
        typedefs: TypeDefStore,
        mappings: Iterable[TypeMapping],
        *,
        base_type: str = BASE_TYPE,
        unsupported_types: Iterable[str] = (),
    ) -> None:
        self._typedefs = typedefs
        self._base_type = base_type
        self._unsupported = frozenset(unsupported_types)

        by_abstract: dict[str, TypeMapping] = {}
        by_identity: dict[tuple[str, str | None], TypeMapping] = {}
        by_asset_type: dict[str, list[TypeMapping]] = {}
        by_prefix: dict[str, list[TypeMapping]] = {}
        relationships: dict[RelationshipMapping, None] = {}

        for mapping in mappings:
            self._validate(mapping, by_abstract)
            by_abstract[mapping.abstract_type] = mapping
            if mapping.is_sentinel:
                continue
            key = (mapping.asset_type, mapping.prefix)
            if key in by_identity:
                raise ConfigurationError(
                    f"'{mapping.abstract_type}' and "
                    f"'{by_identity[key].abstract_type}' share backend identity "
                    f"{mapping.identity_head}"
                )
            by_identity[key] = mapping
            by_asset_type.setdefault(mapping.asset_type, []).append(mapping)
            if mapping.prefix is not None:
                by_prefix.setdefault(mapping.prefix, []).append(mapping)
            for relationship in mapping.relationships:
                relationships.setdefault(relationship, None)

        if base_type not in typedefs:
            raise ConfigurationError(f"Unknown base type '{base_type}'")
        for relationship in relationships:
            for proxy in (relationship.proxy_one, relationship.proxy_two):
                if (proxy.asset_type, proxy.prefix) not in by_identity:
                    raise ConfigurationError(
                        f"Relationship '{relationship.relationship_type}' ends in "
                        f"unmapped backend type {proxy.asset_type!r} "
                        f"(prefix {proxy.prefix!r})"
                    )

        self._by_abstract = MappingProxyType(by_abstract)
        self._by_identity = MappingProxyType(by_identity)
        self._by_asset_type = MappingProxyType(
            {k: tuple(v) for k, v in by_asset_type.items()}
        )
        self._by_prefix = MappingProxyType({k: tuple(v) for k, v in by_prefix.items()})
        self._relationships = tuple(relationships)

    def _validate(self, mapping: TypeMapping, seen: dict[str, TypeMapping]) -> None:
        typedef = self._typedefs.get(mapping.abstract_type)
        if typedef is None or typedef.category is not TypeDefCategory.ENTITY:
            raise ConfigurationError(
                f"Mapping for unknown entity type '{mapping.abstract_type}'"
            )
        if mapping.abstract_type in seen:
            raise ConfigurationError(
                f"Entity type '{mapping.abstract_type}' is mapped twice"
            )
        for classification in mapping.classifications:
            if classification.classification not in self._typedefs:
                raise ConfigurationError(
                    f"'{mapping.abstract_type}' maps unknown classification "
                    f"'{classification.classification}'"
                )
        for relationship in mapping.relationships:
            if relationship.relationship_type not in self._typedefs:
                raise ConfigurationError(
                    f"'{mapping.abstract_type}' maps unknown relationship "
                    f"'{relationship.relationship_type}'"
                )

    # -- properties ----------------------------------------------------------

    @property
    def typedefs(self) -> TypeDefStore:
        return self._typedefs

    @property
    def base_type(self) -> str:
        return self._base_type

    # -- look-up -------------------------------------------------------------

    def mapping_for_abstract_type(self, name: str) -> TypeMapping | None:
        return self._by_abstract.get(name)

    def mappings_for_backend_type(self, asset_type: str) -> list[TypeMapping]:
        """All mappings backed by *asset_type*, one per synthetic prefix."""
        return list(self._by_asset_type.get(asset_type, ()))

    def mapping_for_backend_type(
        self, asset_type: str, prefix: str | None = None
    ) -> TypeMapping | None:
        return self._by_identity.get((asset_type, prefix or None))

    def mappings_for_prefix(self, prefix: str) -> list[TypeMapping]:
        return list(self._by_prefix.get(prefix, ()))

    def all_mappings(self) -> list[TypeMapping]:
        return list(self._by_abstract.values())

    def is_unsupported(self, name: str) -> bool:
        return name in self._unsupported

    # -- entity type expansion -----------------------------------------------

    def _eligible(self, mapping: TypeMapping, subtype_filter: Sequence[str]) -> bool:
        if mapping.is_sentinel or not mapping.searchable:
            return False
        if mapping.abstract_type == self._base_type:
            return False
        return not subtype_filter or any(
            self._typedefs.is_type_of(mapping.abstract_type, allowed)
            for allowed in subtype_filter
        )

    def expand_to_searchable_subtypes(
        self,
        type_name: str | None = None,
        subtype_filter: Sequence[str] | None = None,
        *,
        operation: str | None = None,
    ) -> list[TypeMapping]:
        """
        Mappings to search for *type_name* and every mapped subtype.

        The direct mapping (if any) comes first, then subtypes in
        registration order. Sentinel, non-searchable and base-type mappings
        are never returned.

        Raises:
            TypeNotMappedError: Unknown type, or no mapping in its subtree.
            TypeNotSupportedError: Type is deliberately unimplemented, or
                only non-searchable mappings exist for it.
        """
        allowed = list(subtype_filter or ())
        for name in allowed:
            self.check_type(name, operation=operation)

        if type_name is None:
            return [m for m in self._by_abstract.values() if self._eligible(m, allowed)]

        self.check_type(type_name, operation=operation)
        result: list[TypeMapping] = []
        in_subtree: list[TypeMapping] = []
        direct = self._by_abstract.get(type_name)
        if direct is not None:
            in_subtree.append(direct)
            if self._eligible(direct, allowed):
                result.append(direct)
        for mapping in self._by_abstract.values():
            if mapping is direct:
                continue
            if not self._typedefs.is_type_of(mapping.abstract_type, type_name):
                continue
            in_subtree.append(mapping)
            if self._eligible(mapping, allowed):
                result.append(mapping)

        if not any(not m.is_sentinel for m in in_subtree):
            raise TypeNotMappedError(
                type_name,
                known_types=list(self._by_abstract),
                operation=operation,
            )
        if not result and not any(
            m.searchable for m in in_subtree if not m.is_sentinel
        ):
            raise TypeNotSupportedError(
                type_name, "no searchable mapping", operation=operation
            )
        if not result:
            logger.warning(
                "No searchable mapping for %s within subtypes %s", type_name, allowed
            )
        return result

    def check_type(self, name: str, *, operation: str | None = None) -> None:
        """Reject unknown and deliberately unsupported type names."""
        if name not in self._typedefs:
            raise TypeNotMappedError(
                name, known_types=self._typedefs.names, operation=operation
            )
        if name in self._unsupported:
            raise TypeNotSupportedError(
                name, "deliberately not implemented", operation=operation
            )

    def require_mapping(
        self,
        asset_type: str,
        prefix: str | None = None,
        *,
        operation: str | None = None,
    ) -> TypeMapping:
        """Mapping owning records of ``(asset_type, prefix)``."""
        mapping = self.mapping_for_backend_type(asset_type, prefix)
        if mapping is None:
            raise TypeNotMappedError(
                asset_type if prefix is None else f"{prefix}_{asset_type}",
                operation=operation,
                params={"asset_type": asset_type, "prefix": prefix},
            )
        return mapping

    # -- relationships -------------------------------------------------------

    def relationship_mappings(self) -> list[RelationshipMapping]:
        return list(self._relationships)

    def relationship_mappings_for(
        self, relationship_type: str | None = None, *, operation: str | None = None
    ) -> list[RelationshipMapping]:
        """Relationship mappings for a type and its subtypes, or all of them."""
        if relationship_type is None:
            return list(self._relationships)
        self.check_type(relationship_type, operation=operation)
        result = [
            r
            for r in self._relationships
            if self._typedefs.is_type_of(r.relationship_type, relationship_type)
        ]
        if not result:
            raise TypeNotMappedError(
                relationship_type,
                known_types=sorted({r.relationship_type for r in self._relationships}),
                operation=operation,
            )
        return result

    def relationship_mappings_for_types(
        self, relationship_type: str, asset_type_a: str, asset_type_b: str
    ) -> list[RelationshipMapping]:
        """Mappings of *relationship_type* linking the two backend types."""
        return [
            r
            for r in self._relationships
            if r.relationship_type == relationship_type
            and r.connects(asset_type_a, asset_type_b)
        ]

    # -- classifications -----------------------------------------------------

    def classification_mappings(self, name: str) -> list[ClassificationMapping]:
        return [
            c
            for m in self._by_abstract.values()
            for c in m.classifications
            if c.classification == name
        ]

    def check_classification(self, name: str, *, operation: str | None = None) -> None:
        typedef = self._typedefs.get(name)
        if typedef is None or typedef.category is not TypeDefCategory.CLASSIFICATION:
            raise TypeNotMappedError(
                name,
                known_types=[
                    t.name
                    for t in self._typedefs.of_category(TypeDefCategory.CLASSIFICATION)
                ],
                operation=operation,
            )
