"""Type mapping: one abstract entity type bound to one backend asset type."""

from __future__ import annotations

from dataclasses import dataclass

from ..exceptions import ConfigurationError
from ..identity.qualified_names import format_head
from ..native import Condition
from ..records import NAME_PROPERTY
from .classifications import ClassificationMapping
from .properties import (
    QUALIFIED_NAME,
    ComplexPropertyKind,
    ComplexPropertyMapping,
    SimplePropertyMapping,
)
from .relationships import RelationshipMapping

SUPERTYPE_SENTINEL = "__supertype__"


@dataclass(frozen=True)
class TypeMapping:
    """
    Binds an abstract entity type to a backend asset type.

    ``prefix`` marks an abstract type synthesized from part of a record of
    ``asset_type``; the record itself still supplies the identity.
    ``context_properties`` are the backend paths of the record's ancestor
    names, root first, used when searching by qualified name; ``None`` when
    the ancestry has no fixed depth. A sentinel
    mapping (``asset_type == SUPERTYPE_SENTINEL``) stands for an abstract
    supertype with no backend counterpart and is never searched itself.
    """

    abstract_type: str
    asset_type: str
    prefix: str | None = None
    simple_properties: tuple[SimplePropertyMapping, ...] = ()
    complex_properties: tuple[ComplexPropertyMapping, ...] = ()
    classifications: tuple[ClassificationMapping, ...] = ()
    relationships: tuple[RelationshipMapping, ...] = ()
    context_properties: tuple[str, ...] | None = ()
    type_conditions: tuple[Condition, ...] = ()
    searchable: bool = True

    def __post_init__(self) -> None:
        if self.prefix == "":
            object.__setattr__(self, "prefix", None)
        if self.is_sentinel and self.prefix is not None:
            raise ConfigurationError(
                f"Sentinel mapping for '{self.abstract_type}' cannot carry a prefix"
            )
        if self.prefix is not None and not self.prefix.isalnum():
            raise ConfigurationError(
                f"Prefix {self.prefix!r} of '{self.abstract_type}' must be alphanumeric"
            )
        if self.prefix is not None and self.prefix != self.prefix.lower():
            raise ConfigurationError(
                f"Prefix {self.prefix!r} of '{self.abstract_type}' must be lower case"
            )
        seen: set[str] = set()
        for name in self.abstract_properties:
            if name in seen:
                raise ConfigurationError(
                    f"Property '{name}' of '{self.abstract_type}' is mapped twice"
                )
            seen.add(name)

    @property
    def is_sentinel(self) -> bool:
        return self.asset_type == SUPERTYPE_SENTINEL

    @property
    def identity_head(self) -> str:
        """Head of the identity strings of this mapping's entities."""
        return format_head(self.asset_type, self.prefix)

    @property
    def abstract_properties(self) -> list[str]:
        return [
            *(m.abstract_property for m in self.simple_properties),
            *(m.abstract_property for m in self.complex_properties),
        ]

    def simple_property(self, abstract_property: str) -> SimplePropertyMapping | None:
        for mapping in self.simple_properties:
            if mapping.abstract_property == abstract_property:
                return mapping
        return None

    def complex_property(
        self, abstract_property: str
    ) -> ComplexPropertyMapping | None:
        for mapping in self.complex_properties:
            if mapping.abstract_property == abstract_property:
                return mapping
        return None

    def classification(self, name: str) -> ClassificationMapping | None:
        for mapping in self.classifications:
            if mapping.classification == name:
                return mapping
        return None

    @property
    def has_qualified_name(self) -> bool:
        mapping = self.complex_property(QUALIFIED_NAME)
        return (
            mapping is not None
            and mapping.kind is ComplexPropertyKind.QUALIFIED_NAME
        )

    @property
    def projected_properties(self) -> list[str]:
        """Backend properties a search for this mapping requests."""
        props: list[str] = [NAME_PROPERTY]
        props.extend(m.backend_property for m in self.simple_properties)
        props.extend(
            m.backend_property for m in self.complex_properties if m.backend_property
        )
        for classification in self.classifications:
            props.extend(classification.projected_properties)
        for relationship in self.relationships:
            for proxy in (relationship.proxy_one, relationship.proxy_two):
                if proxy.asset_type != self.asset_type or proxy.prefix != self.prefix:
                    continue
                if relationship.is_relationship_level and proxy.link_property:
                    props.append(proxy.link_property)
                elif (
                    proxy.navigation_property
                    and not relationship.is_relationship_level
                ):
                    props.append(proxy.navigation_property)
        return list(dict.fromkeys(props))
