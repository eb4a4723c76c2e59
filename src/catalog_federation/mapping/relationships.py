"""
Relationship mapping descriptors.

A relationship mapping says how instances of one abstract relationship type
are recovered from the backend:

- ``REFERENCE``: a reference property on the proxy-one record lists the
  proxy-two records (``proxy_two.navigation_property`` optionally names the
  reverse property).
- ``SELF``: both ends are the same backend record, told apart by their
  synthetic prefixes.
- ``RELATIONSHIP_LEVEL``: one backend record of ``relationship_level_type``
  stands for the relationship. Each proxy's ``navigation_property`` is the
  property on that record pointing to the end, and ``link_property`` the
  property on the end's record listing such records.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..exceptions import ConfigurationError
from .properties import SimplePropertyMapping


class RelationshipKind(str, Enum):
    REFERENCE = "reference"
    SELF = "self"
    RELATIONSHIP_LEVEL = "relationship_level"


class End(str, Enum):
    ONE = "one"
    TWO = "two"


@dataclass(frozen=True)
class ProxyMapping:
    asset_type: str
    prefix: str | None = None
    navigation_property: str | None = None
    link_property: str | None = None

    def matches(self, asset_type: str, prefix: str | None) -> bool:
        return self.asset_type == asset_type and self.prefix == (prefix or None)


@dataclass(frozen=True)
class RelationshipMapping:
    relationship_type: str
    kind: RelationshipKind
    proxy_one: ProxyMapping
    proxy_two: ProxyMapping
    relationship_level_type: str | None = None
    properties: tuple[SimplePropertyMapping, ...] = ()

    def __post_init__(self) -> None:
        where = f"relationship mapping '{self.relationship_type}'"
        if self.kind is RelationshipKind.REFERENCE:
            if not self.proxy_one.navigation_property:
                raise ConfigurationError(f"{where}: proxy one needs a property")
            if self.properties:
                raise ConfigurationError(
                    f"{where}: reference links carry no properties"
                )
        elif self.kind is RelationshipKind.SELF:
            if self.proxy_one.asset_type != self.proxy_two.asset_type:
                raise ConfigurationError(f"{where}: both ends must share a type")
            if self.proxy_one.prefix == self.proxy_two.prefix:
                raise ConfigurationError(f"{where}: ends need distinct prefixes")
        else:
            if not self.relationship_level_type:
                raise ConfigurationError(f"{where}: missing relationship-level type")
            if not (
                self.proxy_one.navigation_property
                and self.proxy_two.navigation_property
            ):
                raise ConfigurationError(f"{where}: both proxies need a property")

    @property
    def is_relationship_level(self) -> bool:
        return self.kind is RelationshipKind.RELATIONSHIP_LEVEL

    def proxy(self, end: End) -> ProxyMapping:
        return self.proxy_one if end is End.ONE else self.proxy_two

    def ends_for(self, asset_type: str, prefix: str | None) -> list[End]:
        """Which ends a record of ``(asset_type, prefix)`` can play."""
        return [
            end
            for end in (End.ONE, End.TWO)
            if self.proxy(end).matches(asset_type, prefix)
        ]

    def connects(self, asset_type_a: str, asset_type_b: str) -> bool:
        """True if the mapping links records of these backend types, either way."""
        if self.is_relationship_level:
            return asset_type_a == asset_type_b == self.relationship_level_type
        pair = (self.proxy_one.asset_type, self.proxy_two.asset_type)
        return pair in ((asset_type_a, asset_type_b), (asset_type_b, asset_type_a))

    @property
    def search_asset_type(self) -> str:
        """Backend type whose records a relationship search enumerates."""
        if self.relationship_level_type:
            return self.relationship_level_type
        return self.proxy_one.asset_type

    @property
    def level_properties(self) -> list[str]:
        """Properties read from the record standing for a relationship-level link."""
        props = [
            p
            for p in (
                self.proxy_one.navigation_property,
                self.proxy_two.navigation_property,
            )
            if p
        ]
        props.extend(p.backend_property for p in self.properties)
        return props

    def backend_property_for(self, abstract_property: str) -> str | None:
        for mapping in self.properties:
            if mapping.abstract_property == abstract_property:
                return mapping.backend_property
        return None
