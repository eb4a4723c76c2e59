"""
Relationships implied by a backend record.

A record yields links according to the relationship mapping and the end it
plays. Links are turned into abstract relationships once both ends resolve
to a registered type mapping.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..identity.codec import RecordRef, RelationshipIdentity
from ..instances import Relationship
from ..mapping.properties import map_properties
from ..mapping.relationships import End, RelationshipKind, RelationshipMapping
from .entities import to_entity_proxy

if TYPE_CHECKING:
    from ..mapping.registry import MappingRegistry
    from ..records import Record, Reference

logger = logging.getLogger("catalog_federation.materializer")


@dataclass(frozen=True)
class RelationshipLink:
    """One relationship instance before conversion.

    ``one`` and ``two`` play the mapping's proxy-one and proxy-two ends;
    ``level`` is the record standing for a relationship-level link.
    """

    mapping: RelationshipMapping
    one: Reference
    two: Reference
    level: Reference | None = None
    properties: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def one_ref(self) -> RecordRef:
        return RecordRef(self.one.type, self.one.id, self.mapping.proxy_one.prefix)

    @property
    def two_ref(self) -> RecordRef:
        return RecordRef(self.two.type, self.two.id, self.mapping.proxy_two.prefix)

    def involves(self, record_id: str) -> bool:
        return record_id in (self.one.id, self.two.id)


def links_from_record(
    mapping: RelationshipMapping, record: Record, end: End | None = None
) -> list[RelationshipLink]:
    """
    Links *record* takes part in under *mapping*.

    ``end`` restricts reference links to the given end of *record*; ``None``
    means every end its backend type can play. Relationship-level links are
    derived only from the record standing for the relationship.
    """
    if mapping.kind is RelationshipKind.SELF:
        if record.type != mapping.proxy_one.asset_type:
            return []
        return [RelationshipLink(mapping, record.ref, record.ref)]

    if mapping.kind is RelationshipKind.RELATIONSHIP_LEVEL:
        if record.type != mapping.relationship_level_type:
            return []
        ones = record.references(mapping.proxy_one.navigation_property or "")
        twos = record.references(mapping.proxy_two.navigation_property or "")
        if not (ones and twos):
            return []
        # A relationship-level record stands for exactly one relationship.
        if len(ones) > 1 or len(twos) > 1:
            logger.warning(
                "%s record %s has %d x %d ends, keeping the first of each",
                mapping.relationship_type,
                record.id,
                len(ones),
                len(twos),
            )
        properties = map_properties(mapping.properties, (), record)
        return [RelationshipLink(mapping, ones[0], twos[0], record.ref, properties)]

    links: list[RelationshipLink] = []
    proxy_one, proxy_two = mapping.proxy_one, mapping.proxy_two
    if end in (None, End.ONE) and record.type == proxy_one.asset_type:
        for ref in record.references(proxy_one.navigation_property or ""):
            if ref.type == proxy_two.asset_type:
                links.append(RelationshipLink(mapping, record.ref, ref))
    if (
        end in (None, End.TWO)
        and record.type == proxy_two.asset_type
        and proxy_two.navigation_property
    ):
        for ref in record.references(proxy_two.navigation_property):
            if ref.type == proxy_one.asset_type:
                links.append(RelationshipLink(mapping, ref, record.ref))
    return links


def link_identity(home_id: str, link: RelationshipLink) -> RelationshipIdentity:
    if link.level is not None:
        level = RecordRef(link.level.type, link.level.id)
        return RelationshipIdentity(
            home_id,
            link.mapping.relationship_type,
            level,
            level,
            relationship_level=True,
        )
    return RelationshipIdentity(
        home_id, link.mapping.relationship_type, link.one_ref, link.two_ref
    )


def to_relationship(
    home_id: str, registry: MappingRegistry, link: RelationshipLink
) -> Relationship:
    """
    Build the abstract relationship for *link*.

    Raises:
        KeyError: An end does not resolve to a registered type mapping.
    """
    one_mapping = registry.mapping_for_backend_type(link.one.type, link.one_ref.prefix)
    two_mapping = registry.mapping_for_backend_type(link.two.type, link.two_ref.prefix)
    if one_mapping is None:
        raise KeyError(link.one_ref)
    if two_mapping is None:
        raise KeyError(link.two_ref)
    return Relationship(
        guid=link_identity(home_id, link).guid,
        type_name=link.mapping.relationship_type,
        metadata_collection_id=home_id,
        end_one=to_entity_proxy(home_id, one_mapping, link.one),
        end_two=to_entity_proxy(home_id, two_mapping, link.two),
        properties=dict(link.properties),
    )
