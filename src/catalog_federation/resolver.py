"""
Relationship identifier -> relationship instance.

A relationship is never stored: it is re-derived from its endpoint records
(or from the record standing for it) and selected by identity.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .exceptions import (
    MalformedIdentityError,
    RelationshipNotKnownError,
    TypeNotMappedError,
)
from .identity.codec import RecordRef, RelationshipIdentity, decode_relationship_id
from .materializer.relationships import (
    RelationshipLink,
    link_identity,
    links_from_record,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .instances import Relationship
    from .mapping.registry import MappingRegistry
    from .mapping.relationships import RelationshipMapping
    from .materializer.executor import ResultMaterializer
    from .records import Record

logger = logging.getLogger("catalog_federation.resolver")


class RelationshipResolver:
    """
    Resolves relationship identifiers against the backend.

    Usage::

        resolver = RelationshipResolver(registry, materializer, "home-1")
        relationship = await resolver.resolve(guid)
    """

    def __init__(
        self,
        registry: MappingRegistry,
        materializer: ResultMaterializer,
        home_id: str,
    ) -> None:
        self._registry = registry
        self._materializer = materializer
        self._home_id = home_id

    def decode(self, guid: str) -> RelationshipIdentity:
        """
        Raises:
            RelationshipNotKnownError: Malformed or foreign identifier.
        """
        result = decode_relationship_id(guid, expected_home=self._home_id)
        try:
            return result.unwrap(guid)
        except MalformedIdentityError as err:
            logger.info("Relationship id %r rejected: %s", guid, err.reason)
            raise RelationshipNotKnownError(
                guid, params={"reason": err.reason}
            ) from err

    async def resolve(self, guid: str) -> Relationship:
        """
        Raises:
            RelationshipNotKnownError: Malformed identifier, missing endpoint
                record, or no derived relationship with this identity.
            TypeNotMappedError: No relationship mapping fits the endpoints.
        """
        identity = self.decode(guid)
        # The flag only disambiguates; the ends decide how to re-derive.
        if identity.end_a == identity.end_b and self._level_mappings(
            identity.relationship_type, identity.end_a.asset_type
        ):
            links = await self._relationship_level_links(guid, identity)
        else:
            links = await self._reference_links(guid, identity)

        exact = [
            link for link in links if link_identity(self._home_id, link) == identity
        ]
        candidates = exact or [
            link
            for link in links
            if link_identity(self._home_id, link).same_relationship(identity)
        ]
        for link in candidates:
            relationship = self._materializer.relationship(link)
            if relationship is not None:
                return relationship
        raise RelationshipNotKnownError(guid)

    async def _fetch(
        self, guid: str, ref: RecordRef, properties: Sequence[str] = ()
    ) -> Record:
        record = await self._materializer.cache.get(ref.record_id, properties)
        if record is None or record.type != ref.asset_type:
            logger.info("Relationship %s: endpoint %s does not exist", guid, ref)
            raise RelationshipNotKnownError(
                guid, params={"missing_record": ref.record_id}
            )
        return record

    async def _relationship_level_links(
        self, guid: str, identity: RelationshipIdentity
    ) -> list[RelationshipLink]:
        asset_type = identity.end_a.asset_type
        mappings = self._level_mappings(identity.relationship_type, asset_type)
        if not mappings:
            raise self._not_mapped(identity, asset_type, asset_type)
        properties = [p for m in mappings for p in m.level_properties]
        record = await self._fetch(guid, identity.end_a, properties)
        return [link for m in mappings for link in links_from_record(m, record)]

    def _level_mappings(
        self, relationship_type: str, asset_type: str
    ) -> list[RelationshipMapping]:
        return [
            m
            for m in self._registry.relationship_mappings()
            if m.relationship_type == relationship_type
            and m.relationship_level_type == asset_type
        ]

    def _projection(
        self, asset_type: str, mappings: list[RelationshipMapping]
    ) -> list[str]:
        """Properties the proxy-one entity mappings read from a record."""
        props: list[str] = []
        for mapping in mappings:
            if mapping.proxy_one.asset_type != asset_type:
                continue
            entity_mapping = self._registry.mapping_for_backend_type(
                asset_type, mapping.proxy_one.prefix
            )
            if entity_mapping is not None:
                props.extend(entity_mapping.projected_properties)
        return list(dict.fromkeys(props))

    async def _reference_links(
        self, guid: str, identity: RelationshipIdentity
    ) -> list[RelationshipLink]:
        type_a, type_b = identity.end_a.asset_type, identity.end_b.asset_type
        mappings = [
            m
            for m in self._registry.relationship_mappings_for_types(
                identity.relationship_type, type_a, type_b
            )
            if not m.is_relationship_level
        ]
        record_a = await self._fetch(
            guid, identity.end_a, self._projection(type_a, mappings)
        )
        record_b = await self._fetch(
            guid, identity.end_b, self._projection(type_b, mappings)
        )
        if not mappings:
            raise self._not_mapped(identity, record_a.type, record_b.type)

        links: list[RelationshipLink] = []
        for mapping in mappings:
            # Orient by proxy one: links are read from its navigation property.
            for record in (record_a, record_b):
                if record.type != mapping.proxy_one.asset_type:
                    continue
                entity_mapping = self._registry.mapping_for_backend_type(
                    record.type, mapping.proxy_one.prefix
                )
                if entity_mapping is None:
                    continue
                links.extend(
                    await self._materializer.links_for_record(
                        entity_mapping, record, mapping.relationship_type
                    )
                )
        return [link for link in links if link.involves(record_a.id)]

    def _not_mapped(
        self, identity: RelationshipIdentity, type_a: str, type_b: str
    ) -> TypeNotMappedError:
        return TypeNotMappedError(
            identity.relationship_type,
            known_types=sorted(
                {m.relationship_type for m in self._registry.relationship_mappings()}
            ),
            params={"asset_type_a": type_a, "asset_type_b": type_b},
        )


__all__ = ["RelationshipResolver"]
