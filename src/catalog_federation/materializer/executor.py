"""
Runs a search plan and materializes abstract instances from the hits.

Searches run one after another in plan order. The plan's window is applied
across all of them: the first ``skip`` instances are discarded and no more
than ``page_size`` are kept. Once the window is full the remaining searches
are not executed and the current one stops being consumed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..mapping.relationships import End, RelationshipKind
from ..native import Condition, ConditionSet, NativeOperator, NativeSearch, Sorting
from ..query.evaluator import matches
from ..records import ID_PROPERTY, NAME_PROPERTY
from .entities import to_entity_detail
from .relationships import RelationshipLink, links_from_record, to_relationship

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ..instances import EntityDetail, Relationship
    from ..mapping.entities import TypeMapping
    from ..mapping.registry import MappingRegistry
    from ..mapping.relationships import RelationshipMapping
    from ..query.translator import SearchPlan
    from ..records import Record
    from .cache import ObjectCache

logger = logging.getLogger("catalog_federation.materializer")


async def _close(iterator: AsyncIterator[Any]) -> None:
    close = getattr(iterator, "aclose", None)
    if close is not None:
        await close()


class ResultMaterializer:
    """
    Converts backend hits into entities and relationships.

    Records that cannot be converted (a required property is missing, an end
    is not mapped) are dropped with a warning; the rest of the page is
    still returned.
    """

    def __init__(
        self, registry: MappingRegistry, cache: ObjectCache, home_id: str
    ) -> None:
        self._registry = registry
        self._cache = cache
        self._home_id = home_id

    @property
    def cache(self) -> ObjectCache:
        return self._cache

    # -- entities ------------------------------------------------------------

    async def execute(self, plan: SearchPlan) -> list[EntityDetail]:
        budget = plan.skip + plan.page_size if plan.page_size else None
        results: list[EntityDetail] = []
        for index, search in enumerate(plan.searches):
            if budget is not None and len(results) >= budget:
                logger.info(
                    "Page filled, skipping %d remaining searches",
                    len(plan.searches) - index,
                )
                break
            mapping = search.mapping
            if mapping is None:
                continue
            hits = self._cache.transport.search(search)
            try:
                async for record in hits:
                    entity = self.entity(mapping, record)
                    if entity is None:
                        continue
                    if search.residual is not None and not matches(
                        entity.properties, search.residual
                    ):
                        continue
                    results.append(entity)
                    if budget is not None and len(results) >= budget:
                        break
            finally:
                await _close(hits)
        return results[plan.skip : budget]

    def entity(self, mapping: TypeMapping, record: Record) -> EntityDetail | None:
        """The entity for *record*, or ``None`` if it cannot be converted."""
        try:
            return to_entity_detail(self._home_id, mapping, record)
        except KeyError as err:
            logger.warning(
                "Dropping %s record %s: no value for %s",
                mapping.abstract_type,
                record.id,
                err,
            )
            return None

    # -- relationships -------------------------------------------------------

    async def execute_relationships(self, plan: SearchPlan) -> list[Relationship]:
        budget = plan.skip + plan.page_size if plan.page_size else None
        results: list[Relationship] = []
        for index, search in enumerate(plan.searches):
            if budget is not None and len(results) >= budget:
                logger.info(
                    "Page filled, skipping %d remaining searches",
                    len(plan.searches) - index,
                )
                break
            mapping = search.relationship_mapping
            if mapping is None:
                continue
            end = End.ONE if mapping.kind is RelationshipKind.REFERENCE else None
            hits = self._cache.transport.search(search)
            try:
                async for record in hits:
                    for link in links_from_record(mapping, record, end):
                        relationship = self.relationship(link)
                        if relationship is not None:
                            results.append(relationship)
                    if budget is not None and len(results) >= budget:
                        break
            finally:
                await _close(hits)
        return results[plan.skip : budget]

    def relationship(self, link: RelationshipLink) -> Relationship | None:
        try:
            return to_relationship(self._home_id, self._registry, link)
        except KeyError as err:
            logger.warning(
                "Dropping %s link between %s and %s: unmapped end %s",
                link.mapping.relationship_type,
                link.one.id,
                link.two.id,
                err,
            )
            return None

    async def links_for_record(
        self, mapping: TypeMapping, record: Record, relationship_type: str | None = None
    ) -> list[RelationshipLink]:
        """
        Every link the entity *mapping* synthesizes from *record* takes part in.

        ``relationship_type`` keeps only links of that type and its subtypes.
        """
        typedefs = self._registry.typedefs
        links: list[RelationshipLink] = []
        for relationship in mapping.relationships:
            if relationship_type is not None and not typedefs.is_type_of(
                relationship.relationship_type, relationship_type
            ):
                continue
            for end in relationship.ends_for(record.type, mapping.prefix):
                links.extend(await self._links_at_end(relationship, record, end))
        return links

    async def _links_at_end(
        self, relationship: RelationshipMapping, record: Record, end: End
    ) -> list[RelationshipLink]:
        proxy = relationship.proxy(end)
        if relationship.kind is RelationshipKind.SELF:
            return links_from_record(relationship, record)

        if relationship.kind is RelationshipKind.RELATIONSHIP_LEVEL:
            links: list[RelationshipLink] = []
            for ref in record.references(proxy.link_property or ""):
                level = await self._cache.get(ref.id, relationship.level_properties)
                if level is None:
                    logger.warning(
                        "Dropping %s link: record %s does not exist",
                        relationship.relationship_type,
                        ref.id,
                    )
                    continue
                links.extend(
                    link
                    for link in links_from_record(relationship, level)
                    if (link.one if end is End.ONE else link.two).id == record.id
                )
            return links

        if end is End.ONE or proxy.navigation_property:
            return links_from_record(relationship, record, end)
        return await self._reverse_links(relationship, record)

    async def _reverse_links(
        self, relationship: RelationshipMapping, record: Record
    ) -> list[RelationshipLink]:
        """Links to *record* when only proxy one navigates to proxy two."""
        navigation = relationship.proxy_one.navigation_property or ""
        search = NativeSearch(
            types=[relationship.proxy_one.asset_type],
            conditions=ConditionSet(
                [Condition(f"{navigation}.{ID_PROPERTY}", NativeOperator.EQ, record.id)]
            ),
            properties=[NAME_PROPERTY, navigation],
            sorts=[Sorting(ID_PROPERTY)],
            relationship_mapping=relationship,
        )
        links: list[RelationshipLink] = []
        hits = self._cache.transport.search(search)
        try:
            async for hit in hits:
                links.extend(
                    link
                    for link in links_from_record(relationship, hit, End.ONE)
                    if link.two.id == record.id
                )
        finally:
            await _close(hits)
        return links

    async def relationships_for_record(
        self, mapping: TypeMapping, record: Record, relationship_type: str | None = None
    ) -> list[Relationship]:
        """Relationships of the entity *mapping* synthesizes from *record*."""
        seen: set[str] = set()
        results: list[Relationship] = []
        for link in await self.links_for_record(mapping, record, relationship_type):
            relationship = self.relationship(link)
            if relationship is None or relationship.guid in seen:
                continue
            seen.add(relationship.guid)
            results.append(relationship)
        return results
