"""
MetadataCollection - the federation API over one backend catalog.

Every operation runs in its own call scope (fresh object cache), raises
typed exceptions internally and returns an :class:`Outcome` at this
boundary. Configuration errors and cancellation are never converted.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from typing import TypeVar

from .adapters.bounded import BoundedTransport
from .config import FederationConfig
from .exceptions import (
    ConfigurationError,
    EntityNotKnownError,
    FederationError,
    FunctionNotSupportedError,
    MalformedIdentityError,
    RelationshipNotKnownError,
    TypeNotMappedError,
    TypeNotSupportedError,
)
from .identity.codec import decode_entity_id
from .instances import EntityDetail, InstanceGraph, Relationship
from .mapping.entities import TypeMapping
from .mapping.registry import MappingRegistry
from .materializer.cache import ObjectCache
from .materializer.executor import ResultMaterializer
from .outcome import Outcome
from .ports.transport import ICatalogTransport
from .query.model import (
    ClassificationCondition,
    EntitySearch,
    PagingWindow,
    RelationshipSearch,
    SearchClassifications,
    SearchProperties,
    SequencingOrder,
)
from .query.translator import QueryTranslator
from .records import Record
from .resolver import RelationshipResolver
from .typedefs import TypeDef, TypeDefCategory

logger = logging.getLogger("catalog_federation.collection")

T = TypeVar("T")


@dataclass(frozen=True)
class TypeVerification:
    """How completely an abstract type is implemented by the mappings."""

    type_name: str
    supported: bool
    unmapped_attributes: tuple[str, ...] = ()


def _window(items: list[T], paging: PagingWindow) -> list[T]:
    return items[paging.start : paging.end or None]


def _sequence(
    relationships: list[Relationship], paging: PagingWindow
) -> list[Relationship]:
    order = paging.sequencing_order
    if order is SequencingOrder.GUID:
        return sorted(relationships, key=lambda r: r.guid)
    if paging.sequencing_property is None:
        return relationships
    prop = paging.sequencing_property

    def key(relationship: Relationship) -> tuple[bool, str]:
        value = relationship.properties.get(prop)
        return value is None, "" if value is None else str(value)

    return sorted(
        relationships,
        key=key,
        reverse=order is SequencingOrder.PROPERTY_DESCENDING,
    )


def _no_history(as_of_time: datetime | None, operation: str) -> None:
    if as_of_time is not None:
        raise FunctionNotSupportedError(
            "Historical queries are not supported", operation=operation
        )


class MetadataCollection:
    """
    Federated metadata collection backed by one catalog transport.

    Usage::

        collection = MetadataCollection(
            FederationConfig(home_collection_id="home-1"),
            default_registry(),
            transport,
        )
        outcome = await collection.find_entities_by_property_value(
            "RelationalColumn", ".*\\\\Qcustomer\\\\E.*"
        )
        columns = outcome.unwrap()
    """

    def __init__(
        self,
        config: FederationConfig,
        registry: MappingRegistry,
        transport: ICatalogTransport,
    ) -> None:
        if registry.base_type != config.base_type:
            raise ConfigurationError(
                f"Registry base type '{registry.base_type}' does not match "
                f"configured base type '{config.base_type}'"
            )
        self._config = config
        self._registry = registry
        self._transport = BoundedTransport(
            transport, timeout=config.transport_timeout_seconds
        )
        self._translator = QueryTranslator(
            registry,
            foreign_name_prefix=config.foreign_name_prefix,
            text_search_exclusions=config.text_search_exclusions,
        )

    @property
    def metadata_collection_id(self) -> str:
        return self._config.home_collection_id

    @property
    def repository_name(self) -> str:
        return self._config.repository_name

    @property
    def registry(self) -> MappingRegistry:
        return self._registry

    @property
    def translator(self) -> QueryTranslator:
        return self._translator

    # -- call scope ----------------------------------------------------------

    async def _run(
        self,
        operation: str,
        work: Callable[[ResultMaterializer], Awaitable[T]],
    ) -> Outcome[T]:
        materializer = ResultMaterializer(
            self._registry, ObjectCache(self._transport), self.metadata_collection_id
        )
        try:
            value = await work(materializer)
        except ConfigurationError:
            raise
        except FederationError as err:
            err.with_operation(operation)
            err.params.setdefault("home_collection_id", self.metadata_collection_id)
            logger.info("%s failed: %s", operation, err.message)
            return Outcome.failure(err)
        return Outcome.ok(value)

    async def _entity_record(
        self, materializer: ResultMaterializer, guid: str
    ) -> tuple[TypeMapping, Record]:
        result = decode_entity_id(guid, expected_home=self.metadata_collection_id)
        try:
            identity = result.unwrap(guid)
        except MalformedIdentityError as err:
            raise EntityNotKnownError(guid, params={"reason": err.reason}) from err
        if identity.asset_type == self._config.default_asset_type:
            raise TypeNotSupportedError(
                identity.asset_type,
                "the backend's default type has no abstract counterpart",
                params={"guid": guid},
            )
        mapping = self._registry.require_mapping(identity.asset_type, identity.prefix)
        record = await materializer.cache.get(
            identity.record_id, mapping.projected_properties
        )
        if record is None or record.type != identity.asset_type:
            raise EntityNotKnownError(guid)
        return mapping, record

    async def _entity_detail(
        self, materializer: ResultMaterializer, guid: str
    ) -> EntityDetail:
        mapping, record = await self._entity_record(materializer, guid)
        entity = materializer.entity(mapping, record)
        if entity is None:
            raise EntityNotKnownError(guid, params={"reason": "cannot be mapped"})
        return entity

    # -- entity searches -----------------------------------------------------

    async def find_entities(
        self,
        type_name: str | None = None,
        subtype_names: Sequence[str] | None = None,
        properties: SearchProperties | None = None,
        classifications: SearchClassifications | None = None,
        paging: PagingWindow | None = None,
        as_of_time: datetime | None = None,
    ) -> Outcome[list[EntityDetail]]:
        """Entities of a type (and its subtypes) matching all criteria given."""
        request = EntitySearch(
            type_name=type_name,
            subtype_names=tuple(subtype_names) if subtype_names else None,
            properties=properties,
            classifications=classifications,
            paging=paging or PagingWindow(),
            as_of_time=as_of_time,
        )
        return await self._run("find_entities", lambda m: self._search(m, request))

    async def _search(
        self, materializer: ResultMaterializer, request: EntitySearch
    ) -> list[EntityDetail]:
        plan = self._translator.translate_entity_search(request)
        if plan.is_empty:
            return []
        return await materializer.execute(plan)

    async def find_entities_by_property(
        self,
        type_name: str | None,
        properties: SearchProperties,
        classifications: Sequence[str] = (),
        paging: PagingWindow | None = None,
        as_of_time: datetime | None = None,
    ) -> Outcome[list[EntityDetail]]:
        request = EntitySearch(
            type_name=type_name,
            properties=properties,
            classifications=SearchClassifications.from_names(classifications)
            if classifications
            else None,
            paging=paging or PagingWindow(),
            as_of_time=as_of_time,
        )
        return await self._run(
            "find_entities_by_property", lambda m: self._search(m, request)
        )

    async def find_entities_by_classification(
        self,
        type_name: str | None,
        classification_name: str,
        properties: SearchProperties | None = None,
        paging: PagingWindow | None = None,
        as_of_time: datetime | None = None,
    ) -> Outcome[list[EntityDetail]]:
        """Entities carrying *classification_name*, optionally with properties."""
        operation = "find_entities_by_classification"

        async def work(materializer: ResultMaterializer) -> list[EntityDetail]:
            self._registry.check_classification(classification_name)
            request = EntitySearch(
                type_name=type_name,
                classifications=SearchClassifications(
                    (ClassificationCondition(classification_name, properties),)
                ),
                paging=paging or PagingWindow(),
                as_of_time=as_of_time,
            )
            return await self._search(materializer, request)

        return await self._run(operation, work)

    async def find_entities_by_property_value(
        self,
        type_name: str | None,
        value: str,
        subtype_names: Sequence[str] | None = None,
        classifications: Sequence[str] = (),
        paging: PagingWindow | None = None,
        as_of_time: datetime | None = None,
    ) -> Outcome[list[EntityDetail]]:
        """
        Entities with any string property matching the regex *value*.

        A value naming a qualified name is searched as one.
        """
        operation = "find_entities_by_property_value"
        request = EntitySearch(
            type_name=type_name,
            subtype_names=tuple(subtype_names) if subtype_names else None,
            classifications=SearchClassifications.from_names(classifications)
            if classifications
            else None,
            paging=paging or PagingWindow(),
            as_of_time=as_of_time,
        )

        async def work(materializer: ResultMaterializer) -> list[EntityDetail]:
            _no_history(as_of_time, operation)
            rerouted = self._translator.qualified_name_properties(value)
            if rerouted is not None:
                logger.info("Searching %r as a qualified name", value)
                return await self._search(
                    materializer, replace(request, properties=rerouted)
                )
            mappings = self._translator.candidate_mappings(request)
            string_properties: dict[str, list[str]] = {}
            for asset_type in dict.fromkeys(m.asset_type for m in mappings):
                string_properties[asset_type] = (
                    await self._transport.get_all_string_properties(asset_type)
                )
            version = await self._transport.get_version() if mappings else None
            plan = self._translator.translate_text_search(
                request, value, string_properties, version
            )
            if plan.is_empty:
                return []
            return await materializer.execute(plan)

        return await self._run(operation, work)

    # -- entity look-up ------------------------------------------------------

    async def get_entity_detail(self, guid: str) -> Outcome[EntityDetail]:
        return await self._run(
            "get_entity_detail", lambda m: self._entity_detail(m, guid)
        )

    async def is_entity_known(self, guid: str) -> Outcome[EntityDetail | None]:
        """The entity, or ``None`` when the identifier is not known."""

        async def work(materializer: ResultMaterializer) -> EntityDetail | None:
            try:
                return await self._entity_detail(materializer, guid)
            except EntityNotKnownError as err:
                logger.info("Entity %s not known: %s", guid, err.message)
                return None

        return await self._run("is_entity_known", work)

    async def get_relationships_for_entity(
        self,
        guid: str,
        relationship_type: str | None = None,
        paging: PagingWindow | None = None,
        as_of_time: datetime | None = None,
    ) -> Outcome[list[Relationship]]:
        operation = "get_relationships_for_entity"
        window = paging or PagingWindow()

        async def work(materializer: ResultMaterializer) -> list[Relationship]:
            _no_history(as_of_time, operation)
            relationships = await self._relationships_for(
                materializer, guid, relationship_type
            )
            return _window(_sequence(relationships, window), window)

        return await self._run(operation, work)

    async def _relationships_for(
        self,
        materializer: ResultMaterializer,
        guid: str,
        relationship_type: str | None,
    ) -> list[Relationship]:
        if relationship_type is not None:
            self._registry.relationship_mappings_for(relationship_type)
        mapping, record = await self._entity_record(materializer, guid)
        return await materializer.relationships_for_record(
            mapping, record, relationship_type
        )

    async def get_entity_neighborhood(
        self,
        guid: str,
        entity_types: Sequence[str] | None = None,
        relationship_types: Sequence[str] | None = None,
        classifications: Sequence[str] | None = None,
        as_of_time: datetime | None = None,
        level: int = 1,
    ) -> Outcome[InstanceGraph]:
        """
        Entities one hop away and the relationships leading to them.

        Only ``level == 1`` is supported.
        """
        operation = "get_entity_neighborhood"

        async def work(materializer: ResultMaterializer) -> InstanceGraph:
            _no_history(as_of_time, operation)
            if level != 1:
                raise FunctionNotSupportedError(
                    "Only direct neighbours (level 1) are supported",
                    params={"level": level},
                )
            typedefs = self._registry.typedefs
            for name in [*(entity_types or ()), *(relationship_types or ())]:
                self._registry.check_type(name)

            entities: dict[str, EntityDetail] = {}
            relationships: list[Relationship] = []
            for relationship in await self._relationships_for(materializer, guid, None):
                if relationship_types and not any(
                    typedefs.is_type_of(relationship.type_name, t)
                    for t in relationship_types
                ):
                    continue
                neighbour = relationship.other_end(guid)
                if neighbour is None:
                    continue
                if entity_types and not any(
                    typedefs.is_type_of(neighbour.type_name, t) for t in entity_types
                ):
                    continue
                entity = entities.get(neighbour.guid)
                if entity is None:
                    try:
                        entity = await self._entity_detail(
                            materializer, neighbour.guid
                        )
                    except EntityNotKnownError as err:
                        logger.warning(
                            "Dropping neighbour %s of %s: %s",
                            neighbour.guid,
                            guid,
                            err.message,
                        )
                        continue
                if classifications and not any(
                    entity.classification(name) for name in classifications
                ):
                    continue
                entities.setdefault(entity.guid, entity)
                relationships.append(relationship)
            return InstanceGraph(
                entities=tuple(entities.values()), relationships=tuple(relationships)
            )

        return await self._run(operation, work)

    # -- relationships -------------------------------------------------------

    async def get_relationship(self, guid: str) -> Outcome[Relationship]:
        return await self._run("get_relationship", lambda m: self._resolve(m, guid))

    async def is_relationship_known(self, guid: str) -> Outcome[Relationship | None]:
        async def work(materializer: ResultMaterializer) -> Relationship | None:
            try:
                return await self._resolve(materializer, guid)
            except RelationshipNotKnownError as err:
                logger.info("Relationship %s not known: %s", guid, err.message)
                return None

        return await self._run("is_relationship_known", work)

    async def _resolve(
        self, materializer: ResultMaterializer, guid: str
    ) -> Relationship:
        resolver = RelationshipResolver(
            self._registry, materializer, self.metadata_collection_id
        )
        return await resolver.resolve(guid)

    async def find_relationships_by_property(
        self,
        relationship_type: str | None,
        properties: SearchProperties | None = None,
        paging: PagingWindow | None = None,
        as_of_time: datetime | None = None,
    ) -> Outcome[list[Relationship]]:
        request = RelationshipSearch(
            relationship_type=relationship_type,
            properties=properties,
            paging=paging or PagingWindow(),
            as_of_time=as_of_time,
        )

        async def work(materializer: ResultMaterializer) -> list[Relationship]:
            plan = self._translator.translate_relationship_search(request)
            if plan.is_empty:
                return []
            return await materializer.execute_relationships(plan)

        return await self._run("find_relationships_by_property", work)

    async def find_relationships_by_property_value(
        self,
        relationship_type: str | None,
        value: str,
        paging: PagingWindow | None = None,
        as_of_time: datetime | None = None,
    ) -> Outcome[list[Relationship]]:
        operation = "find_relationships_by_property_value"
        window = paging or PagingWindow()

        async def work(materializer: ResultMaterializer) -> list[Relationship]:
            _no_history(as_of_time, operation)
            string_properties: dict[str, list[str]] = {}
            for asset_type in self._translator.relationship_search_asset_types(
                relationship_type
            ):
                string_properties[asset_type] = (
                    await self._transport.get_all_string_properties(asset_type)
                )
            plan = self._translator.translate_relationship_text_search(
                relationship_type, value, string_properties, window
            )
            if plan.is_empty:
                return []
            return await materializer.execute_relationships(plan)

        return await self._run(operation, work)

    # -- type definitions ----------------------------------------------------

    async def get_type_def_by_name(self, name: str) -> Outcome[TypeDef]:
        async def work(_: ResultMaterializer) -> TypeDef:
            typedef = self._registry.typedefs.get(name)
            if typedef is None:
                raise TypeNotMappedError(
                    name, known_types=self._registry.typedefs.names
                )
            return typedef

        return await self._run("get_type_def_by_name", work)

    async def verify_type_def(self, name: str) -> Outcome[TypeVerification]:
        """Report whether *name* is implemented and which attributes are not."""

        async def work(_: ResultMaterializer) -> TypeVerification:
            typedef = self._registry.typedefs.get(name)
            if typedef is None:
                raise TypeNotMappedError(
                    name, known_types=self._registry.typedefs.names
                )
            attributes = self._registry.typedefs.all_attributes(name)
            mapped = self._mapped_attributes(typedef)
            if mapped is None or self._registry.is_unsupported(name):
                return TypeVerification(name, False, tuple(attributes))
            unmapped = tuple(a for a in attributes if a not in mapped)
            if unmapped:
                logger.info("Type %s leaves attributes unmapped: %s", name, unmapped)
            return TypeVerification(name, True, unmapped)

        return await self._run("verify_type_def", work)

    def _mapped_attributes(self, typedef: TypeDef) -> set[str] | None:
        """Abstract attributes some mapping provides, or None if unmapped."""
        if typedef.category is TypeDefCategory.ENTITY:
            mapping = self._registry.mapping_for_abstract_type(typedef.name)
            if mapping is None or mapping.is_sentinel:
                return None
            return set(mapping.abstract_properties)
        if typedef.category is TypeDefCategory.RELATIONSHIP:
            relationships = [
                r
                for r in self._registry.relationship_mappings()
                if r.relationship_type == typedef.name
            ]
            if not relationships:
                return None
            return {p.abstract_property for r in relationships for p in r.properties}
        classifications = self._registry.classification_mappings(typedef.name)
        if not classifications:
            return None
        return {p.abstract_property for c in classifications for p in c.properties}


__all__ = ["MetadataCollection", "TypeVerification"]
