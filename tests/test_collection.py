"""End-to-end tests of the federation API over the in-memory catalog."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime, timezone

import pytest

from catalog_federation import (
    BackendCommunicationError,
    ConfigurationError,
    EntityNotKnownError,
    FederationConfig,
    FunctionNotSupportedError,
    InMemoryCatalogTransport,
    MalformedIdentityError,
    MetadataCollection,
    PagingWindow,
    Record,
    RelationshipNotKnownError,
    SearchProperties,
    SequencingOrder,
    TypeNotMappedError,
    TypeNotSupportedError,
)
from catalog_federation.identity import encode_entity_id
from catalog_federation.mapping import MappingRegistry
from catalog_federation.query import exact_match

YESTERDAY = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _names(entities) -> list[str]:
    return [e.properties.get("name") or e.properties["displayName"] for e in entities]


class ProjectingTransport(InMemoryCatalogTransport):
    """Populates only the properties a fetch asks for, as the real catalog does."""

    def __init__(self, records) -> None:
        super().__init__(records)
        self.projections: list[tuple[str, tuple[str, ...]]] = []

    async def get_record_by_id(
        self, record_id: str, properties: Sequence[str] = ()
    ) -> Record | None:
        self.projections.append((record_id, tuple(properties)))
        record = await super().get_record_by_id(record_id, properties)
        if record is None:
            return None
        wanted = set(properties)
        return record.model_copy(
            update={
                "properties": {
                    k: v for k, v in record.properties.items() if k in wanted
                }
            }
        )


# ══════════════════════════════════════════════════════════════════════
# Construction and call scope
# ══════════════════════════════════════════════════════════════════════


class TestConstruction:
    def test_base_type_must_match(
        self, registry: MappingRegistry, transport: InMemoryCatalogTransport
    ) -> None:
        config = FederationConfig("home-1", base_type="Asset")
        with pytest.raises(ConfigurationError):
            MetadataCollection(config, registry, transport)

    def test_identity(self, collection: MetadataCollection, home: str) -> None:
        assert collection.metadata_collection_id == home
        assert collection.repository_name == "catalog"


class TestCallScope:
    @pytest.mark.asyncio
    async def test_failure_names_operation_and_home(
        self, collection: MetadataCollection, home: str
    ) -> None:
        outcome = await collection.find_entities(
            "RelationalTable", as_of_time=YESTERDAY
        )
        assert not outcome
        assert isinstance(outcome.error, FunctionNotSupportedError)
        payload = outcome.to_dict()
        assert payload["success"] is False
        assert payload["operation"] == "find_entities"
        assert payload["params"]["home_collection_id"] == home

    @pytest.mark.asyncio
    async def test_configuration_errors_propagate(
        self, collection: MetadataCollection, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def broken(*args, **kwargs):
            raise ConfigurationError("broken mapping")

        monkeypatch.setattr(collection.translator, "translate_entity_search", broken)
        with pytest.raises(ConfigurationError):
            await collection.find_entities("RelationalTable")

    @pytest.mark.asyncio
    async def test_cache_is_not_shared_between_calls(
        self,
        collection: MetadataCollection,
        transport: InMemoryCatalogTransport,
        guid,
    ) -> None:
        await collection.get_entity_detail(guid("table-1"))
        await collection.get_entity_detail(guid("table-1"))
        assert transport.fetched == ["table-1", "table-1"]


# ══════════════════════════════════════════════════════════════════════
# Entity searches
# ══════════════════════════════════════════════════════════════════════


class TestFindEntities:
    @pytest.mark.asyncio
    async def test_subtypes_are_searched(self, collection: MetadataCollection) -> None:
        outcome = await collection.find_entities("SchemaAttribute")
        assert _names(outcome.unwrap()) == ["orders", "order_id", "customer_id"]

    @pytest.mark.asyncio
    async def test_by_property(self, collection: MetadataCollection) -> None:
        outcome = await collection.find_entities_by_property(
            "RelationalColumn", SearchProperties.from_values({"name": ".*_id"})
        )
        assert _names(outcome.unwrap()) == ["order_id", "customer_id"]

    @pytest.mark.asyncio
    async def test_by_qualified_name(self, collection: MetadataCollection) -> None:
        value = "DATABASE_COLUMN::host1::db1::sales::orders::order_id"
        properties = SearchProperties.from_values({"qualifiedName": exact_match(value)})
        outcome = await collection.find_entities_by_property(None, properties)
        assert _names(outcome.unwrap()) == ["order_id"]

    @pytest.mark.asyncio
    async def test_deprecated_terms_are_hidden(
        self, collection: MetadataCollection
    ) -> None:
        outcome = await collection.find_entities("GlossaryTerm")
        assert _names(outcome.unwrap()) == ["Customer Id"]

    @pytest.mark.asyncio
    async def test_by_classification(self, collection: MetadataCollection) -> None:
        outcome = await collection.find_entities_by_classification(
            "RelationalColumn", "PrimaryKey"
        )
        assert _names(outcome.unwrap()) == ["order_id"]

    @pytest.mark.asyncio
    async def test_unknown_classification(
        self, collection: MetadataCollection
    ) -> None:
        outcome = await collection.find_entities_by_classification(
            "RelationalColumn", "Host"
        )
        assert isinstance(outcome.error, TypeNotMappedError)
        assert outcome.error.operation == "find_entities_by_classification"

    @pytest.mark.asyncio
    async def test_unsupported_type(self, collection: MetadataCollection) -> None:
        outcome = await collection.find_entities("Collection")
        assert isinstance(outcome.error, TypeNotSupportedError)


class TestFindByPropertyValue:
    @pytest.mark.asyncio
    async def test_text_search(
        self, collection: MetadataCollection, transport: InMemoryCatalogTransport
    ) -> None:
        outcome = await collection.find_entities_by_property_value(
            "RelationalColumn", ".*cust.*"
        )
        assert _names(outcome.unwrap()) == ["customer_id"]
        assert transport.calls[:2] == ["get_all_string_properties", "get_version"]

    @pytest.mark.asyncio
    async def test_qualified_name_is_rerouted(
        self, collection: MetadataCollection, transport: InMemoryCatalogTransport
    ) -> None:
        outcome = await collection.find_entities_by_property_value(
            "GlossaryTerm", "TERM::Customer Id"
        )
        assert _names(outcome.unwrap()) == ["Customer Id"]
        assert "get_all_string_properties" not in transport.calls

    @pytest.mark.asyncio
    async def test_foreign_name_never_reaches_the_backend(
        self, collection: MetadataCollection, transport: InMemoryCatalogTransport
    ) -> None:
        outcome = await collection.find_entities_by_property_value(
            None, exact_match("extern:DATABASE_TABLE::x")
        )
        assert outcome.unwrap() == []
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_general_regex(self, collection: MetadataCollection) -> None:
        outcome = await collection.find_entities_by_property_value(
            "RelationalColumn", "cust(omer)?"
        )
        assert isinstance(outcome.error, FunctionNotSupportedError)


# ══════════════════════════════════════════════════════════════════════
# Entity look-up
# ══════════════════════════════════════════════════════════════════════


class TestEntityLookup:
    @pytest.mark.asyncio
    async def test_get_entity_detail(
        self, collection: MetadataCollection, guid
    ) -> None:
        entity = (await collection.get_entity_detail(guid("table-1", "tt"))).unwrap()
        assert entity.type_name == "RelationalTableType"
        assert entity.properties["displayName"] == "orders"

    @pytest.mark.asyncio
    async def test_other_home(self, collection: MetadataCollection) -> None:
        guid = encode_entity_id("home-2", "database_table", "table-1")
        outcome = await collection.get_entity_detail(guid)
        assert isinstance(outcome.error, EntityNotKnownError)
        assert "home-2" in outcome.error.params["reason"]
        assert isinstance(outcome.error.__cause__, MalformedIdentityError)

    @pytest.mark.asyncio
    async def test_type_mismatch(
        self, collection: MetadataCollection, home: str
    ) -> None:
        guid = encode_entity_id(home, "database_column", "table-1")
        outcome = await collection.get_entity_detail(guid)
        assert isinstance(outcome.error, EntityNotKnownError)

    @pytest.mark.asyncio
    async def test_unmapped_prefix(
        self, collection: MetadataCollection, home: str
    ) -> None:
        guid = encode_entity_id(home, "database_table", "table-1", "zz")
        outcome = await collection.get_entity_detail(guid)
        assert isinstance(outcome.error, TypeNotMappedError)

    @pytest.mark.asyncio
    async def test_default_asset_type(
        self, collection: MetadataCollection, home: str
    ) -> None:
        guid = encode_entity_id(home, "main_object", "x-1")
        outcome = await collection.get_entity_detail(guid)
        assert isinstance(outcome.error, TypeNotSupportedError)

    @pytest.mark.asyncio
    async def test_is_entity_known(self, collection: MetadataCollection, guid) -> None:
        known = await collection.is_entity_known(guid("col-1"))
        assert known.unwrap() is not None
        unknown = await collection.is_entity_known("nonsense")
        assert unknown.success
        assert unknown.value is None


# ══════════════════════════════════════════════════════════════════════
# Relationships and neighbourhoods
# ══════════════════════════════════════════════════════════════════════


class TestRelationships:
    @pytest.mark.asyncio
    async def test_relationships_for_entity(
        self, collection: MetadataCollection, guid
    ) -> None:
        outcome = await collection.get_relationships_for_entity(guid("table-1"))
        assert len(outcome.unwrap()) == 3

    @pytest.mark.asyncio
    async def test_filtered_and_paged(
        self, collection: MetadataCollection, guid
    ) -> None:
        everything = (
            await collection.get_relationships_for_entity(guid("table-1"))
        ).unwrap()
        paging = PagingWindow(1, 1, sequencing_order=SequencingOrder.GUID)
        (second,) = (
            await collection.get_relationships_for_entity(
                guid("table-1"), paging=paging
            )
        ).unwrap()
        assert second.guid == sorted(r.guid for r in everything)[1]

        outcome = await collection.get_relationships_for_entity(
            guid("table-1"), "SemanticAssignment"
        )
        assert [r.type_name for r in outcome.unwrap()] == ["SemanticAssignment"]

    @pytest.mark.asyncio
    async def test_unknown_relationship_type(
        self, collection: MetadataCollection, guid
    ) -> None:
        outcome = await collection.get_relationships_for_entity(guid("table-1"), "Host")
        assert isinstance(outcome.error, TypeNotMappedError)

    @pytest.mark.asyncio
    async def test_get_relationship(self, collection: MetadataCollection, guid) -> None:
        relationships = (
            await collection.get_relationships_for_entity(guid("col-2"), "ForeignKey")
        ).unwrap()
        (foreign_key,) = relationships
        resolved = (await collection.get_relationship(foreign_key.guid)).unwrap()
        assert resolved == foreign_key

    @pytest.mark.asyncio
    async def test_relationship_not_known(self, collection: MetadataCollection) -> None:
        outcome = await collection.get_relationship("nonsense")
        assert isinstance(outcome.error, RelationshipNotKnownError)
        known = await collection.is_relationship_known("nonsense")
        assert known.success and known.value is None

    @pytest.mark.asyncio
    async def test_find_relationships_by_property(
        self, collection: MetadataCollection, transport: InMemoryCatalogTransport
    ) -> None:
        outcome = await collection.find_relationships_by_property(
            "SemanticAssignment", paging=PagingWindow(page_size=1)
        )
        assert len(outcome.unwrap()) == 1
        assert len(transport.searches) == 1

    @pytest.mark.asyncio
    async def test_find_relationships_by_property_value(
        self, collection: MetadataCollection
    ) -> None:
        outcome = await collection.find_relationships_by_property_value(
            "DataClassAssignment", "discov.*"
        )
        (assignment,) = outcome.unwrap()
        assert assignment.properties["status"] == "discovered"


class TestNeighborhood:
    @pytest.mark.asyncio
    async def test_entity_type_filter(
        self, collection: MetadataCollection, guid
    ) -> None:
        outcome = await collection.get_entity_neighborhood(
            guid("table-1"), entity_types=["SchemaType"]
        )
        graph = outcome.unwrap()
        assert sorted(e.type_name for e in graph.entities) == [
            "RelationalDBSchemaType",
            "RelationalTableType",
        ]
        assert len(graph.relationships) == 2

    @pytest.mark.asyncio
    async def test_classification_filter(
        self, collection: MetadataCollection, guid
    ) -> None:
        outcome = await collection.get_entity_neighborhood(
            guid("col-2"), classifications=["PrimaryKey"]
        )
        graph = outcome.unwrap()
        assert [e.properties["name"] for e in graph.entities] == ["order_id"]

    @pytest.mark.asyncio
    async def test_unmappable_neighbour_is_dropped(
        self,
        records: dict[str, Record],
        registry: MappingRegistry,
        config: FederationConfig,
        guid,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        term = records["term"]
        records["term"] = term.model_copy(
            update={
                "name": None,
                "properties": {
                    k: v for k, v in term.properties.items() if k != "name"
                },
            }
        )
        collection = MetadataCollection(
            config, registry, InMemoryCatalogTransport(records.values())
        )
        with caplog.at_level(logging.WARNING, logger="catalog_federation"):
            outcome = await collection.get_entity_neighborhood(guid("table-1"))
        graph = outcome.unwrap()
        assert sorted(e.type_name for e in graph.entities) == [
            "RelationalDBSchemaType",
            "RelationalTableType",
        ]
        assert guid("term-1") not in {e.guid for e in graph.entities}
        assert "SemanticAssignment" not in [r.type_name for r in graph.relationships]
        assert len(graph.relationships) == 2
        assert "Dropping neighbour" in caplog.text

    @pytest.mark.asyncio
    async def test_only_one_level(self, collection: MetadataCollection, guid) -> None:
        outcome = await collection.get_entity_neighborhood(guid("table-1"), level=2)
        assert isinstance(outcome.error, FunctionNotSupportedError)


# ══════════════════════════════════════════════════════════════════════
# Type definitions
# ══════════════════════════════════════════════════════════════════════


class TestTypeDefs:
    @pytest.mark.asyncio
    async def test_get_type_def(self, collection: MetadataCollection) -> None:
        typedef = (await collection.get_type_def_by_name("RelationalColumn")).unwrap()
        assert typedef.supertype == "TabularColumn"
        outcome = await collection.get_type_def_by_name("RelationalColum")
        assert isinstance(outcome.error, TypeNotMappedError)
        assert outcome.error.suggestions[0] == "RelationalColumn"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("name", "supported", "unmapped"),
        [
            ("RelationalColumn", True, ("additionalProperties",)),
            ("ForeignKey", True, ("name", "description", "confidence")),
            ("DataClassAssignment", True, ()),
            ("Confidentiality", True, ()),
            ("Collection", False, ("qualifiedName", "additionalProperties")),
        ],
    )
    async def test_verify_type_def(
        self,
        collection: MetadataCollection,
        name: str,
        supported: bool,
        unmapped: tuple[str, ...],
    ) -> None:
        verification = (await collection.verify_type_def(name)).unwrap()
        assert verification.supported is supported
        assert verification.unmapped_attributes[: len(unmapped)] == unmapped

    @pytest.mark.asyncio
    async def test_sentinel_type_is_not_supported(
        self, collection: MetadataCollection
    ) -> None:
        verification = (await collection.verify_type_def("Asset")).unwrap()
        assert not verification.supported


# ══════════════════════════════════════════════════════════════════════
# Projected fetches
# ══════════════════════════════════════════════════════════════════════


class TestProjectedFetches:
    @pytest.fixture
    def projecting(self, records: dict[str, Record]) -> ProjectingTransport:
        return ProjectingTransport(records.values())

    @pytest.fixture
    def strict(
        self,
        config: FederationConfig,
        registry: MappingRegistry,
        projecting: ProjectingTransport,
    ) -> MetadataCollection:
        return MetadataCollection(config, registry, projecting)

    @pytest.mark.asyncio
    async def test_entity_detail_requests_mapped_properties(
        self,
        strict: MetadataCollection,
        collection: MetadataCollection,
        projecting: ProjectingTransport,
        registry: MappingRegistry,
        guid,
    ) -> None:
        detail = (await strict.get_entity_detail(guid("col-1"))).unwrap()
        assert detail.properties["position"] == 1
        assert detail.properties["isUnique"] is True
        assert detail.classification("PrimaryKey") is not None
        assert detail == (await collection.get_entity_detail(guid("col-1"))).unwrap()

        column = registry.mapping_for_abstract_type("RelationalColumn")
        assert column is not None
        assert projecting.projections == [
            ("col-1", tuple(column.projected_properties))
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("record_id", ["table-1", "col-1", "dc-1"])
    async def test_relationships_for_entity(
        self,
        strict: MetadataCollection,
        collection: MetadataCollection,
        guid,
        record_id: str,
    ) -> None:
        relationships = (
            await strict.get_relationships_for_entity(guid(record_id))
        ).unwrap()
        assert relationships
        assert (
            relationships
            == (await collection.get_relationships_for_entity(guid(record_id))).unwrap()
        )

    @pytest.mark.asyncio
    async def test_relationship_round_trip(
        self, strict: MetadataCollection, guid
    ) -> None:
        relationships = (
            await strict.get_relationships_for_entity(guid("col-1"))
        ).unwrap()
        assert {"ForeignKey", "DataClassAssignment"} <= {
            r.type_name for r in relationships
        }
        for relationship in relationships:
            resolved = (await strict.get_relationship(relationship.guid)).unwrap()
            assert resolved == relationship


# ══════════════════════════════════════════════════════════════════════
# Backend failures
# ══════════════════════════════════════════════════════════════════════


class TestBackendFailures:
    @pytest.mark.asyncio
    async def test_transport_error(
        self, collection: MetadataCollection, transport: InMemoryCatalogTransport
    ) -> None:
        transport.fail("search", RuntimeError("connection reset"))
        outcome = await collection.find_entities("RelationalTable")
        assert isinstance(outcome.error, BackendCommunicationError)
        assert outcome.error.transport_operation == "search"
        assert outcome.error.operation == "find_entities"

    @pytest.mark.asyncio
    async def test_timeout(
        self,
        registry: MappingRegistry,
        transport: InMemoryCatalogTransport,
        guid,
        home: str,
    ) -> None:
        transport.delay = 0.2
        collection = MetadataCollection(
            FederationConfig(home, transport_timeout_seconds=0.05), registry, transport
        )
        outcome = await collection.get_entity_detail(guid("table-1"))
        assert isinstance(outcome.error, BackendCommunicationError)
        assert outcome.error.transport_operation == "get_record_by_id"

    @pytest.mark.asyncio
    async def test_cancellation_propagates(
        self,
        registry: MappingRegistry,
        transport: InMemoryCatalogTransport,
        guid,
        home: str,
    ) -> None:
        transport.delay = 5.0
        collection = MetadataCollection(
            FederationConfig(home, transport_timeout_seconds=None), registry, transport
        )
        task = asyncio.ensure_future(collection.get_entity_detail(guid("table-1")))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
