"""Shared fixtures: a small relational + glossary catalog held in memory."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from catalog_federation import (
    FederationConfig,
    InMemoryCatalogTransport,
    MetadataCollection,
    Record,
    Reference,
    default_registry,
)
from catalog_federation.identity import encode_entity_id
from catalog_federation.mapping import MappingRegistry
from catalog_federation.query import QueryTranslator

HOME = "home-1"
CREATED = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_records() -> dict[str, Record]:
    """
    host1 > db1 > sales > orders > (order_id, customer_id)

    ``customer_id`` references ``order_id`` as a foreign key, the table and
    ``customer_id`` are assigned to the glossary term "Customer Id", and
    ``order_id`` carries a detected data class.
    """
    host = Reference(id="host-1", type="host", name="host1")
    db = Reference(id="db-1", type="database", name="db1")
    schema = Reference(id="schema-1", type="database_schema", name="sales")
    table = Reference(id="table-1", type="database_table", name="orders")
    col1 = Reference(id="col-1", type="database_column", name="order_id")
    col2 = Reference(id="col-2", type="database_column", name="customer_id")
    category = Reference(id="cat-1", type="category", name="Customer")
    term = Reference(id="term-1", type="term", name="Customer Id")
    data_class = Reference(id="dc-1", type="data_class", name="Code")
    detection = Reference(id="cls-1", type="classification", name="detection")

    def record(base: Reference, *context: Reference, **properties: Any) -> Record:
        return Record(
            id=base.id,
            type=base.type,
            name=base.name,
            context=context,
            properties={"name": base.name, **properties},
            created_on=CREATED,
        )

    return {
        "host": record(
            host, steward={"_id": "u-1", "_type": "steward", "_name": "Alice"}
        ),
        "db": record(db, host, dbms="DB2", host=host, database_schemas=[schema]),
        "schema": record(schema, host, db, database=db, database_tables=[table]),
        "table": record(
            table,
            host,
            db,
            schema,
            short_description="Customer orders",
            database_schema=schema,
            database_columns=[col1, col2],
            confidentiality_level="confidential",
            assigned_to_terms=[term],
        ),
        "col1": record(
            col1,
            host,
            db,
            schema,
            table,
            position=1,
            unique=True,
            database_table=table,
            defined_primary_key=True,
            defined_foreign_key_referenced_by=[col2],
            detected_classifications=[detection],
        ),
        "col2": record(
            col2,
            host,
            db,
            schema,
            table,
            position=2,
            database_table=table,
            defined_foreign_key_references=[col1],
            assigned_to_terms=[term],
        ),
        "category": record(category, terms=[term]),
        "term": record(
            term,
            short_description="Identifier of a customer",
            long_description="Assigned at first order",
            parent_category=category,
            assigned_assets=[table, col2],
        ),
        "legacy": record(
            Reference(id="term-2", type="term", name="Customer Legacy"),
            status="DEPRECATED",
        ),
        "data_class": record(
            data_class, class_code="code", classifications=[detection]
        ),
        "detection": record(
            detection,
            classifies_asset=col1,
            data_class=data_class,
            confidence_percent=80,
            status="discovered",
        ),
    }


STRING_PROPERTIES = {
    "host": ["name", "short_description"],
    "database": ["name", "short_description", "dbms"],
    "database_schema": ["name", "short_description"],
    "database_table": ["name", "short_description"],
    "database_column": ["name", "short_description"],
    "category": ["name", "short_description"],
    "term": ["name", "short_description", "long_description", "abbreviation"],
    "data_class": ["name", "short_description", "class_code"],
    "classification": ["status", "detection_method"],
}


@pytest.fixture
def records() -> dict[str, Record]:
    return make_records()


@pytest.fixture
def string_properties() -> dict[str, list[str]]:
    return STRING_PROPERTIES


@pytest.fixture
def transport(records: dict[str, Record]) -> InMemoryCatalogTransport:
    return InMemoryCatalogTransport(
        records.values(), string_properties=STRING_PROPERTIES
    )


@pytest.fixture
def registry() -> MappingRegistry:
    return default_registry()


@pytest.fixture
def translator(registry: MappingRegistry) -> QueryTranslator:
    return QueryTranslator(registry)


@pytest.fixture
def home() -> str:
    return HOME


@pytest.fixture
def config() -> FederationConfig:
    return FederationConfig(home_collection_id=HOME, transport_timeout_seconds=1.0)


@pytest.fixture
def collection(
    config: FederationConfig,
    registry: MappingRegistry,
    transport: InMemoryCatalogTransport,
) -> MetadataCollection:
    return MetadataCollection(config, registry, transport)


@pytest.fixture
def guid():
    """Entity identifier of a fixture record: ``guid("table-1")``."""

    by_id = {r.id: r for r in make_records().values()}

    def build(record_id: str, prefix: str | None = None) -> str:
        return encode_entity_id(HOME, by_id[record_id].type, record_id, prefix)

    return build
