"""
Built-in mapping table for the relational and glossary parts of the catalog.

The table is a fixed list; the registry is built from it once at start-up.
"""

from __future__ import annotations

from ..native import Condition, NativeOperator
from ..typedefs import TypeDefStore, default_typedef_store
from .classifications import ClassificationMapping
from .entities import SUPERTYPE_SENTINEL, TypeMapping
from .properties import (
    QUALIFIED_NAME,
    ComplexPropertyKind,
    ComplexPropertyMapping,
    SimplePropertyMapping,
)
from .registry import MappingRegistry
from .relationships import ProxyMapping, RelationshipKind, RelationshipMapping

DEFAULT_ASSET_TYPE = "main_object"
UNSUPPORTED_TYPES = ("Collection",)

SCHEMA_TYPE_PREFIX = "st"
TABLE_TYPE_PREFIX = "tt"

QN = ComplexPropertyMapping(QUALIFIED_NAME, ComplexPropertyKind.QUALIFIED_NAME)
OWNER = ComplexPropertyMapping(
    "owner", ComplexPropertyKind.REFERENCE_NAME, backend_property="steward"
)
NAME = SimplePropertyMapping("name", "name", required=True)
DISPLAY_NAME = SimplePropertyMapping("name", "displayName", required=True)
DESCRIPTION = SimplePropertyMapping("short_description", "description")

# -- classifications ---------------------------------------------------------

PRIMARY_KEY = ClassificationMapping("PrimaryKey", "defined_primary_key")
CONFIDENTIALITY = ClassificationMapping(
    "Confidentiality",
    "confidentiality_level",
    properties=(
        SimplePropertyMapping("confidentiality_level", "level"),
        SimplePropertyMapping("confidentiality_notes", "notes"),
    ),
)

# -- relationships -----------------------------------------------------------

DATA_CONTENT_FOR_DATA_SET = RelationshipMapping(
    "DataContentForDataSet",
    RelationshipKind.REFERENCE,
    ProxyMapping("database", navigation_property="database_schemas"),
    ProxyMapping("database_schema", navigation_property="database"),
)
ASSET_SCHEMA_TYPE = RelationshipMapping(
    "AssetSchemaType",
    RelationshipKind.SELF,
    ProxyMapping("database_schema"),
    ProxyMapping("database_schema", prefix=SCHEMA_TYPE_PREFIX),
)
SCHEMA_TABLES = RelationshipMapping(
    "AttributeForSchema",
    RelationshipKind.REFERENCE,
    ProxyMapping(
        "database_schema",
        prefix=SCHEMA_TYPE_PREFIX,
        navigation_property="database_tables",
    ),
    ProxyMapping("database_table", navigation_property="database_schema"),
)
TABLE_SCHEMA_TYPE = RelationshipMapping(
    "SchemaAttributeType",
    RelationshipKind.SELF,
    ProxyMapping("database_table"),
    ProxyMapping("database_table", prefix=TABLE_TYPE_PREFIX),
)
TABLE_COLUMNS = RelationshipMapping(
    "AttributeForSchema",
    RelationshipKind.REFERENCE,
    ProxyMapping(
        "database_table",
        prefix=TABLE_TYPE_PREFIX,
        navigation_property="database_columns",
    ),
    ProxyMapping("database_column", navigation_property="database_table"),
)
FOREIGN_KEY = RelationshipMapping(
    "ForeignKey",
    RelationshipKind.REFERENCE,
    ProxyMapping(
        "database_column", navigation_property="defined_foreign_key_references"
    ),
    ProxyMapping(
        "database_column", navigation_property="defined_foreign_key_referenced_by"
    ),
)
COLUMN_SEMANTIC_ASSIGNMENT = RelationshipMapping(
    "SemanticAssignment",
    RelationshipKind.REFERENCE,
    ProxyMapping("database_column", navigation_property="assigned_to_terms"),
    ProxyMapping("term", navigation_property="assigned_assets"),
)
TABLE_SEMANTIC_ASSIGNMENT = RelationshipMapping(
    "SemanticAssignment",
    RelationshipKind.REFERENCE,
    ProxyMapping("database_table", navigation_property="assigned_to_terms"),
    ProxyMapping("term", navigation_property="assigned_assets"),
)
TERM_CATEGORIZATION = RelationshipMapping(
    "TermCategorization",
    RelationshipKind.REFERENCE,
    ProxyMapping("category", navigation_property="terms"),
    ProxyMapping("term", navigation_property="parent_category"),
)
CATEGORY_HIERARCHY_LINK = RelationshipMapping(
    "CategoryHierarchyLink",
    RelationshipKind.REFERENCE,
    ProxyMapping("category", navigation_property="subcategories"),
    ProxyMapping("category", navigation_property="parent_category"),
)
DATA_CLASS_ASSIGNMENT = RelationshipMapping(
    "DataClassAssignment",
    RelationshipKind.RELATIONSHIP_LEVEL,
    ProxyMapping(
        "database_column",
        navigation_property="classifies_asset",
        link_property="detected_classifications",
    ),
    ProxyMapping(
        "data_class",
        navigation_property="data_class",
        link_property="classifications",
    ),
    relationship_level_type="classification",
    properties=(
        SimplePropertyMapping("confidence_percent", "confidence"),
        SimplePropertyMapping("status", "status"),
        SimplePropertyMapping("detection_method", "method"),
    ),
)

# -- entities ----------------------------------------------------------------

_HOST_PATH = ("host.name",)
_DATABASE_PATH = ("database.host.name", "database.name")
_SCHEMA_PATH = (
    "database_schema.database.host.name",
    "database_schema.database.name",
    "database_schema.name",
)
_TABLE_PATH = (
    "database_table.database_schema.database.host.name",
    "database_table.database_schema.database.name",
    "database_table.database_schema.name",
    "database_table.name",
)


def default_mappings() -> list[TypeMapping]:
    return [
        TypeMapping("Asset", SUPERTYPE_SENTINEL, searchable=False),
        TypeMapping("SchemaType", SUPERTYPE_SENTINEL, searchable=False),
        TypeMapping(
            "Host",
            "host",
            simple_properties=(NAME, DESCRIPTION),
            complex_properties=(QN, OWNER),
        ),
        TypeMapping(
            "Database",
            "database",
            simple_properties=(
                NAME,
                DESCRIPTION,
                SimplePropertyMapping("dbms", "type"),
                SimplePropertyMapping("dbms_version", "version"),
                SimplePropertyMapping("dbms_instance", "instance"),
            ),
            complex_properties=(QN, OWNER),
            relationships=(DATA_CONTENT_FOR_DATA_SET,),
            context_properties=_HOST_PATH,
        ),
        TypeMapping(
            "DeployedDatabaseSchema",
            "database_schema",
            simple_properties=(NAME, DESCRIPTION),
            complex_properties=(QN, OWNER),
            relationships=(DATA_CONTENT_FOR_DATA_SET, ASSET_SCHEMA_TYPE),
            context_properties=_DATABASE_PATH,
        ),
        TypeMapping(
            "RelationalDBSchemaType",
            "database_schema",
            prefix=SCHEMA_TYPE_PREFIX,
            simple_properties=(DISPLAY_NAME,),
            complex_properties=(
                QN,
                ComplexPropertyMapping(
                    "usage", ComplexPropertyKind.LITERAL, literal="relational"
                ),
            ),
            relationships=(ASSET_SCHEMA_TYPE, SCHEMA_TABLES),
            context_properties=_DATABASE_PATH,
        ),
        TypeMapping(
            "RelationalTable",
            "database_table",
            simple_properties=(NAME, DESCRIPTION),
            complex_properties=(QN,),
            classifications=(CONFIDENTIALITY,),
            relationships=(SCHEMA_TABLES, TABLE_SCHEMA_TYPE, TABLE_SEMANTIC_ASSIGNMENT),
            context_properties=_SCHEMA_PATH,
        ),
        TypeMapping(
            "RelationalTableType",
            "database_table",
            prefix=TABLE_TYPE_PREFIX,
            simple_properties=(DISPLAY_NAME,),
            complex_properties=(
                QN,
                ComplexPropertyMapping(
                    "usage", ComplexPropertyKind.LITERAL, literal="relational table"
                ),
            ),
            relationships=(TABLE_SCHEMA_TYPE, TABLE_COLUMNS),
            context_properties=_SCHEMA_PATH,
        ),
        TypeMapping(
            "RelationalColumn",
            "database_column",
            simple_properties=(
                NAME,
                DESCRIPTION,
                SimplePropertyMapping("position", "position"),
                SimplePropertyMapping("minimum_length", "minimumLength"),
                SimplePropertyMapping("length", "length"),
                SimplePropertyMapping("fraction", "fraction"),
                SimplePropertyMapping("allows_null_values", "isNullable"),
                SimplePropertyMapping("unique", "isUnique"),
            ),
            complex_properties=(QN,),
            classifications=(PRIMARY_KEY, CONFIDENTIALITY),
            relationships=(
                TABLE_COLUMNS,
                FOREIGN_KEY,
                COLUMN_SEMANTIC_ASSIGNMENT,
                DATA_CLASS_ASSIGNMENT,
            ),
            context_properties=_TABLE_PATH,
        ),
        TypeMapping(
            "GlossaryCategory",
            "category",
            simple_properties=(DISPLAY_NAME, DESCRIPTION),
            complex_properties=(QN,),
            relationships=(CATEGORY_HIERARCHY_LINK, TERM_CATEGORIZATION),
            context_properties=None,
        ),
        TypeMapping(
            "GlossaryTerm",
            "term",
            simple_properties=(
                DISPLAY_NAME,
                SimplePropertyMapping("short_description", "summary"),
                SimplePropertyMapping("long_description", "description"),
                SimplePropertyMapping("abbreviation", "abbreviation"),
                SimplePropertyMapping("example", "examples"),
                SimplePropertyMapping("usage", "usage"),
            ),
            complex_properties=(QN,),
            relationships=(
                TERM_CATEGORIZATION,
                COLUMN_SEMANTIC_ASSIGNMENT,
                TABLE_SEMANTIC_ASSIGNMENT,
            ),
            context_properties=None,
            type_conditions=(
                Condition("status", NativeOperator.NE, "DEPRECATED"),
            ),
        ),
        TypeMapping(
            "DataClass",
            "data_class",
            simple_properties=(
                NAME,
                DESCRIPTION,
                SimplePropertyMapping("class_code", "dataClassCode"),
            ),
            complex_properties=(QN,),
            relationships=(DATA_CLASS_ASSIGNMENT,),
        ),
    ]


def default_registry(typedefs: TypeDefStore | None = None) -> MappingRegistry:
    return MappingRegistry(
        typedefs or default_typedef_store(),
        default_mappings(),
        unsupported_types=UNSUPPORTED_TYPES,
    )
