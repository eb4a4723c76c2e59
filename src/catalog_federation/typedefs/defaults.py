"""Standard abstract type hierarchy served by the default catalog mappings."""

from __future__ import annotations

from .store import TypeDef, TypeDefCategory, TypeDefStore

E = TypeDefCategory.ENTITY
R = TypeDefCategory.RELATIONSHIP
C = TypeDefCategory.CLASSIFICATION

ROOT_TYPE = "OpenMetadataRoot"
BASE_TYPE = "Referenceable"


def default_typedefs() -> list[TypeDef]:
    return [
        # Entities
        TypeDef(ROOT_TYPE, E),
        TypeDef(BASE_TYPE, E, ROOT_TYPE, ("qualifiedName", "additionalProperties")),
        TypeDef("Asset", E, BASE_TYPE, ("name", "description", "owner")),
        TypeDef("Infrastructure", E, "Asset"),
        TypeDef("ITInfrastructure", E, "Infrastructure"),
        TypeDef("Host", E, "ITInfrastructure"),
        TypeDef("DataStore", E, "Asset"),
        TypeDef("Database", E, "DataStore", ("type", "version", "instance")),
        TypeDef("DataSet", E, "Asset"),
        TypeDef("DeployedDatabaseSchema", E, "DataSet"),
        TypeDef("SchemaElement", E, BASE_TYPE),
        TypeDef("SchemaType", E, "SchemaElement", ("displayName", "author", "usage")),
        TypeDef("ComplexSchemaType", E, "SchemaType"),
        TypeDef("RelationalDBSchemaType", E, "ComplexSchemaType"),
        TypeDef("RelationalTableType", E, "ComplexSchemaType"),
        TypeDef(
            "SchemaAttribute", E, "SchemaElement", ("name", "position", "description")
        ),
        TypeDef("RelationalTable", E, "SchemaAttribute"),
        TypeDef("TabularColumn", E, "SchemaAttribute"),
        TypeDef(
            "RelationalColumn",
            E,
            "TabularColumn",
            ("minimumLength", "length", "fraction", "isNullable", "isUnique"),
        ),
        TypeDef("Glossary", E, BASE_TYPE, ("displayName", "description")),
        TypeDef("GlossaryCategory", E, BASE_TYPE, ("displayName", "description")),
        TypeDef(
            "GlossaryTerm",
            E,
            BASE_TYPE,
            (
                "displayName",
                "summary",
                "description",
                "examples",
                "abbreviation",
                "usage",
            ),
        ),
        TypeDef("DataClass", E, BASE_TYPE, ("name", "description", "dataClassCode")),
        TypeDef("Collection", E, BASE_TYPE, ("name", "description")),
        # Relationships
        TypeDef("DataContentForDataSet", R, end_types=("Asset", "DataSet")),
        TypeDef("AssetSchemaType", R, end_types=("Asset", "SchemaType")),
        TypeDef(
            "AttributeForSchema",
            R,
            attributes=("position",),
            end_types=("ComplexSchemaType", "SchemaAttribute"),
        ),
        TypeDef("SchemaAttributeType", R, end_types=("SchemaAttribute", "SchemaType")),
        TypeDef(
            "ForeignKey",
            R,
            attributes=("name", "description", "confidence"),
            end_types=("RelationalColumn", "RelationalColumn"),
        ),
        TypeDef(
            "SemanticAssignment",
            R,
            attributes=("description", "status"),
            end_types=(BASE_TYPE, "GlossaryTerm"),
        ),
        TypeDef(
            "TermCategorization",
            R,
            attributes=("description",),
            end_types=("GlossaryCategory", "GlossaryTerm"),
        ),
        TypeDef(
            "CategoryHierarchyLink",
            R,
            end_types=("GlossaryCategory", "GlossaryCategory"),
        ),
        TypeDef(
            "DataClassAssignment",
            R,
            attributes=("confidence", "status", "method"),
            end_types=(BASE_TYPE, "DataClass"),
        ),
        # Classifications
        TypeDef(
            "PrimaryKey",
            C,
            attributes=("name",),
            valid_entity_types=("RelationalColumn",),
        ),
        TypeDef(
            "Confidentiality",
            C,
            attributes=("level", "notes"),
            valid_entity_types=(BASE_TYPE,),
        ),
    ]


def default_typedef_store() -> TypeDefStore:
    return TypeDefStore(default_typedefs())
