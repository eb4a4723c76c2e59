"""Tests for translating abstract searches into native search plans."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from catalog_federation.exceptions import (
    FunctionNotSupportedError,
    InvalidParameterError,
    TypeNotMappedError,
)
from catalog_federation.mapping import MappingRegistry
from catalog_federation.native import Condition, ConditionSet, NativeOperator, Sorting
from catalog_federation.query import (
    ClassificationCondition,
    EntitySearch,
    MatchCriteria,
    PagingWindow,
    PropertyCondition,
    PropertyOperator,
    QueryTranslator,
    RelationshipSearch,
    SearchClassifications,
    SearchProperties,
    SequencingOrder,
    ends_with,
    exact_match,
)
from catalog_federation.query.translator import combine

EQ = NativeOperator.EQ
TABLE_QN = "DATABASE_TABLE::host1::db1::sales::orders"


def _qualified_name(value: str, **kwargs) -> SearchProperties:
    return SearchProperties(
        (PropertyCondition("qualifiedName", PropertyOperator.LIKE, value),), **kwargs
    )


def _where(plan, index: int = 0) -> list:
    return plan.searches[index].conditions.conditions


# ══════════════════════════════════════════════════════════════════════
# Folding constants
# ══════════════════════════════════════════════════════════════════════


class TestCombine:
    def test_all(self) -> None:
        node = Condition("a", EQ, 1)
        assert combine(MatchCriteria.ALL, [True, node]) == node
        assert combine(MatchCriteria.ALL, [False, node]) is False
        assert combine(MatchCriteria.ALL, [True, True]) is True

    def test_any(self) -> None:
        node = Condition("a", EQ, 1)
        assert combine(MatchCriteria.ANY, [False, node]) == node
        assert combine(MatchCriteria.ANY, [True, node]) is True
        assert combine(MatchCriteria.ANY, [False]) is False

    def test_none(self) -> None:
        node = Condition("a", EQ, 1)
        assert combine(MatchCriteria.NONE, [True, node]) is False
        assert combine(MatchCriteria.NONE, [False]) is True
        negated = combine(MatchCriteria.NONE, [node])
        assert isinstance(negated, ConditionSet)
        assert negated.negated and negated.match_any


# ══════════════════════════════════════════════════════════════════════
# Qualified-name short-circuit
# ══════════════════════════════════════════════════════════════════════


class TestShortCircuit:
    def test_exact_identity_selects_one_mapping(
        self, translator: QueryTranslator
    ) -> None:
        request = EntitySearch(properties=_qualified_name(exact_match(TABLE_QN)))
        plan = translator.translate_entity_search(request)
        assert len(plan) == 1
        assert plan.searches[0].types == ["database_table"]
        assert _where(plan) == [
            Condition("database_schema.database.host.name", EQ, "host1"),
            Condition("database_schema.database.name", EQ, "db1"),
            Condition("database_schema.name", EQ, "sales"),
            Condition("name", EQ, "orders"),
        ]

    def test_type_mismatch_skips_expansion(
        self,
        translator: QueryTranslator,
        registry: MappingRegistry,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def boom(*args, **kwargs):
            raise AssertionError("subtype expansion must not run")

        monkeypatch.setattr(registry, "expand_to_searchable_subtypes", boom)
        request = EntitySearch(
            "RelationalColumn", properties=_qualified_name(exact_match(TABLE_QN))
        )
        assert translator.translate_entity_search(request).is_empty

    def test_foreign_name_matches_nothing(self, translator: QueryTranslator) -> None:
        request = EntitySearch(properties=_qualified_name(exact_match("extern:x")))
        assert translator.candidate_mappings(request) == []

    def test_ends_with_selects_every_prefix(self, translator: QueryTranslator) -> None:
        request = EntitySearch(
            properties=_qualified_name(ends_with("DATABASE_TABLE::sales::orders"))
        )
        names = [m.abstract_type for m in translator.candidate_mappings(request)]
        assert names == ["RelationalTable", "RelationalTableType"]

    def test_negated_match_is_not_short_circuited(
        self, translator: QueryTranslator
    ) -> None:
        properties = _qualified_name(
            exact_match(TABLE_QN), match_criteria=MatchCriteria.NONE
        )
        plan = translator.translate_entity_search(
            EntitySearch("RelationalTable", properties=properties)
        )
        (node,) = _where(plan)
        assert isinstance(node, ConditionSet)
        assert node.negated and node.match_any
        assert len(node.conditions[0].conditions) == 4

    def test_unknown_type_is_still_reported(self, translator: QueryTranslator) -> None:
        request = EntitySearch(
            "Nope", properties=_qualified_name(exact_match(TABLE_QN))
        )
        with pytest.raises(TypeNotMappedError):
            translator.translate_entity_search(request, operation="findEntities")


# ══════════════════════════════════════════════════════════════════════
# Entity searches
# ══════════════════════════════════════════════════════════════════════


class TestEntitySearch:
    def test_approximation_sets_residual(self, translator: QueryTranslator) -> None:
        """A term's ancestry has no fixed depth: only its name is pushed down."""
        properties = _qualified_name(exact_match("TERM::Customer Id"))
        plan = translator.translate_entity_search(
            EntitySearch(
                "GlossaryTerm", properties=properties, paging=PagingWindow(0, 10)
            )
        )
        search = plan.searches[0]
        assert search.residual == properties
        assert (search.begin, search.page_size) == (0, 0)
        assert (plan.skip, plan.page_size) == (0, 10)
        assert _where(plan) == [
            Condition("status", NativeOperator.NE, "DEPRECATED"),
            Condition("name", EQ, "Customer Id"),
        ]

    def test_approximation_outside_all_group(self, translator: QueryTranslator) -> None:
        properties = SearchProperties(
            (
                PropertyCondition(
                    "qualifiedName",
                    PropertyOperator.LIKE,
                    exact_match("TERM::Customer Id"),
                ),
                PropertyCondition("displayName", PropertyOperator.LIKE, "Customer"),
            ),
            MatchCriteria.ANY,
        )
        with pytest.raises(FunctionNotSupportedError):
            translator.translate_entity_search(
                EntitySearch("GlossaryTerm", properties=properties)
            )

    def test_general_regex_fails_fast(self, translator: QueryTranslator) -> None:
        properties = SearchProperties.from_values({"name": "ord[ae]rs"})
        with pytest.raises(FunctionNotSupportedError) as exc_info:
            translator.translate_entity_search(
                EntitySearch("RelationalTable", properties=properties),
                operation="findEntitiesByProperty",
            )
        assert exc_info.value.operation == "findEntitiesByProperty"

    def test_history_is_not_supported(self, translator: QueryTranslator) -> None:
        request = EntitySearch(
            "RelationalTable", as_of_time=datetime(2024, 1, 1, tzinfo=timezone.utc)
        )
        with pytest.raises(FunctionNotSupportedError):
            translator.translate_entity_search(request)

    def test_literal_property(self, translator: QueryTranslator) -> None:
        """Only the schema type's constant usage matches."""
        properties = SearchProperties(
            (PropertyCondition("usage", PropertyOperator.EQ, "relational"),)
        )
        plan = translator.translate_entity_search(
            EntitySearch("SchemaType", properties=properties)
        )
        assert [s.types for s in plan.searches] == [["database_schema"]]
        assert _where(plan) == []

    def test_reference_name_property(self, translator: QueryTranslator) -> None:
        properties = SearchProperties.from_values({"owner": "Alice"})
        plan = translator.translate_entity_search(
            EntitySearch("Host", properties=properties)
        )
        assert _where(plan) == [Condition("steward.name", EQ, "Alice")]

    @pytest.mark.parametrize(
        ("operator", "empty"),
        [(PropertyOperator.EQ, True), (PropertyOperator.IS_NULL, False)],
    )
    def test_unmapped_property(
        self, translator: QueryTranslator, operator: PropertyOperator, empty: bool
    ) -> None:
        properties = SearchProperties(
            (PropertyCondition("additionalProperties", operator, "x"),)
        )
        plan = translator.translate_entity_search(
            EntitySearch("RelationalTable", properties=properties)
        )
        assert plan.is_empty is empty


class TestClassifications:
    def test_classification_with_properties(self, translator: QueryTranslator) -> None:
        level = SearchProperties(
            (PropertyCondition("level", PropertyOperator.EQ, "confidential"),)
        )
        classifications = SearchClassifications(
            (ClassificationCondition("Confidentiality", level),)
        )
        plan = translator.translate_entity_search(
            EntitySearch("RelationalTable", classifications=classifications)
        )
        assert _where(plan) == [
            ConditionSet(
                [
                    Condition("confidentiality_level", NativeOperator.IS_NOT_NULL),
                    Condition("confidentiality_level", EQ, "confidential"),
                ]
            )
        ]

    def test_unclassifiable_mapping_is_skipped(
        self, translator: QueryTranslator
    ) -> None:
        classifications = SearchClassifications.from_names(["PrimaryKey"])
        plan = translator.translate_entity_search(
            EntitySearch("SchemaAttribute", classifications=classifications)
        )
        assert [s.types for s in plan.searches] == [["database_column"]]

    def test_unknown_classification(self, translator: QueryTranslator) -> None:
        classifications = SearchClassifications.from_names(["Nope"])
        with pytest.raises(TypeNotMappedError):
            translator.translate_entity_search(
                EntitySearch("RelationalTable", classifications=classifications)
            )


# ══════════════════════════════════════════════════════════════════════
# Ordering and paging
# ══════════════════════════════════════════════════════════════════════


class TestPaging:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"start": -1},
            {"page_size": -5},
            {"sequencing_order": SequencingOrder.PROPERTY_ASCENDING},
        ],
    )
    def test_invalid_window(self, kwargs: dict) -> None:
        with pytest.raises(InvalidParameterError):
            PagingWindow(**kwargs)

    def test_single_search_is_paged_natively(
        self, translator: QueryTranslator
    ) -> None:
        plan = translator.translate_entity_search(
            EntitySearch("RelationalColumn", paging=PagingWindow(3, 4))
        )
        assert (plan.searches[0].begin, plan.searches[0].page_size) == (3, 4)
        assert (plan.skip, plan.page_size) == (0, 4)

    def test_fan_out_fetches_leading_results(
        self, translator: QueryTranslator
    ) -> None:
        plan = translator.translate_entity_search(
            EntitySearch("SchemaAttribute", paging=PagingWindow(5, 10))
        )
        assert len(plan) == 2
        assert all((s.begin, s.page_size) == (0, 15) for s in plan.searches)
        assert (plan.skip, plan.page_size) == (5, 10)

    def test_timestamp_sort(self, translator: QueryTranslator) -> None:
        paging = PagingWindow(sequencing_order=SequencingOrder.CREATION_DATE_RECENT)
        plan = translator.translate_entity_search(
            EntitySearch("RelationalTable", paging=paging)
        )
        assert plan.searches[0].sorts == [
            Sorting("created_on", ascending=False),
            Sorting("_id"),
        ]

    def test_property_sort(self, translator: QueryTranslator) -> None:
        paging = PagingWindow(
            sequencing_property="name",
            sequencing_order=SequencingOrder.PROPERTY_DESCENDING,
        )
        plan = translator.translate_entity_search(
            EntitySearch("RelationalTable", paging=paging)
        )
        assert plan.searches[0].sorts[0] == Sorting("name", ascending=False)

    def test_computed_property_cannot_be_sorted(
        self, translator: QueryTranslator
    ) -> None:
        paging = PagingWindow(
            sequencing_property="qualifiedName",
            sequencing_order=SequencingOrder.PROPERTY_ASCENDING,
        )
        with pytest.raises(FunctionNotSupportedError):
            translator.translate_entity_search(
                EntitySearch("RelationalTable", paging=paging)
            )


# ══════════════════════════════════════════════════════════════════════
# Free-text searches
# ══════════════════════════════════════════════════════════════════════


class TestTextSearch:
    def test_matches_reported_string_properties(
        self, translator: QueryTranslator, string_properties
    ) -> None:
        plan = translator.translate_text_search(
            EntitySearch("GlossaryTerm"), "Customer.*", string_properties
        )
        status, group = _where(plan)
        assert status == Condition("status", NativeOperator.NE, "DEPRECATED")
        assert group.match_any
        assert [c.property for c in group.conditions] == [
            "name",
            "short_description",
            "long_description",
            "abbreviation",
        ]
        assert group.conditions[0].operator is NativeOperator.STARTS_WITH

    def test_version_exclusions(
        self, translator: QueryTranslator, string_properties
    ) -> None:
        plan = translator.translate_text_search(
            EntitySearch("GlossaryTerm"), "Customer", string_properties, "11.7.0.2"
        )
        _, group = _where(plan)
        assert "long_description" not in [c.property for c in group.conditions]

    def test_identity_values_are_rerouted(self, translator: QueryTranslator) -> None:
        assert translator.qualified_name_properties("orders") is None
        rerouted = translator.qualified_name_properties(TABLE_QN)
        assert rerouted is not None
        assert rerouted.conditions[0].property == "qualifiedName"
        assert translator.qualified_name_properties("extern:abc") is not None

    def test_regex_value(self, translator: QueryTranslator) -> None:
        with pytest.raises(FunctionNotSupportedError):
            translator.qualified_name_properties("a|b")


# ══════════════════════════════════════════════════════════════════════
# Relationship searches
# ══════════════════════════════════════════════════════════════════════


class TestRelationshipSearch:
    def test_reference_links(self, translator: QueryTranslator) -> None:
        plan = translator.translate_relationship_search(
            RelationshipSearch("TermCategorization", paging=PagingWindow(2, 3))
        )
        search = plan.searches[0]
        assert search.types == ["category"]
        assert search.conditions.conditions == [
            Condition("terms", NativeOperator.IS_NOT_NULL)
        ]
        assert search.properties == ["name", "terms"]
        assert (search.begin, search.page_size) == (0, 0)
        assert (plan.skip, plan.page_size) == (2, 3)

    def test_relationship_level_properties(self, translator: QueryTranslator) -> None:
        properties = SearchProperties(
            (PropertyCondition("confidence", PropertyOperator.GT, 50),)
        )
        plan = translator.translate_relationship_search(
            RelationshipSearch("DataClassAssignment", properties=properties)
        )
        search = plan.searches[0]
        assert search.types == ["classification"]
        assert search.conditions.conditions == [
            Condition("confidence_percent", NativeOperator.GT, 50)
        ]
        assert "classifies_asset" in search.properties

    def test_every_mapping_of_the_type(self, translator: QueryTranslator) -> None:
        plan = translator.translate_relationship_search(
            RelationshipSearch("SemanticAssignment")
        )
        assert [s.types for s in plan.searches] == [
            ["database_table"],
            ["database_column"],
        ]

    def test_text_search(
        self, translator: QueryTranslator, string_properties
    ) -> None:
        plan = translator.translate_relationship_text_search(
            "DataClassAssignment", "discov.*", string_properties, PagingWindow()
        )
        (group,) = plan.searches[0].conditions.conditions
        assert group.match_any
        assert [c.property for c in group.conditions] == [
            "status",
            "detection_method",
        ]

    def test_entity_type_is_rejected(self, translator: QueryTranslator) -> None:
        with pytest.raises(TypeNotMappedError):
            translator.translate_relationship_search(RelationshipSearch("Host"))
