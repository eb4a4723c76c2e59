"""
Abstract search requests -> native search plans.

A request fans out into one native search per candidate mapping. Each
abstract condition is folded against the mapping into a native condition,
a nested group, or a constant::

    True   - the condition holds for every record of the mapping
    False  - it holds for none of them
    Node   - a native condition the backend evaluates

Groups combine constants by their match criteria, so a mapping whose
conditions fold to ``False`` never reaches the backend.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Union

from ..exceptions import FunctionNotSupportedError
from ..identity.qualified_names import (
    SEGMENT_SEPARATOR,
    parse_head,
    parse_qualified_name,
)
from ..mapping.classifications import ClassificationMapping, ClassificationSignal
from ..mapping.entities import TypeMapping
from ..mapping.properties import QUALIFIED_NAME, ComplexPropertyKind
from ..mapping.registry import MappingRegistry
from ..mapping.relationships import RelationshipKind, RelationshipMapping
from ..native import (
    Condition,
    ConditionSet,
    NativeOperator,
    NativeSearch,
    Node,
    Sorting,
)
from ..records import CREATED_PROPERTY, ID_PROPERTY, MODIFIED_PROPERTY, NAME_PROPERTY
from .evaluator import evaluate
from .model import (
    EntitySearch,
    MatchCriteria,
    PagingWindow,
    PropertyCondition,
    PropertyOperator,
    RelationshipSearch,
    SearchClassifications,
    SearchProperties,
    SequencingOrder,
)
from .operators import compile_condition
from .qualified import fold_qualified_name
from .regex import ClassifiedValue, RegexKind, classify

logger = logging.getLogger("catalog_federation.translator")

Folded = Union[Node, bool]
Resolver = Callable[[PropertyCondition, bool], tuple[Folded, bool]]

DEFAULT_TEXT_SEARCH_EXCLUSIONS: Mapping[str, tuple[str, ...]] = {
    "11.7.0.2": ("long_description",),
}

_TIMESTAMP_SORTS: dict[SequencingOrder, Sorting] = {
    SequencingOrder.CREATION_DATE_RECENT: Sorting(CREATED_PROPERTY, ascending=False),
    SequencingOrder.CREATION_DATE_OLDEST: Sorting(CREATED_PROPERTY),
    SequencingOrder.LAST_UPDATE_RECENT: Sorting(MODIFIED_PROPERTY, ascending=False),
    SequencingOrder.LAST_UPDATE_OLDEST: Sorting(MODIFIED_PROPERTY),
}


@dataclass
class SearchPlan:
    """
    Native searches plus the global window the materializer applies.

    ``skip`` leading results are discarded and at most ``page_size``
    (0 = unbounded) are kept, counted across all searches in order.
    """

    searches: list[NativeSearch] = field(default_factory=list)
    page_size: int = 0
    skip: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.searches

    def __len__(self) -> int:
        return len(self.searches)


# ── Folding helpers ─────────────────────────────────────────────


def combine(criteria: MatchCriteria, folded: Sequence[Folded]) -> Folded:
    """Combine folded children under a match criterion."""
    if criteria is MatchCriteria.ALL:
        if any(f is False for f in folded):
            return False
        nodes = [f for f in folded if not isinstance(f, bool)]
        if not nodes:
            return True
        return nodes[0] if len(nodes) == 1 else ConditionSet(nodes)
    if criteria is MatchCriteria.ANY:
        if any(f is True for f in folded):
            return True
        nodes = [f for f in folded if not isinstance(f, bool)]
        if not nodes:
            return False
        return nodes[0] if len(nodes) == 1 else ConditionSet(nodes, match_any=True)
    # NONE
    if any(f is True for f in folded):
        return False
    nodes = [f for f in folded if not isinstance(f, bool)]
    if not nodes:
        return True
    return ConditionSet(nodes, match_any=True, negated=True)


def fold(
    properties: SearchProperties, resolve: Resolver, conjunctive: bool = True
) -> tuple[Folded, bool]:
    """
    Fold a property group with *resolve* for its leaves.

    ``conjunctive`` tells the resolver whether an over-inclusive
    approximation of a leaf keeps the whole group over-inclusive. Returns
    the folded group and whether any leaf was approximated.
    """
    if properties.is_empty:
        return True, False
    criteria = properties.match_criteria
    inner = conjunctive and (
        criteria is MatchCriteria.ALL
        or (criteria is MatchCriteria.ANY and len(properties.conditions) == 1)
    )
    folded: list[Folded] = []
    approximate = False
    for condition in properties.conditions:
        if condition.nested is not None:
            node, approx = fold(condition.nested, resolve, inner)
        else:
            node, approx = resolve(condition, inner)
        folded.append(node)
        approximate = approximate or approx
    return combine(criteria, folded), approximate


def _unmapped(condition: PropertyCondition) -> Folded:
    return condition.operator is PropertyOperator.IS_NULL


def _check_regex(
    properties: SearchProperties | None, operation: str | None
) -> None:
    if properties is None:
        return
    for leaf in properties.leaves():
        if leaf.operator is PropertyOperator.LIKE and isinstance(leaf.value, str):
            if not classify(leaf.value).is_literal:
                raise FunctionNotSupportedError(
                    f"Regular expression {leaf.value!r} has no native equivalent",
                    operation=operation,
                    params={"property": leaf.property, "value": leaf.value},
                )


def _string_literal(condition: PropertyCondition) -> ClassifiedValue | None:
    if not isinstance(condition.value, str):
        return None
    if condition.operator is PropertyOperator.EQ:
        return ClassifiedValue(RegexKind.EXACT, condition.value)
    if condition.operator is PropertyOperator.LIKE:
        return classify(condition.value)
    return None


class QueryTranslator:
    """
    Translates abstract entity and relationship searches into a
    :class:`SearchPlan` against one :class:`MappingRegistry`.

    Usage::

        translator = QueryTranslator(registry)
        plan = translator.translate_entity_search(
            EntitySearch("RelationalColumn", properties=...)
        )
    """

    def __init__(
        self,
        registry: MappingRegistry,
        *,
        foreign_name_prefix: str | None = "extern:",
        text_search_exclusions: Mapping[str, Sequence[str]] | None = None,
    ) -> None:
        self._registry = registry
        self._foreign_prefix = foreign_name_prefix
        self._exclusions = dict(
            DEFAULT_TEXT_SEARCH_EXCLUSIONS
            if text_search_exclusions is None
            else text_search_exclusions
        )

    @property
    def registry(self) -> MappingRegistry:
        return self._registry

    # -- entity searches -----------------------------------------------------

    def candidate_mappings(
        self, request: EntitySearch, *, operation: str | None = None
    ) -> list[TypeMapping]:
        """Mappings a request searches, after the identity short-circuit."""
        narrowed = self._short_circuit(request, operation)
        if narrowed is not None:
            return narrowed
        return self._registry.expand_to_searchable_subtypes(
            request.type_name, request.subtype_names, operation=operation
        )

    def translate_entity_search(
        self, request: EntitySearch, *, operation: str | None = None
    ) -> SearchPlan:
        """
        Translate an entity search into native searches.

        Raises:
            FunctionNotSupportedError: ``as_of_time`` set, a general regex,
                an approximation outside a conjunctive group, or a
                sequencing property that is not simple-mapped.
            TypeNotMappedError / TypeNotSupportedError: From type expansion.
        """
        self._fail_fast(request.as_of_time, request.properties, operation)
        searches: list[NativeSearch] = []
        for mapping in self.candidate_mappings(request, operation=operation):
            search = self._entity_search(
                mapping, request.properties, request.classifications, request.paging
            )
            if search is not None:
                searches.append(search)
        return self._plan(searches, request.paging)

    def qualified_name_properties(self, value: str) -> SearchProperties | None:
        """
        Conditions a free-text value is re-routed to, if it names an identity.

        Raises:
            FunctionNotSupportedError: *value* is a general regex.
        """
        classified = classify(value)
        if not classified.is_literal:
            raise FunctionNotSupportedError(
                f"Regular expression {value!r} has no native equivalent",
                params={"value": value},
            )
        literal = classified.literal or ""
        foreign = self._is_foreign(literal)
        if not foreign and parse_qualified_name(literal, partial=True) is None:
            return None
        return SearchProperties(
            (PropertyCondition(QUALIFIED_NAME, PropertyOperator.LIKE, value),),
            MatchCriteria.ALL,
        )

    def translate_text_search(
        self,
        request: EntitySearch,
        value: str,
        string_properties: Mapping[str, Sequence[str]],
        version: str | None = None,
        *,
        operation: str | None = None,
    ) -> SearchPlan:
        """
        Match *value* against every searchable string property.

        ``string_properties`` lists, per backend asset type, the properties
        the transport reports as strings. Values naming an identity should
        be re-routed through :meth:`qualified_name_properties` first.
        """
        self._fail_fast(request.as_of_time, None, operation)
        classified = classify(value)
        if not classified.is_literal:
            raise FunctionNotSupportedError(
                f"Regular expression {value!r} has no native equivalent",
                operation=operation,
                params={"value": value},
            )
        excluded = set(self._exclusions.get(version or "", ()))
        searches: list[NativeSearch] = []
        for mapping in self.candidate_mappings(request, operation=operation):
            reported = set(string_properties.get(mapping.asset_type, ()))
            paths = [
                m.backend_property
                for m in mapping.simple_properties
                if m.backend_property in reported and m.backend_property not in excluded
            ]
            paths.extend(
                m.search_path
                for m in mapping.complex_properties
                if m.search_path is not None
            )
            if not paths:
                logger.info(
                    "Skipping %s: no string property to match", mapping.abstract_type
                )
                continue
            node = combine(
                MatchCriteria.ANY,
                [compile_condition(p, PropertyOperator.LIKE, value) for p in paths],
            )
            search = self._assemble(
                mapping, node, request.classifications, request.paging
            )
            if search is not None:
                searches.append(search)
        return self._plan(searches, request.paging)

    def _fail_fast(
        self,
        as_of_time: object,
        properties: SearchProperties | None,
        operation: str | None,
    ) -> None:
        if as_of_time is not None:
            raise FunctionNotSupportedError(
                "Historical queries are not supported", operation=operation
            )
        _check_regex(properties, operation)

    def _is_foreign(self, literal: str) -> bool:
        return bool(self._foreign_prefix) and literal.startswith(
            self._foreign_prefix or ""
        )

    # -- identity short-circuit ----------------------------------------------

    def _short_circuit(
        self, request: EntitySearch, operation: str | None
    ) -> list[TypeMapping] | None:
        """
        Mappings named by a lone qualified-name condition, or ``None``.

        ``None`` means the request does not qualify and the normal subtype
        expansion applies.
        """
        properties = request.properties
        if properties is None or len(properties.conditions) != 1:
            return None
        if properties.match_criteria is MatchCriteria.NONE:
            return None
        condition = properties.conditions[0]
        if condition.nested is not None or condition.property != QUALIFIED_NAME:
            return None
        classified = _string_literal(condition)
        if classified is None or not classified.is_literal:
            return None
        literal = classified.literal or ""

        if request.type_name is not None:
            self._registry.check_type(request.type_name, operation=operation)
        for name in request.subtype_names or ():
            self._registry.check_type(name, operation=operation)

        if self._is_foreign(literal):
            logger.info("Qualified name %r is owned by another repository", literal)
            return []

        candidates: list[TypeMapping] | None = None
        if classified.kind is RegexKind.EXACT:
            parsed = parse_qualified_name(literal)
            if parsed is not None:
                found = self._registry.mapping_for_backend_type(
                    parsed.asset_type, parsed.prefix
                )
                candidates = [found] if found is not None else []
        elif classified.kind is RegexKind.ENDS_WITH:
            parsed = parse_qualified_name(literal, partial=True)
            if parsed is not None:
                candidates = (
                    self._registry.mappings_for_backend_type(parsed.asset_type) or None
                )
        elif classified.kind is RegexKind.STARTS_WITH:
            head, *rest = literal.split(SEGMENT_SEPARATOR)
            identity = parse_head(head) if rest else None
            if identity is not None:
                found = self._registry.mapping_for_backend_type(*identity)
                candidates = [found] if found is not None else []

        if candidates is None:
            return None
        narrowed = [m for m in candidates if self._accepts(m, request)]
        logger.info(
            "Qualified name %r narrowed the search to %s",
            literal,
            [m.abstract_type for m in narrowed],
        )
        return narrowed

    def _accepts(self, mapping: TypeMapping, request: EntitySearch) -> bool:
        typedefs = self._registry.typedefs
        if mapping.is_sentinel or not mapping.searchable:
            return False
        if mapping.abstract_type == self._registry.base_type:
            return False
        if request.type_name is not None and not typedefs.is_type_of(
            mapping.abstract_type, request.type_name
        ):
            return False
        allowed = request.subtype_names or ()
        return not allowed or any(
            typedefs.is_type_of(mapping.abstract_type, name) for name in allowed
        )

    # -- per-mapping search --------------------------------------------------

    def _entity_search(
        self,
        mapping: TypeMapping,
        properties: SearchProperties | None,
        classifications: SearchClassifications | None,
        paging: PagingWindow,
    ) -> NativeSearch | None:
        node: Folded = True
        approximate = False
        if properties is not None:
            node, approximate = fold(properties, self._property_resolver(mapping))
        search = self._assemble(mapping, node, classifications, paging)
        if search is not None and approximate:
            search.residual = properties
        return search

    def _assemble(
        self,
        mapping: TypeMapping,
        node: Folded,
        classifications: SearchClassifications | None,
        paging: PagingWindow,
    ) -> NativeSearch | None:
        if node is False:
            logger.info("Skipping %s: conditions never match", mapping.abstract_type)
            return None
        classified = self._fold_classifications(mapping, classifications)
        if classified is False:
            logger.info(
                "Skipping %s: classifications never match", mapping.abstract_type
            )
            return None

        where = ConditionSet(list(mapping.type_conditions))
        if isinstance(node, ConditionSet) and not node.match_any and not node.negated:
            where.conditions.extend(node.conditions)
        elif not isinstance(node, bool):
            where.add(node)
        if not isinstance(classified, bool):
            where.add(classified)

        return NativeSearch(
            types=[mapping.asset_type],
            conditions=where,
            properties=mapping.projected_properties,
            sorts=self._sorts(mapping, paging),
            mapping=mapping,
        )

    def _property_resolver(self, mapping: TypeMapping) -> Resolver:
        def resolve(
            condition: PropertyCondition, conjunctive: bool
        ) -> tuple[Folded, bool]:
            name = condition.property or ""
            simple = mapping.simple_property(name)
            if simple is not None:
                return (
                    compile_condition(
                        simple.backend_property, condition.operator, condition.value
                    ),
                    False,
                )
            complex_ = mapping.complex_property(name)
            if complex_ is None:
                return _unmapped(condition), False
            if complex_.kind is ComplexPropertyKind.LITERAL:
                return (
                    evaluate(condition.operator, complex_.literal, condition.value),
                    False,
                )
            if complex_.kind is ComplexPropertyKind.REFERENCE_NAME:
                path = complex_.search_path
                if path is None:
                    return _unmapped(condition), False
                node = compile_condition(path, condition.operator, condition.value)
                return node, False
            return self._resolve_qualified_name(mapping, condition, conjunctive)

        return resolve

    def _resolve_qualified_name(
        self, mapping: TypeMapping, condition: PropertyCondition, conjunctive: bool
    ) -> tuple[Folded, bool]:
        if condition.operator is PropertyOperator.NOT_NULL:
            return True, False
        if condition.operator is PropertyOperator.IS_NULL:
            return False, False
        classified = _string_literal(condition)
        if classified is None:
            raise FunctionNotSupportedError(
                f"Operator {condition.operator.value!r} is not supported on "
                f"'{condition.property}'",
                params={"property": condition.property},
            )
        literal = classified.literal or ""
        if self._is_foreign(literal):
            return False, False
        folded = fold_qualified_name(mapping, classified.kind, literal)
        if folded.approximate and not conjunctive:
            raise FunctionNotSupportedError(
                f"Qualified name match {condition.value!r} on "
                f"'{mapping.abstract_type}' can only be approximated and is not "
                "allowed outside an all-match group",
                params={"value": condition.value, "type": mapping.abstract_type},
            )
        return folded.node, folded.approximate

    def _fold_classifications(
        self, mapping: TypeMapping, classifications: SearchClassifications | None
    ) -> Folded:
        if classifications is None or classifications.is_empty:
            return True
        folded: list[Folded] = []
        for condition in classifications.conditions:
            self._registry.check_classification(condition.name)
            classification = mapping.classification(condition.name)
            if classification is None:
                folded.append(False)
                continue
            group = ConditionSet([_presence(classification)])
            if condition.properties is not None:
                node, _ = fold(
                    condition.properties, _classification_resolver(classification)
                )
                if node is False:
                    folded.append(False)
                    continue
                if not isinstance(node, bool):
                    group.add(node)
            folded.append(group)
        return combine(classifications.match_criteria, folded)

    # -- ordering and paging -------------------------------------------------

    def _sorts(self, mapping: TypeMapping, paging: PagingWindow) -> list[Sorting]:
        order = paging.sequencing_order
        by_id = Sorting(ID_PROPERTY)
        if order in _TIMESTAMP_SORTS:
            return [_TIMESTAMP_SORTS[order], by_id]
        if paging.sequencing_property is None:
            return [by_id]
        simple = mapping.simple_property(paging.sequencing_property)
        if simple is None:
            raise FunctionNotSupportedError(
                f"Cannot sequence '{mapping.abstract_type}' by "
                f"'{paging.sequencing_property}'",
                params={
                    "type": mapping.abstract_type,
                    "sequencing_property": paging.sequencing_property,
                },
            )
        ascending = order is not SequencingOrder.PROPERTY_DESCENDING
        return [Sorting(simple.backend_property, ascending), by_id]

    @staticmethod
    def _plan(searches: list[NativeSearch], paging: PagingWindow) -> SearchPlan:
        if len(searches) == 1 and searches[0].residual is None:
            searches[0].begin = paging.start
            searches[0].page_size = paging.page_size
            return SearchPlan(searches, paging.page_size, 0)
        for search in searches:
            search.begin = 0
            search.page_size = 0 if search.residual is not None else paging.end
        return SearchPlan(searches, paging.page_size, paging.start)

    # -- relationship searches -----------------------------------------------

    def translate_relationship_search(
        self, request: RelationshipSearch, *, operation: str | None = None
    ) -> SearchPlan:
        """
        One native search per relationship mapping of the requested type.

        Every search enumerates records from offset 0 without a backend page
        limit: a record may yield several relationships, so only the
        materializer can apply the window.
        """
        self._fail_fast(request.as_of_time, request.properties, operation)
        searches: list[NativeSearch] = []
        for mapping in self._registry.relationship_mappings_for(
            request.relationship_type, operation=operation
        ):
            node: Folded = True
            if request.properties is not None:
                node, _ = fold(request.properties, _relationship_resolver(mapping))
            search = self._relationship_native_search(mapping, node)
            if search is not None:
                searches.append(search)
        return self._relationship_plan(searches, request.paging)

    def translate_relationship_text_search(
        self,
        relationship_type: str | None,
        value: str,
        string_properties: Mapping[str, Sequence[str]],
        paging: PagingWindow,
        *,
        operation: str | None = None,
    ) -> SearchPlan:
        """Match *value* against the string properties of relationship records."""
        if not classify(value).is_literal:
            raise FunctionNotSupportedError(
                f"Regular expression {value!r} has no native equivalent",
                operation=operation,
                params={"value": value},
            )
        searches: list[NativeSearch] = []
        for mapping in self._registry.relationship_mappings_for(
            relationship_type, operation=operation
        ):
            reported = set(string_properties.get(mapping.search_asset_type, ()))
            paths = [
                p.backend_property
                for p in mapping.properties
                if p.backend_property in reported
            ]
            if not paths:
                continue
            node = combine(
                MatchCriteria.ANY,
                [compile_condition(p, PropertyOperator.LIKE, value) for p in paths],
            )
            search = self._relationship_native_search(mapping, node)
            if search is not None:
                searches.append(search)
        return self._relationship_plan(searches, paging)

    def relationship_search_asset_types(
        self, relationship_type: str | None, *, operation: str | None = None
    ) -> list[str]:
        return list(
            dict.fromkeys(
                m.search_asset_type
                for m in self._registry.relationship_mappings_for(
                    relationship_type, operation=operation
                )
                if m.is_relationship_level
            )
        )

    def _relationship_native_search(
        self, mapping: RelationshipMapping, node: Folded
    ) -> NativeSearch | None:
        if node is False:
            return None
        where = ConditionSet()
        properties = [NAME_PROPERTY]
        if mapping.kind is RelationshipKind.REFERENCE:
            navigation = mapping.proxy_one.navigation_property or ""
            where.add(Condition(navigation, NativeOperator.IS_NOT_NULL))
            properties.append(navigation)
        elif mapping.kind is RelationshipKind.RELATIONSHIP_LEVEL:
            properties.extend(mapping.level_properties)
        if isinstance(node, ConditionSet) and not node.match_any and not node.negated:
            where.conditions.extend(node.conditions)
        elif not isinstance(node, bool):
            where.add(node)
        return NativeSearch(
            types=[mapping.search_asset_type],
            conditions=where,
            properties=list(dict.fromkeys(properties)),
            sorts=[Sorting(ID_PROPERTY)],
            relationship_mapping=mapping,
        )

    @staticmethod
    def _relationship_plan(
        searches: list[NativeSearch], paging: PagingWindow
    ) -> SearchPlan:
        for search in searches:
            search.begin = 0
            search.page_size = 0
        return SearchPlan(searches, paging.page_size, paging.start)


def _presence(classification: ClassificationMapping) -> Condition:
    if classification.signal is ClassificationSignal.EQUALS:
        return Condition(
            classification.backend_property, NativeOperator.EQ, classification.value
        )
    return Condition(classification.backend_property, NativeOperator.IS_NOT_NULL)


def _classification_resolver(classification: ClassificationMapping) -> Resolver:
    def resolve(
        condition: PropertyCondition, conjunctive: bool
    ) -> tuple[Folded, bool]:
        backend = classification.backend_property_for(condition.property or "")
        if backend is None:
            return _unmapped(condition), False
        return compile_condition(backend, condition.operator, condition.value), False

    return resolve


def _relationship_resolver(mapping: RelationshipMapping) -> Resolver:
    def resolve(
        condition: PropertyCondition, conjunctive: bool
    ) -> tuple[Folded, bool]:
        backend = mapping.backend_property_for(condition.property or "")
        if backend is None:
            return _unmapped(condition), False
        return compile_condition(backend, condition.operator, condition.value), False

    return resolve


__all__ = [
    "DEFAULT_TEXT_SEARCH_EXCLUSIONS",
    "QueryTranslator",
    "SearchPlan",
    "combine",
    "fold",
]
