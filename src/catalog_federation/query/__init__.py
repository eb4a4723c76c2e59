"""Abstract query model and its translation into native searches."""

from __future__ import annotations

from .evaluator import condition_matches, evaluate, matches
from .model import (
    ClassificationCondition,
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
from .regex import (
    ClassifiedValue,
    RegexKind,
    classify,
    contains,
    ends_with,
    exact_match,
    starts_with,
)
from .translator import QueryTranslator, SearchPlan

__all__ = [
    # Model
    "ClassificationCondition",
    "EntitySearch",
    "MatchCriteria",
    "PagingWindow",
    "PropertyCondition",
    "PropertyOperator",
    "RelationshipSearch",
    "SearchClassifications",
    "SearchProperties",
    "SequencingOrder",
    # Regex values
    "ClassifiedValue",
    "RegexKind",
    "classify",
    "contains",
    "ends_with",
    "exact_match",
    "starts_with",
    # Translation
    "QueryTranslator",
    "SearchPlan",
    "compile_condition",
    # In-memory evaluation
    "condition_matches",
    "evaluate",
    "matches",
]
