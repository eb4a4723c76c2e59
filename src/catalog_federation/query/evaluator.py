"""
In-memory evaluation of abstract conditions.

Used for properties the backend cannot evaluate (literal mappings) and for
re-checking approximated conditions on materialized instances.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from .model import MatchCriteria, PropertyCondition, PropertyOperator, SearchProperties
from .regex import RegexKind, classify


def _like(actual: Any, pattern: Any) -> bool:
    if actual is None:
        return False
    if not isinstance(pattern, str):
        return bool(actual == pattern)
    values = actual if isinstance(actual, (list, tuple)) else [actual]
    classified = classify(pattern)
    for value in values:
        text = str(value)
        literal = classified.literal or ""
        if classified.kind is RegexKind.EXACT and text == literal:
            return True
        if classified.kind is RegexKind.STARTS_WITH and text.startswith(literal):
            return True
        if classified.kind is RegexKind.ENDS_WITH and text.endswith(literal):
            return True
        if classified.kind is RegexKind.CONTAINS and literal in text:
            return True
        if classified.kind is RegexKind.REGEX and re.fullmatch(pattern, text):
            return True
    return False


def _ordered(actual: Any, expected: Any, test: str) -> bool:
    if actual is None or expected is None:
        return False
    try:
        if test == "gt":
            return bool(actual > expected)
        if test == "gte":
            return bool(actual >= expected)
        if test == "lt":
            return bool(actual < expected)
        return bool(actual <= expected)
    except TypeError:
        return False


def evaluate(operator: PropertyOperator, actual: Any, expected: Any) -> bool:
    """Evaluate one operator against a concrete value."""
    if operator is PropertyOperator.EQ:
        return bool(actual == expected)
    if operator is PropertyOperator.NEQ:
        return bool(actual != expected)
    if operator is PropertyOperator.LIKE:
        return _like(actual, expected)
    if operator is PropertyOperator.IS_NULL:
        return actual is None
    if operator is PropertyOperator.NOT_NULL:
        return actual is not None
    if operator is PropertyOperator.IN:
        options = expected if isinstance(expected, (list, tuple, set)) else [expected]
        return actual in options
    return _ordered(actual, expected, operator.value)


def condition_matches(values: Mapping[str, Any], condition: PropertyCondition) -> bool:
    if condition.nested is not None:
        return matches(values, condition.nested)
    if condition.property is None:
        return False
    return evaluate(condition.operator, values.get(condition.property), condition.value)


def matches(values: Mapping[str, Any], properties: SearchProperties) -> bool:
    """True if *values* satisfy *properties* under its match criteria."""
    if properties.is_empty:
        return True
    results = (condition_matches(values, c) for c in properties.conditions)
    if properties.match_criteria is MatchCriteria.ALL:
        return all(results)
    if properties.match_criteria is MatchCriteria.ANY:
        return any(results)
    return not any(results)
