"""
Push-down of qualified-name conditions.

A qualified name is computed from a record's ancestry, so a condition on it
becomes conditions on the mapping's context properties and the record name.
When the ancestry depth is not fixed, or a contains-match spans a segment
separator, only an over-inclusive approximation can be pushed down and the
result is marked ``approximate`` so the caller re-checks it in memory.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..identity.qualified_names import SEGMENT_SEPARATOR, parse_qualified_name
from ..mapping.entities import TypeMapping
from ..native import Condition, ConditionSet, NativeOperator, Node
from ..records import NAME_PROPERTY
from .regex import RegexKind


@dataclass(frozen=True)
class QualifiedNameFold:
    """``node`` is a condition tree, or ``True`` / ``False`` when constant."""

    node: Node | bool
    approximate: bool = False


_ALWAYS = QualifiedNameFold(True)
_NEVER = QualifiedNameFold(False)


def _all(conditions: list[Condition]) -> Node | bool:
    if not conditions:
        return True
    if len(conditions) == 1:
        return conditions[0]
    return ConditionSet(list(conditions))


def fold_qualified_name(
    mapping: TypeMapping, kind: RegexKind, literal: str
) -> QualifiedNameFold:
    """Fold ``qualifiedName <kind> literal`` for records of *mapping*."""
    if kind is RegexKind.EXACT:
        return _exact(mapping, literal)
    if kind is RegexKind.STARTS_WITH:
        return _starts_with(mapping, literal)
    if kind is RegexKind.ENDS_WITH:
        return _ends_with(mapping, literal)
    if kind is RegexKind.CONTAINS:
        return _contains(mapping, literal)
    return _NEVER


def _exact(mapping: TypeMapping, literal: str) -> QualifiedNameFold:
    parsed = parse_qualified_name(literal)
    if parsed is None or parsed.head != mapping.identity_head:
        return _NEVER
    leaf = Condition(NAME_PROPERTY, NativeOperator.EQ, parsed.leaf_name)
    if mapping.context_properties is None:
        return QualifiedNameFold(leaf, approximate=True)
    if len(parsed.names) != len(mapping.context_properties) + 1:
        return _NEVER
    conditions = [
        Condition(path, NativeOperator.EQ, name)
        for path, name in zip(mapping.context_properties, parsed.names)
    ]
    return QualifiedNameFold(_all([*conditions, leaf]))


def _starts_with(mapping: TypeMapping, literal: str) -> QualifiedNameFold:
    head, *rest = literal.split(SEGMENT_SEPARATOR)
    if not rest:
        return _ALWAYS if mapping.identity_head.startswith(head) else _NEVER
    if head != mapping.identity_head:
        return _NEVER
    if mapping.context_properties is None:
        return QualifiedNameFold(True, approximate=len(rest) > 1 or bool(rest[0]))
    path = [*mapping.context_properties, NAME_PROPERTY]
    if len(rest) > len(path):
        return _NEVER
    conditions = [
        Condition(path[i], NativeOperator.EQ, segment)
        for i, segment in enumerate(rest[:-1])
    ]
    if rest[-1]:
        conditions.append(
            Condition(path[len(rest) - 1], NativeOperator.STARTS_WITH, rest[-1])
        )
    return QualifiedNameFold(_all(conditions))


def _ends_with(mapping: TypeMapping, literal: str) -> QualifiedNameFold:
    segments = literal.split(SEGMENT_SEPARATOR)
    if len(segments) == 1:
        return QualifiedNameFold(
            Condition(NAME_PROPERTY, NativeOperator.ENDS_WITH, literal)
        )
    if mapping.context_properties is None:
        leaf = Condition(NAME_PROPERTY, NativeOperator.EQ, segments[-1])
        return QualifiedNameFold(leaf, approximate=True)

    # Align the tail with [head, *context, name] from the right.
    path: list[str | None] = [None, *mapping.context_properties, NAME_PROPERTY]
    if len(segments) > len(path):
        return _NEVER
    conditions: list[Condition] = []
    aligned = path[len(path) - len(segments) :]
    for index, (target, segment) in enumerate(zip(aligned, segments)):
        first = index == 0
        if target is None:
            if not mapping.identity_head.endswith(segment):
                return _NEVER
        elif first:
            if segment:
                conditions.append(Condition(target, NativeOperator.ENDS_WITH, segment))
        else:
            conditions.append(Condition(target, NativeOperator.EQ, segment))
    return QualifiedNameFold(_all(conditions))


def _contains(mapping: TypeMapping, literal: str) -> QualifiedNameFold:
    if SEGMENT_SEPARATOR in literal or mapping.context_properties is None:
        return QualifiedNameFold(True, approximate=True)
    if literal in mapping.identity_head:
        return _ALWAYS
    paths = [*mapping.context_properties, NAME_PROPERTY]
    alternatives: list[Node] = [
        Condition(path, NativeOperator.CONTAINS, literal) for path in paths
    ]
    if len(alternatives) == 1:
        return QualifiedNameFold(alternatives[0])
    return QualifiedNameFold(ConditionSet(alternatives, match_any=True))
