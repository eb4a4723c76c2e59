"""
The backend catalog's native search model.

A native search names the asset types to enumerate, a tree of conditions,
the properties to return, a paging window and sort keys. ``to_dict()``
renders the JSON body the catalog's search endpoint accepts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from .mapping.entities import TypeMapping
    from .mapping.relationships import RelationshipMapping
    from .query.model import SearchProperties


class NativeOperator(str, Enum):
    """Operators of the native condition language."""

    EQ = "="
    NE = "<>"
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    STARTS_WITH = "like {0}%"
    ENDS_WITH = "like %{0}"
    CONTAINS = "like %{0}%"
    IS_NULL = "isNull"
    IS_NOT_NULL = "isNotNull"
    IN = "in"
    BETWEEN = "between"


@dataclass(frozen=True)
class Condition:
    """Leaf of the condition tree."""

    property: str
    operator: NativeOperator
    value: Any = None
    negated: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.operator, NativeOperator):
            object.__setattr__(self, "operator", NativeOperator(self.operator))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "property": self.property,
            "operator": self.operator.value,
        }
        if self.operator not in (NativeOperator.IS_NULL, NativeOperator.IS_NOT_NULL):
            data["value"] = (
                list(self.value) if isinstance(self.value, tuple) else self.value
            )
        if self.negated:
            data["negated"] = True
        return data


Node = Union[Condition, "ConditionSet"]


@dataclass
class ConditionSet:
    """Group node: AND (default) or OR of its children, optionally negated."""

    conditions: list[Node] = field(default_factory=list)
    match_any: bool = False
    negated: bool = False

    def add(self, node: Node) -> ConditionSet:
        self.conditions.append(node)
        return self

    def __len__(self) -> int:
        return len(self.conditions)

    @property
    def is_empty(self) -> bool:
        return not self.conditions

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "conditions": [c.to_dict() for c in self.conditions],
            "operator": "or" if self.match_any else "and",
        }
        if self.negated:
            data["negated"] = True
        return data


@dataclass(frozen=True)
class Sorting:
    property: str
    ascending: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"property": self.property, "ascending": self.ascending}


@dataclass
class NativeSearch:
    """
    One native search request.

    ``mapping`` / ``relationship_mapping`` name the mapping that owns the
    hits and ``residual`` holds conditions re-checked in memory on the
    materialized instances. None of the three is sent to the backend.
    """

    types: list[str]
    conditions: ConditionSet = field(default_factory=ConditionSet)
    properties: list[str] = field(default_factory=list)
    begin: int = 0
    page_size: int = 0
    sorts: list[Sorting] = field(default_factory=list)
    mapping: TypeMapping | None = field(default=None, compare=False, repr=False)
    relationship_mapping: RelationshipMapping | None = field(
        default=None, compare=False, repr=False
    )
    residual: SearchProperties | None = field(default=None, compare=False)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "types": list(self.types),
            "properties": list(self.properties),
            "pageSize": self.page_size,
            "begin": self.begin,
        }
        if not self.conditions.is_empty:
            data["where"] = self.conditions.to_dict()
        if self.sorts:
            data["sorts"] = [s.to_dict() for s in self.sorts]
        return data
