"""
Abstract query model: what federation callers ask for.

String values of ``LIKE`` conditions are regular expressions; only exact,
starts-with, ends-with and contains patterns can be served.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from ..exceptions import InvalidParameterError


class MatchCriteria(str, Enum):
    ALL = "all"
    ANY = "any"
    NONE = "none"


class PropertyOperator(str, Enum):
    EQ = "eq"
    NEQ = "neq"
    LIKE = "like"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IS_NULL = "is_null"
    NOT_NULL = "not_null"
    IN = "in"


class SequencingOrder(str, Enum):
    ANY = "any"
    GUID = "guid"
    CREATION_DATE_RECENT = "creation_date_recent"
    CREATION_DATE_OLDEST = "creation_date_oldest"
    LAST_UPDATE_RECENT = "last_update_recent"
    LAST_UPDATE_OLDEST = "last_update_oldest"
    PROPERTY_ASCENDING = "property_ascending"
    PROPERTY_DESCENDING = "property_descending"


@dataclass(frozen=True)
class PropertyCondition:
    """A condition on one abstract property, or a nested group."""

    property: str | None = None
    operator: PropertyOperator = PropertyOperator.EQ
    value: Any = None
    nested: SearchProperties | None = None

    def __post_init__(self) -> None:
        if self.nested is None and not self.property:
            raise InvalidParameterError("A property condition needs a property")


@dataclass(frozen=True)
class SearchProperties:
    conditions: tuple[PropertyCondition, ...] = ()
    match_criteria: MatchCriteria = MatchCriteria.ALL

    @classmethod
    def from_values(
        cls,
        values: Mapping[str, Any],
        match_criteria: MatchCriteria = MatchCriteria.ALL,
    ) -> SearchProperties:
        """Conditions from ``{property: value}``; strings are regexes."""
        return cls(
            tuple(
                PropertyCondition(
                    name,
                    PropertyOperator.LIKE
                    if isinstance(value, str)
                    else PropertyOperator.EQ,
                    value,
                )
                for name, value in values.items()
            ),
            match_criteria,
        )

    @property
    def is_empty(self) -> bool:
        return not self.conditions

    def leaves(self) -> Iterable[PropertyCondition]:
        for condition in self.conditions:
            if condition.nested is not None:
                yield from condition.nested.leaves()
            else:
                yield condition


@dataclass(frozen=True)
class ClassificationCondition:
    name: str
    properties: SearchProperties | None = None


@dataclass(frozen=True)
class SearchClassifications:
    conditions: tuple[ClassificationCondition, ...] = ()
    match_criteria: MatchCriteria = MatchCriteria.ALL

    @classmethod
    def from_names(
        cls,
        names: Iterable[str],
        match_criteria: MatchCriteria = MatchCriteria.ALL,
    ) -> SearchClassifications:
        return cls(tuple(ClassificationCondition(n) for n in names), match_criteria)

    @property
    def is_empty(self) -> bool:
        return not self.conditions


@dataclass(frozen=True)
class PagingWindow:
    """Start offset, page size (0 means unbounded) and sequencing."""

    start: int = 0
    page_size: int = 0
    sequencing_property: str | None = None
    sequencing_order: SequencingOrder | None = None

    def __post_init__(self) -> None:
        if self.start < 0:
            raise InvalidParameterError(
                "start must not be negative", params={"start": self.start}
            )
        if self.page_size < 0:
            raise InvalidParameterError(
                "page_size must not be negative", params={"page_size": self.page_size}
            )
        if (
            self.sequencing_order
            in (SequencingOrder.PROPERTY_ASCENDING, SequencingOrder.PROPERTY_DESCENDING)
            and not self.sequencing_property
        ):
            raise InvalidParameterError(
                "Property sequencing requires a sequencing property",
                params={"sequencing_order": self.sequencing_order.value},
            )

    @property
    def end(self) -> int:
        """Number of leading results needed to fill the window (0 = all)."""
        return 0 if self.page_size == 0 else self.start + self.page_size


@dataclass(frozen=True)
class EntitySearch:
    """A complete entity search request."""

    type_name: str | None = None
    subtype_names: tuple[str, ...] | None = None
    properties: SearchProperties | None = None
    classifications: SearchClassifications | None = None
    paging: PagingWindow = PagingWindow()
    as_of_time: datetime | None = None


@dataclass(frozen=True)
class RelationshipSearch:
    relationship_type: str | None = None
    properties: SearchProperties | None = None
    paging: PagingWindow = PagingWindow()
    as_of_time: datetime | None = None
