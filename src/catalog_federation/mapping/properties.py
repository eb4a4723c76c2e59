"""
Property mapping descriptors and the pure functions that apply them.

Simple mappings copy one backend property to one abstract property and can
be pushed down into native searches. Complex mappings compute the abstract
value:

- ``QUALIFIED_NAME``: the record's identity string.
- ``LITERAL``: a constant for every record of the type.
- ``REFERENCE_NAME``: the name of the object a reference property points to.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..identity.qualified_names import format_qualified_name
from ..records import NAME_PROPERTY, Record, as_references

if TYPE_CHECKING:
    from collections.abc import Iterable

QUALIFIED_NAME = "qualifiedName"


class ComplexPropertyKind(str, Enum):
    QUALIFIED_NAME = "qualified_name"
    LITERAL = "literal"
    REFERENCE_NAME = "reference_name"


@dataclass(frozen=True)
class SimplePropertyMapping:
    backend_property: str
    abstract_property: str
    required: bool = False


@dataclass(frozen=True)
class ComplexPropertyMapping:
    abstract_property: str
    kind: ComplexPropertyKind
    backend_property: str | None = None
    literal: Any = None

    @property
    def search_path(self) -> str | None:
        """Backend path a condition on this property can be pushed down to."""
        if self.kind is ComplexPropertyKind.REFERENCE_NAME and self.backend_property:
            return f"{self.backend_property}.{NAME_PROPERTY}"
        return None


def qualified_name_for(
    record: Record, asset_type: str | None = None, prefix: str | None = None
) -> str | None:
    """Identity string of *record*, or ``None`` if it has no name."""
    name = record.value(NAME_PROPERTY)
    if not name:
        return None
    return format_qualified_name(
        asset_type or record.type, [*record.context_names, str(name)], prefix
    )


def complex_value(
    mapping: ComplexPropertyMapping, record: Record, prefix: str | None = None
) -> Any:
    if mapping.kind is ComplexPropertyKind.QUALIFIED_NAME:
        return qualified_name_for(record, prefix=prefix)
    if mapping.kind is ComplexPropertyKind.LITERAL:
        return mapping.literal
    if mapping.backend_property is None:
        return None
    refs = as_references(record.properties.get(mapping.backend_property))
    names = [ref.name for ref in refs if ref.name]
    if not names:
        return None
    return names[0] if len(names) == 1 else names


def map_properties(
    simple: Iterable[SimplePropertyMapping],
    complex_: Iterable[ComplexPropertyMapping],
    record: Record,
    prefix: str | None = None,
) -> dict[str, Any]:
    """Abstract property values for *record*. Absent values are omitted.

    Raises:
        KeyError: If a required property or the qualified name has no value.
    """
    values: dict[str, Any] = {}
    for mapping in simple:
        value = record.value(mapping.backend_property)
        if value is None:
            if mapping.required:
                raise KeyError(mapping.backend_property)
            continue
        values[mapping.abstract_property] = value
    for complex_mapping in complex_:
        value = complex_value(complex_mapping, record, prefix)
        if value is not None:
            values[complex_mapping.abstract_property] = value
        elif complex_mapping.kind is ComplexPropertyKind.QUALIFIED_NAME:
            raise KeyError(complex_mapping.abstract_property)
    return values
