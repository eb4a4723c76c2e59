"""Classification mapping descriptors."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..records import Record
from .properties import SimplePropertyMapping, map_properties


class ClassificationSignal(str, Enum):
    """How a backend record signals that a classification applies."""

    PRESENT = "present"
    EQUALS = "equals"


@dataclass(frozen=True)
class ClassificationMapping:
    classification: str
    backend_property: str
    signal: ClassificationSignal = ClassificationSignal.PRESENT
    value: Any = None
    properties: tuple[SimplePropertyMapping, ...] = ()

    def backend_property_for(self, abstract_property: str) -> str | None:
        for mapping in self.properties:
            if mapping.abstract_property == abstract_property:
                return mapping.backend_property
        return None

    @property
    def projected_properties(self) -> list[str]:
        return [self.backend_property, *(p.backend_property for p in self.properties)]


def is_classified(mapping: ClassificationMapping, record: Record) -> bool:
    raw = record.value(mapping.backend_property)
    if mapping.signal is ClassificationSignal.EQUALS:
        return bool(raw == mapping.value)
    return raw not in (None, "", [], ())


def classification_values(
    mapping: ClassificationMapping, record: Record
) -> dict[str, Any]:
    return map_properties(mapping.properties, (), record)
