"""Type mapping descriptors and the immutable mapping registry."""

from __future__ import annotations

from .classifications import (
    ClassificationMapping,
    ClassificationSignal,
    classification_values,
    is_classified,
)
from .config import MappingConfig, registry_from_dict, registry_from_json
from .defaults import (
    DEFAULT_ASSET_TYPE,
    UNSUPPORTED_TYPES,
    default_mappings,
    default_registry,
)
from .entities import SUPERTYPE_SENTINEL, TypeMapping
from .properties import (
    QUALIFIED_NAME,
    ComplexPropertyKind,
    ComplexPropertyMapping,
    SimplePropertyMapping,
    map_properties,
    qualified_name_for,
)
from .registry import MappingRegistry
from .relationships import End, ProxyMapping, RelationshipKind, RelationshipMapping

__all__ = [
    # Registry
    "MappingRegistry",
    "MappingConfig",
    "registry_from_dict",
    "registry_from_json",
    "default_mappings",
    "default_registry",
    "DEFAULT_ASSET_TYPE",
    "UNSUPPORTED_TYPES",
    # Entities
    "SUPERTYPE_SENTINEL",
    "TypeMapping",
    # Properties
    "QUALIFIED_NAME",
    "ComplexPropertyKind",
    "ComplexPropertyMapping",
    "SimplePropertyMapping",
    "map_properties",
    "qualified_name_for",
    # Classifications
    "ClassificationMapping",
    "ClassificationSignal",
    "classification_values",
    "is_classified",
    # Relationships
    "End",
    "ProxyMapping",
    "RelationshipKind",
    "RelationshipMapping",
]
