"""
Mapping tables from dictionary / JSON configuration.

Supports:
- ``registry_from_dict(data, typedefs)``: validate and build a registry
- ``registry_from_json(text, typedefs)``: same, from a JSON document

Relationship mappings are declared once under ``relationships`` with a
``key`` and referenced by key from every entity mapping that takes part.
Any structural problem raises :class:`ConfigurationError`.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..exceptions import ConfigurationError
from ..native import Condition, NativeOperator
from ..typedefs import BASE_TYPE, TypeDefStore
from .classifications import ClassificationMapping, ClassificationSignal
from .entities import TypeMapping
from .properties import (
    ComplexPropertyKind,
    ComplexPropertyMapping,
    SimplePropertyMapping,
)
from .registry import MappingRegistry
from .relationships import ProxyMapping, RelationshipKind, RelationshipMapping


class _Config(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class SimplePropertyConfig(_Config):
    backend: str
    abstract: str
    required: bool = False

    def build(self) -> SimplePropertyMapping:
        return SimplePropertyMapping(self.backend, self.abstract, self.required)


class ComplexPropertyConfig(_Config):
    abstract: str
    kind: ComplexPropertyKind
    backend: str | None = None
    literal: Any = None

    @model_validator(mode="after")
    def _check_backend(self) -> ComplexPropertyConfig:
        if self.kind is ComplexPropertyKind.REFERENCE_NAME and not self.backend:
            raise ValueError("reference_name properties need a backend property")
        return self

    def build(self) -> ComplexPropertyMapping:
        return ComplexPropertyMapping(
            self.abstract,
            self.kind,
            backend_property=self.backend,
            literal=self.literal,
        )


class ClassificationConfig(_Config):
    name: str
    backend_property: str
    signal: ClassificationSignal = ClassificationSignal.PRESENT
    value: Any = None
    properties: list[SimplePropertyConfig] = Field(default_factory=list)

    def build(self) -> ClassificationMapping:
        return ClassificationMapping(
            self.name,
            self.backend_property,
            signal=self.signal,
            value=self.value,
            properties=tuple(p.build() for p in self.properties),
        )


class ProxyConfig(_Config):
    asset_type: str
    prefix: str | None = None
    navigation_property: str | None = None
    link_property: str | None = None


class RelationshipConfig(_Config):
    key: str
    relationship_type: str
    kind: RelationshipKind
    proxy_one: ProxyConfig
    proxy_two: ProxyConfig
    relationship_level_type: str | None = None
    properties: list[SimplePropertyConfig] = Field(default_factory=list)

    def build(self) -> RelationshipMapping:
        return RelationshipMapping(
            self.relationship_type,
            self.kind,
            ProxyMapping(**self.proxy_one.model_dump()),
            ProxyMapping(**self.proxy_two.model_dump()),
            relationship_level_type=self.relationship_level_type,
            properties=tuple(p.build() for p in self.properties),
        )


class ConditionConfig(_Config):
    property: str
    operator: NativeOperator
    value: Any = None
    negated: bool = False


class TypeMappingConfig(_Config):
    abstract_type: str
    asset_type: str
    prefix: str | None = None
    simple_properties: list[SimplePropertyConfig] = Field(default_factory=list)
    complex_properties: list[ComplexPropertyConfig] = Field(default_factory=list)
    classifications: list[ClassificationConfig] = Field(default_factory=list)
    relationships: list[str] = Field(default_factory=list)
    context_properties: list[str] | None = Field(default_factory=list)
    type_conditions: list[ConditionConfig] = Field(default_factory=list)
    searchable: bool = True


class MappingConfig(_Config):
    base_type: str = BASE_TYPE
    unsupported_types: list[str] = Field(default_factory=list)
    relationships: list[RelationshipConfig] = Field(default_factory=list)
    mappings: list[TypeMappingConfig]


def build_registry(config: MappingConfig, typedefs: TypeDefStore) -> MappingRegistry:
    relationships: dict[str, RelationshipMapping] = {}
    for rel in config.relationships:
        if rel.key in relationships:
            raise ConfigurationError(f"Duplicate relationship key '{rel.key}'")
        relationships[rel.key] = rel.build()

    mappings: list[TypeMapping] = []
    for entry in config.mappings:
        missing = [key for key in entry.relationships if key not in relationships]
        if missing:
            raise ConfigurationError(
                f"'{entry.abstract_type}' references undeclared relationships: "
                f"{', '.join(missing)}"
            )
        mappings.append(
            TypeMapping(
                entry.abstract_type,
                entry.asset_type,
                prefix=entry.prefix,
                simple_properties=tuple(p.build() for p in entry.simple_properties),
                complex_properties=tuple(p.build() for p in entry.complex_properties),
                classifications=tuple(c.build() for c in entry.classifications),
                relationships=tuple(relationships[k] for k in entry.relationships),
                context_properties=(
                    None
                    if entry.context_properties is None
                    else tuple(entry.context_properties)
                ),
                type_conditions=tuple(
                    Condition(c.property, c.operator, c.value, c.negated)
                    for c in entry.type_conditions
                ),
                searchable=entry.searchable,
            )
        )
    return MappingRegistry(
        typedefs,
        mappings,
        base_type=config.base_type,
        unsupported_types=config.unsupported_types,
    )


def registry_from_dict(data: dict[str, Any], typedefs: TypeDefStore) -> MappingRegistry:
    """Validate a mapping configuration dictionary and build the registry."""
    try:
        config = MappingConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid mapping configuration: {exc}") from exc
    return build_registry(config, typedefs)


def registry_from_json(text: str | bytes, typedefs: TypeDefStore) -> MappingRegistry:
    """Parse and validate a JSON mapping configuration in one step."""
    try:
        config = MappingConfig.model_validate_json(text)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid mapping configuration: {exc}") from exc
    return build_registry(config, typedefs)
