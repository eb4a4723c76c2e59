from .adapters import BoundedTransport, InMemoryCatalogTransport
from .collection import MetadataCollection, TypeVerification
from .config import FederationConfig
from .exceptions import (
    BackendCommunicationError,
    ConfigurationError,
    EntityNotKnownError,
    FederationError,
    FunctionNotSupportedError,
    InvalidParameterError,
    MalformedIdentityError,
    RelationshipNotKnownError,
    TypeNotMappedError,
    TypeNotSupportedError,
)
from .instances import (
    Classification,
    EntityDetail,
    EntityProxy,
    InstanceGraph,
    Relationship,
)
from .mapping import MappingRegistry, default_registry, registry_from_dict
from .outcome import Outcome
from .ports import ICatalogTransport
from .query import (
    ClassificationCondition,
    MatchCriteria,
    PagingWindow,
    PropertyCondition,
    PropertyOperator,
    SearchClassifications,
    SearchProperties,
    SequencingOrder,
)
from .records import Record, Reference

__all__ = [
    # Service
    "MetadataCollection",
    "TypeVerification",
    "FederationConfig",
    "Outcome",
    # Mapping
    "MappingRegistry",
    "default_registry",
    "registry_from_dict",
    # Transport
    "ICatalogTransport",
    "BoundedTransport",
    "InMemoryCatalogTransport",
    "Record",
    "Reference",
    # Query model
    "ClassificationCondition",
    "MatchCriteria",
    "PagingWindow",
    "PropertyCondition",
    "PropertyOperator",
    "SearchClassifications",
    "SearchProperties",
    "SequencingOrder",
    # Instances
    "Classification",
    "EntityDetail",
    "EntityProxy",
    "InstanceGraph",
    "Relationship",
    # Exceptions
    "FederationError",
    "ConfigurationError",
    "InvalidParameterError",
    "TypeNotMappedError",
    "TypeNotSupportedError",
    "EntityNotKnownError",
    "RelationshipNotKnownError",
    "MalformedIdentityError",
    "FunctionNotSupportedError",
    "BackendCommunicationError",
]
