"""Backend hits -> abstract entities and relationships."""

from .cache import ObjectCache
from .entities import entity_identity, to_entity_detail, to_entity_proxy
from .executor import ResultMaterializer
from .relationships import (
    RelationshipLink,
    link_identity,
    links_from_record,
    to_relationship,
)

__all__ = [
    "ObjectCache",
    "RelationshipLink",
    "ResultMaterializer",
    "entity_identity",
    "link_identity",
    "links_from_record",
    "to_entity_detail",
    "to_entity_proxy",
    "to_relationship",
]
