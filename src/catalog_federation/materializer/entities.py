"""Backend record -> abstract entity, through the record's type mapping."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..identity.codec import EntityIdentity
from ..instances import Classification, EntityDetail, EntityProxy
from ..mapping.classifications import classification_values, is_classified
from ..mapping.properties import map_properties, qualified_name_for
from ..records import Record

if TYPE_CHECKING:
    from ..mapping.entities import TypeMapping
    from ..records import Reference


def entity_identity(
    home_id: str, mapping: TypeMapping, record: Reference
) -> EntityIdentity:
    return EntityIdentity(home_id, record.type, record.id, mapping.prefix)


def to_entity_detail(
    home_id: str, mapping: TypeMapping, record: Record
) -> EntityDetail:
    """
    Build the entity *mapping* synthesizes from *record*.

    Raises:
        KeyError: A required property or the qualified name has no value.
    """
    properties = map_properties(
        mapping.simple_properties, mapping.complex_properties, record, mapping.prefix
    )
    classifications = tuple(
        Classification(
            name=c.classification, properties=classification_values(c, record)
        )
        for c in mapping.classifications
        if is_classified(c, record)
    )
    return EntityDetail(
        guid=entity_identity(home_id, mapping, record).guid,
        type_name=mapping.abstract_type,
        metadata_collection_id=home_id,
        properties=properties,
        classifications=classifications,
        created_on=record.created_on,
        created_by=record.created_by,
        modified_on=record.modified_on,
        modified_by=record.modified_by,
    )


def to_entity_proxy(
    home_id: str, mapping: TypeMapping, record: Reference
) -> EntityProxy:
    """Proxy for a full record, or for a bare reference without a qualified name."""
    qualified_name = None
    if mapping.has_qualified_name and isinstance(record, Record):
        qualified_name = qualified_name_for(record, prefix=mapping.prefix)
    return EntityProxy(
        guid=entity_identity(home_id, mapping, record).guid,
        type_name=mapping.abstract_type,
        metadata_collection_id=home_id,
        qualified_name=qualified_name,
    )
