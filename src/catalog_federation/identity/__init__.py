"""Identifier and identity-string codecs."""

from __future__ import annotations

from .codec import (
    DecodeResult,
    EntityIdentity,
    RecordRef,
    RelationshipIdentity,
    decode_entity_id,
    decode_relationship_id,
    encode_entity_id,
    encode_relationship_id,
)
from .qualified_names import (
    SEGMENT_SEPARATOR,
    QualifiedName,
    format_head,
    format_qualified_name,
    parse_head,
    parse_qualified_name,
)

__all__ = [
    # Identifiers
    "DecodeResult",
    "EntityIdentity",
    "RecordRef",
    "RelationshipIdentity",
    "decode_entity_id",
    "decode_relationship_id",
    "encode_entity_id",
    "encode_relationship_id",
    # Identity strings
    "SEGMENT_SEPARATOR",
    "QualifiedName",
    "format_head",
    "format_qualified_name",
    "parse_head",
    "parse_qualified_name",
]
