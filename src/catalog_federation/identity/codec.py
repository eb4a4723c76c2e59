"""
Stable, opaque identifiers for entities and relationships.

Identifiers are built from their constituent parts, each percent-escaped and
joined with ``:``. Escaping guarantees the delimiter never occurs inside a
component, so every identifier has exactly one decomposition::

    e:<home>:<prefix>:<asset_type>:<record_id>
    r:<home>:<relationship_type>:<0|1>:<end_one>:<end_two>

where each end is written as ``<prefix>:<asset_type>:<record_id>``.

An absent synthetic prefix is encoded as an empty component. Relationship
endpoints are written in canonical order so the same logical relationship
always yields the same identifier, whichever endpoint the lookup started from.

Decoding never raises: it returns a :class:`DecodeResult` that is either
valid or carries the reason the identifier was rejected. ``unwrap`` turns a
rejection into a :class:`MalformedIdentityError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar
from urllib.parse import quote, unquote

from ..exceptions import MalformedIdentityError

ENTITY_SCHEME = "e"
RELATIONSHIP_SCHEME = "r"
SEPARATOR = ":"

_ENTITY_PARTS = 5
_RELATIONSHIP_PARTS = 10

T = TypeVar("T")


def _escape(value: str) -> str:
    return quote(value, safe="")


def _unescape(value: str) -> str:
    return unquote(value)


@dataclass(frozen=True)
class RecordRef:
    """Endpoint descriptor: backend asset type, record id, synthetic prefix."""

    asset_type: str
    record_id: str
    prefix: str | None = None

    def __post_init__(self) -> None:
        if not self.asset_type or not self.record_id:
            raise ValueError("asset_type and record_id must be non-empty")
        if self.prefix == "":
            object.__setattr__(self, "prefix", None)

    @property
    def sort_key(self) -> tuple[str, str, str]:
        return (self.asset_type, self.record_id, self.prefix or "")

    def _parts(self) -> list[str]:
        return [self.prefix or "", self.asset_type, self.record_id]


@dataclass(frozen=True)
class EntityIdentity:
    """Composite key of an abstract entity. Never persisted, always recomputed."""

    home_id: str
    asset_type: str
    record_id: str
    prefix: str | None = None

    def __post_init__(self) -> None:
        if self.prefix == "":
            object.__setattr__(self, "prefix", None)

    @property
    def ref(self) -> RecordRef:
        return RecordRef(self.asset_type, self.record_id, self.prefix)

    @property
    def guid(self) -> str:
        return encode_entity_id(
            self.home_id, self.asset_type, self.record_id, self.prefix
        )

    def __str__(self) -> str:
        return self.guid


@dataclass(frozen=True)
class RelationshipIdentity:
    """
    Composite key of an abstract relationship.

    ``end_a`` and ``end_b`` are held in canonical order regardless of the
    order they were supplied in. For relationship-level relationships both
    ends are the backend record that stands for the relationship.
    """

    home_id: str
    relationship_type: str
    end_a: RecordRef
    end_b: RecordRef
    relationship_level: bool = False

    def __post_init__(self) -> None:
        if self.end_b.sort_key < self.end_a.sort_key:
            first, second = self.end_b, self.end_a
            object.__setattr__(self, "end_a", first)
            object.__setattr__(self, "end_b", second)

    @property
    def guid(self) -> str:
        return encode_relationship_id(
            self.home_id,
            self.relationship_type,
            self.end_a,
            self.end_b,
            relationship_level=self.relationship_level,
        )

    def same_relationship(self, other: RelationshipIdentity) -> bool:
        """Equal in every component except the relationship-level flag."""
        return (
            self.home_id == other.home_id
            and self.relationship_type == other.relationship_type
            and self.end_a == other.end_a
            and self.end_b == other.end_b
        )

    def __str__(self) -> str:
        return self.guid


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    """Outcome of decoding an identifier.

    Usage::

        identity = decode_entity_id(guid, expected_home="home-1").unwrap(guid)
    """

    identity: T | None = None
    reason: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.identity is not None

    # ── Factory methods ──────────────────────────────────────────

    @classmethod
    def success(cls, identity: T) -> DecodeResult[T]:
        return cls(identity=identity)

    @classmethod
    def malformed(cls, reason: str) -> DecodeResult[T]:
        return cls(reason=reason)

    def unwrap(self, guid: str) -> T:
        """
        Raises:
            MalformedIdentityError: *guid* was rejected.
        """
        if self.identity is None:
            raise MalformedIdentityError(guid, self.reason or "rejected")
        return self.identity

    def __bool__(self) -> bool:
        return self.is_valid


# ── Entities ─────────────────────────────────────────────────────


def encode_entity_id(
    home_id: str, asset_type: str, record_id: str, prefix: str | None = None
) -> str:
    """Encode an entity identifier. Pure and deterministic."""
    if not home_id or not asset_type or not record_id:
        raise ValueError("home_id, asset_type and record_id must be non-empty")
    parts = [ENTITY_SCHEME, home_id, prefix or "", asset_type, record_id]
    return SEPARATOR.join(_escape(p) for p in parts)


def decode_entity_id(
    guid: str, expected_home: str | None = None
) -> DecodeResult[EntityIdentity]:
    """Decode an entity identifier without raising."""
    if not isinstance(guid, str) or not guid:
        return DecodeResult.malformed("empty identifier")
    parts = guid.split(SEPARATOR)
    if len(parts) != _ENTITY_PARTS or parts[0] != ENTITY_SCHEME:
        return DecodeResult.malformed("not an entity identifier")
    home_id, prefix, asset_type, record_id = (_unescape(p) for p in parts[1:])
    if not home_id or not asset_type or not record_id:
        return DecodeResult.malformed("missing component")
    if expected_home is not None and home_id != expected_home:
        return DecodeResult.malformed(f"belongs to home collection {home_id!r}")
    return DecodeResult.success(
        EntityIdentity(home_id, asset_type, record_id, prefix or None)
    )


# ── Relationships ────────────────────────────────────────────────


def encode_relationship_id(
    home_id: str,
    relationship_type: str,
    end_a: RecordRef,
    end_b: RecordRef,
    *,
    relationship_level: bool = False,
) -> str:
    """Encode a relationship identifier with endpoints in canonical order."""
    if not home_id or not relationship_type:
        raise ValueError("home_id and relationship_type must be non-empty")
    first, second = sorted((end_a, end_b), key=lambda ref: ref.sort_key)
    parts = [
        RELATIONSHIP_SCHEME,
        home_id,
        relationship_type,
        "1" if relationship_level else "0",
        *first._parts(),
        *second._parts(),
    ]
    return SEPARATOR.join(_escape(p) for p in parts)


def decode_relationship_id(
    guid: str, expected_home: str | None = None
) -> DecodeResult[RelationshipIdentity]:
    """Decode a relationship identifier without raising."""
    if not isinstance(guid, str) or not guid:
        return DecodeResult.malformed("empty identifier")
    parts = guid.split(SEPARATOR)
    if len(parts) != _RELATIONSHIP_PARTS or parts[0] != RELATIONSHIP_SCHEME:
        return DecodeResult.malformed("not a relationship identifier")
    values = [_unescape(p) for p in parts[1:]]
    home_id, relationship_type, flag = values[0], values[1], values[2]
    if flag not in ("0", "1"):
        return DecodeResult.malformed("invalid relationship-level flag")
    if not home_id or not relationship_type:
        return DecodeResult.malformed("missing component")
    if expected_home is not None and home_id != expected_home:
        return DecodeResult.malformed(f"belongs to home collection {home_id!r}")
    try:
        end_a = RecordRef(values[4], values[5], values[3] or None)
        end_b = RecordRef(values[7], values[8], values[6] or None)
    except ValueError as exc:
        return DecodeResult.malformed(str(exc))
    if end_b.sort_key < end_a.sort_key:
        return DecodeResult.malformed("endpoints are not in canonical order")
    return DecodeResult.success(
        RelationshipIdentity(
            home_id,
            relationship_type,
            end_a,
            end_b,
            relationship_level=flag == "1",
        )
    )
