"""Tests for entity / relationship identifiers and identity strings."""

from __future__ import annotations

import pytest

from catalog_federation.exceptions import MalformedIdentityError
from catalog_federation.identity import (
    EntityIdentity,
    RecordRef,
    RelationshipIdentity,
    decode_entity_id,
    decode_relationship_id,
    encode_entity_id,
    encode_relationship_id,
    format_qualified_name,
    parse_head,
    parse_qualified_name,
)

# ══════════════════════════════════════════════════════════════════════
# Entity identifiers
# ══════════════════════════════════════════════════════════════════════


class TestEntityIdentifiers:
    def test_encode_decode(self) -> None:
        guid = encode_entity_id("home-1", "database_table", "t-1", "tt")
        result = decode_entity_id(guid)
        assert result
        expected = EntityIdentity("home-1", "database_table", "t-1", "tt")
        assert result.identity == expected
        assert result.identity.guid == guid

    def test_delimiters_inside_components_are_escaped(self) -> None:
        """A record id containing ':' still decodes to exactly one identity."""
        guid = encode_entity_id("home:1", "database_table", "a:b/c%d")
        assert guid.count(":") == 4
        identity = decode_entity_id(guid).identity
        assert identity is not None
        assert identity.home_id == "home:1"
        assert identity.record_id == "a:b/c%d"
        assert identity.prefix is None

    def test_other_home_is_rejected(self) -> None:
        guid = encode_entity_id("home-2", "host", "h-1")
        result = decode_entity_id(guid, expected_home="home-1")
        assert not result
        assert "home-2" in (result.reason or "")
        with pytest.raises(MalformedIdentityError) as exc_info:
            result.unwrap(guid)
        assert exc_info.value.guid == guid
        assert exc_info.value.reason == result.reason

    def test_unwrap_valid(self) -> None:
        guid = encode_entity_id("home-1", "host", "h-1")
        identity = decode_entity_id(guid).unwrap(guid)
        assert identity.record_id == "h-1"

    @pytest.mark.parametrize(
        "guid",
        ["", "nonsense", "e:home-1:host:h-1", "r:home-1::host:h-1", "e:home-1:::h-1"],
    )
    def test_malformed_identifiers_do_not_raise(self, guid: str) -> None:
        result = decode_entity_id(guid)
        assert result.identity is None
        assert result.reason

    def test_encode_requires_components(self) -> None:
        with pytest.raises(ValueError):
            encode_entity_id("home-1", "", "x")


# ══════════════════════════════════════════════════════════════════════
# Relationship identifiers
# ══════════════════════════════════════════════════════════════════════


class TestRelationshipIdentifiers:
    def test_endpoint_order_is_canonical(self) -> None:
        """Either endpoint order yields the same identifier."""
        table = RecordRef("database_table", "t-1")
        schema = RecordRef("database_schema", "s-1", "st")
        forward = encode_relationship_id("home-1", "AttributeForSchema", schema, table)
        backward = encode_relationship_id("home-1", "AttributeForSchema", table, schema)
        assert forward == backward

        identity = RelationshipIdentity("home-1", "AttributeForSchema", table, schema)
        assert identity.end_a == schema
        assert identity.guid == forward

    def test_decode_round_trip_keeps_flag(self) -> None:
        level = RecordRef("classification", "cls-1")
        identity = RelationshipIdentity(
            "home-1", "DataClassAssignment", level, level, relationship_level=True
        )
        decoded = decode_relationship_id(identity.guid, expected_home="home-1")
        assert decoded.identity == identity

    def test_non_canonical_order_is_malformed(self) -> None:
        guid = ":".join(["r", "home-1", "T", "0", "", "b", "2", "", "a", "1"])
        result = decode_relationship_id(guid)
        assert not result
        assert "canonical" in (result.reason or "")

    def test_invalid_flag(self) -> None:
        guid = ":".join(["r", "home-1", "T", "x", "", "a", "1", "", "b", "2"])
        assert decode_relationship_id(guid).reason == "invalid relationship-level flag"

    def test_same_relationship_ignores_flag(self) -> None:
        a, b = RecordRef("a", "1"), RecordRef("b", "2")
        plain = RelationshipIdentity("h", "T", a, b)
        flagged = RelationshipIdentity("h", "T", a, b, relationship_level=True)
        assert plain != flagged
        assert plain.same_relationship(flagged)
        assert plain.guid != flagged.guid


# ══════════════════════════════════════════════════════════════════════
# Identity strings
# ══════════════════════════════════════════════════════════════════════


class TestQualifiedNames:
    def test_format(self) -> None:
        assert (
            format_qualified_name("database_table", ["h", "d", "s", "t"], "tt")
            == "tt_DATABASE_TABLE::h::d::s::t"
        )

    def test_parse(self) -> None:
        parsed = parse_qualified_name("st_DATABASE_SCHEMA::host1::db1::sales")
        assert parsed is not None
        assert parsed.asset_type == "database_schema"
        assert parsed.prefix == "st"
        assert parsed.names == ("host1", "db1", "sales")
        assert parsed.leaf_name == "sales"
        assert str(parsed) == "st_DATABASE_SCHEMA::host1::db1::sales"

    def test_partial_parse_drops_prefix(self) -> None:
        """The tail of an identity may have lost the real prefix."""
        parsed = parse_qualified_name("st_DATABASE_SCHEMA::sales", partial=True)
        assert parsed is not None
        assert parsed.partial
        assert parsed.prefix is None

    @pytest.mark.parametrize(
        "value", ["", "orders", "database_table::x", "TABLE::", "TABLE::a::::b"]
    )
    def test_not_an_identity(self, value: str) -> None:
        assert parse_qualified_name(value) is None

    def test_parse_head(self) -> None:
        assert parse_head("DATABASE_COLUMN") == ("database_column", None)
        assert parse_head("tt_DATABASE_TABLE") == ("database_table", "tt")
        assert parse_head("Mixed_Case") is None
