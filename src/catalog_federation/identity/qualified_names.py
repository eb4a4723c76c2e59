"""
Structured identity strings used as qualified names.

An identity string names a backend record by its asset type, optional
synthetic prefix and the names along its containment path::

    DATABASE_COLUMN::host1::db1::schema1::table1::col1
    tt_DATABASE_TABLE::host1::db1::schema1::table1

The head carries the asset type in upper case, optionally preceded by the
lower-case synthetic prefix and an underscore. The remaining segments are
the names of the record's ancestors (root first) followed by its own name.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

SEGMENT_SEPARATOR = "::"

_HEAD = re.compile(r"^(?:(?P<prefix>[a-z][a-z0-9]*)_)?(?P<asset_type>[A-Z][A-Z0-9_]*)$")


@dataclass(frozen=True)
class QualifiedName:
    """A parsed identity string.

    ``partial`` is set when the string came from an ends-with match and the
    leading part of the real identity may have been cut off: the asset type
    is then only a hint and the prefix is unknown.
    """

    asset_type: str
    names: tuple[str, ...]
    prefix: str | None = None
    partial: bool = False

    @property
    def head(self) -> str:
        return format_head(self.asset_type, self.prefix)

    @property
    def leaf_name(self) -> str:
        return self.names[-1]

    def __str__(self) -> str:
        return SEGMENT_SEPARATOR.join([self.head, *self.names])


def format_head(asset_type: str, prefix: str | None = None) -> str:
    token = asset_type.upper()
    return f"{prefix.lower()}_{token}" if prefix else token


def format_qualified_name(
    asset_type: str, names: Sequence[str], prefix: str | None = None
) -> str:
    """Build the identity string for a record."""
    return SEGMENT_SEPARATOR.join([format_head(asset_type, prefix), *names])


def parse_head(head: str) -> tuple[str, str | None] | None:
    """Split a head into ``(asset_type, prefix)``, lower-cased asset type."""
    match = _HEAD.match(head)
    if match is None:
        return None
    return match.group("asset_type").lower(), match.group("prefix")


def parse_qualified_name(value: str, *, partial: bool = False) -> QualifiedName | None:
    """Parse an identity string, or return ``None`` if it is not one.

    With ``partial=True`` the value is treated as the tail of an identity
    string: the result is always marked partial.
    """
    if not value or SEGMENT_SEPARATOR not in value:
        return None
    head, *names = value.split(SEGMENT_SEPARATOR)
    if not names or any(not name for name in names):
        return None
    parsed = parse_head(head)
    if parsed is None:
        return None
    asset_type, prefix = parsed
    return QualifiedName(
        asset_type=asset_type,
        names=tuple(names),
        prefix=None if partial else prefix,
        partial=partial,
    )


def split_segments(value: str) -> list[str]:
    return value.split(SEGMENT_SEPARATOR)
