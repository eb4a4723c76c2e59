"""
Classification of regular-expression search values.

Federation callers express string matches as regular expressions. The
backend only understands literal comparisons, so a value is served only if
it is one of::

    \\Qtext\\E   or  text       exact
    \\Qtext\\E.*  or  text.*     starts-with
    .*\\Qtext\\E  or  .*text     ends-with
    .*\\Qtext\\E.* or  .*text.*   contains

where an unquoted ``text`` may contain escaped metacharacters only. Optional
``^`` / ``$`` anchors are ignored. Anything else is a general regex.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

_METACHARACTERS = frozenset(".^$*+?()[]{}|\\")
_ANY = ".*"
_QUOTED = re.compile(r"^(?P<lead>\.\*)?\\Q(?P<literal>.*?)\\E(?P<trail>\.\*)?$", re.S)


class RegexKind(str, Enum):
    EXACT = "exact"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    CONTAINS = "contains"
    REGEX = "regex"


@dataclass(frozen=True)
class ClassifiedValue:
    kind: RegexKind
    literal: str | None = None

    @property
    def is_literal(self) -> bool:
        return self.kind is not RegexKind.REGEX


def _kind(lead: bool, trail: bool) -> RegexKind:
    if lead and trail:
        return RegexKind.CONTAINS
    if lead:
        return RegexKind.ENDS_WITH
    if trail:
        return RegexKind.STARTS_WITH
    return RegexKind.EXACT


def _unescape_literal(text: str) -> str | None:
    """The literal *text* denotes, or ``None`` if it holds live metacharacters."""
    chars: list[str] = []
    escaped = False
    for char in text:
        if escaped:
            if char.isalnum():
                return None
            chars.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        elif char in _METACHARACTERS:
            return None
        else:
            chars.append(char)
    if escaped:
        return None
    return "".join(chars)


def classify(value: str) -> ClassifiedValue:
    """Classify a regex search value."""
    body = value
    if body.startswith("^"):
        body = body[1:]
    if body.endswith("$") and not body.endswith("\\$"):
        body = body[:-1]

    quoted = _QUOTED.match(body)
    if quoted is not None and "\\E" not in quoted.group("literal"):
        return ClassifiedValue(
            _kind(bool(quoted.group("lead")), bool(quoted.group("trail"))),
            quoted.group("literal"),
        )

    lead = body.startswith(_ANY)
    if lead:
        body = body[len(_ANY) :]
    trail = body.endswith(_ANY) and not body.endswith("\\" + _ANY)
    if trail:
        body = body[: -len(_ANY)]
    literal = _unescape_literal(body)
    if literal is None:
        return ClassifiedValue(RegexKind.REGEX)
    return ClassifiedValue(_kind(lead, trail), literal)


# ── Builders ────────────────────────────────────────────────────


def exact_match(literal: str) -> str:
    return f"\\Q{literal}\\E"


def starts_with(literal: str) -> str:
    return f"\\Q{literal}\\E.*"


def ends_with(literal: str) -> str:
    return f".*\\Q{literal}\\E"


def contains(literal: str) -> str:
    return f".*\\Q{literal}\\E.*"
