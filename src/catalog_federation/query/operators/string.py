"""Regex matches -> like {0}%, like %{0}, like %{0}%, or equality."""

from __future__ import annotations

from typing import Any

from ...exceptions import FunctionNotSupportedError
from ...native import Condition, NativeOperator
from ..model import PropertyOperator
from ..regex import RegexKind, classify

_NATIVE_OP_MAP: dict[RegexKind, NativeOperator] = {
    RegexKind.EXACT: NativeOperator.EQ,
    RegexKind.STARTS_WITH: NativeOperator.STARTS_WITH,
    RegexKind.ENDS_WITH: NativeOperator.ENDS_WITH,
    RegexKind.CONTAINS: NativeOperator.CONTAINS,
}


def native_operator_for(kind: RegexKind) -> NativeOperator:
    native_op = _NATIVE_OP_MAP.get(kind)
    if native_op is None:
        raise FunctionNotSupportedError(
            "General regular expressions cannot be searched in the backend"
        )
    return native_op


def compile_string(prop: str, op: PropertyOperator, val: Any) -> Condition | None:
    """Compile LIKE on a string value. Returns None if not a string match."""
    if op is not PropertyOperator.LIKE:
        return None
    if not isinstance(val, str):
        return Condition(prop, NativeOperator.EQ, val)
    classified = classify(val)
    if not classified.is_literal:
        raise FunctionNotSupportedError(
            f"Regular expression {val!r} on '{prop}' has no native equivalent",
            params={"property": prop, "value": val},
        )
    return Condition(prop, native_operator_for(classified.kind), classified.literal)
