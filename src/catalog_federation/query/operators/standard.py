"""Standard comparison operators -> =, <>, >, >=, <, <=."""

from __future__ import annotations

from typing import Any

from ...native import Condition, NativeOperator
from ..model import PropertyOperator

_NATIVE_OP_MAP: dict[PropertyOperator, NativeOperator] = {
    PropertyOperator.EQ: NativeOperator.EQ,
    PropertyOperator.NEQ: NativeOperator.NE,
    PropertyOperator.GT: NativeOperator.GT,
    PropertyOperator.GTE: NativeOperator.GE,
    PropertyOperator.LT: NativeOperator.LT,
    PropertyOperator.LTE: NativeOperator.LE,
}


def compile_standard(prop: str, op: PropertyOperator, val: Any) -> Condition | None:
    """Compile comparison operators. Returns None if not a comparison op."""
    native_op = _NATIVE_OP_MAP.get(op)
    if native_op is None:
        return None
    return Condition(prop, native_op, val)
