"""Null checks -> isNull, isNotNull."""

from __future__ import annotations

from typing import Any

from ...native import Condition, NativeOperator
from ..model import PropertyOperator


def compile_null(prop: str, op: PropertyOperator, _val: Any) -> Condition | None:
    """Compile null checks. Returns None if not a null op."""
    if op is PropertyOperator.IS_NULL:
        return Condition(prop, NativeOperator.IS_NULL)
    if op is PropertyOperator.NOT_NULL:
        return Condition(prop, NativeOperator.IS_NOT_NULL)
    return None
