"""Set membership -> in."""

from __future__ import annotations

from typing import Any

from ...native import Condition, NativeOperator
from ..model import PropertyOperator


def compile_set(prop: str, op: PropertyOperator, val: Any) -> Condition | None:
    """Compile set operators. Returns None if not a set op."""
    if op is not PropertyOperator.IN:
        return None
    values = list(val) if isinstance(val, (list, tuple, set, frozenset)) else [val]
    return Condition(prop, NativeOperator.IN, tuple(values))
