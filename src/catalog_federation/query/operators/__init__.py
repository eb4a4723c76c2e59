"""Native condition compilers for abstract property operators."""

from __future__ import annotations

from typing import Any

from ...native import Condition, NativeOperator
from ..model import PropertyOperator
from .null import compile_null
from .set import compile_set
from .standard import compile_standard
from .string import compile_string, native_operator_for

_COMPILERS = [
    compile_standard,
    compile_string,
    compile_null,
    compile_set,
]


def compile_condition(prop: str, op: PropertyOperator, val: Any) -> Condition:
    """Compile one abstract condition on a backend property."""
    for compiler in _COMPILERS:
        result = compiler(prop, op, val)
        if result is not None:
            return result
    # Fallback: treat as equality
    return Condition(prop, NativeOperator.EQ, val)


__all__ = [
    "compile_condition",
    "compile_null",
    "compile_set",
    "compile_standard",
    "compile_string",
    "native_operator_for",
]
