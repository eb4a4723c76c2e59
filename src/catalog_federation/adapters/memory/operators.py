"""
In-memory evaluation of native condition operators.

Each ``NativeOperator`` is an isolated strategy registered in a
``NativeOperatorRegistry``. Operators compare one resolved value; a
property path that resolves to several values matches if any value does.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ...native import NativeOperator


class NativeMemoryOperator(ABC):
    """Strategy interface for evaluating one native operator in memory."""

    @property
    @abstractmethod
    def name(self) -> NativeOperator:
        """The operator this strategy handles."""
        ...

    @abstractmethod
    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        """
        Evaluate the operator against concrete values.

        Args:
            field_value: One value resolved from the record, never a list.
            condition_value: The value carried by the native condition.
        """
        ...


def _comparable(field_value: Any, condition_value: Any) -> bool:
    return field_value is not None and condition_value is not None


# ── Standard comparison ─────────────────────────────────────────


class EqualOperator(NativeMemoryOperator):
    @property
    def name(self) -> NativeOperator:
        return NativeOperator.EQ

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return bool(field_value == condition_value)


class NotEqualOperator(NativeMemoryOperator):
    @property
    def name(self) -> NativeOperator:
        return NativeOperator.NE

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return bool(field_value != condition_value)


class GreaterThanOperator(NativeMemoryOperator):
    @property
    def name(self) -> NativeOperator:
        return NativeOperator.GT

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return _comparable(field_value, condition_value) and bool(
            field_value > condition_value
        )


class LessThanOperator(NativeMemoryOperator):
    @property
    def name(self) -> NativeOperator:
        return NativeOperator.LT

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return _comparable(field_value, condition_value) and bool(
            field_value < condition_value
        )


class GreaterEqualOperator(NativeMemoryOperator):
    @property
    def name(self) -> NativeOperator:
        return NativeOperator.GE

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return _comparable(field_value, condition_value) and bool(
            field_value >= condition_value
        )


class LessEqualOperator(NativeMemoryOperator):
    @property
    def name(self) -> NativeOperator:
        return NativeOperator.LE

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return _comparable(field_value, condition_value) and bool(
            field_value <= condition_value
        )


# ── String ──────────────────────────────────────────────────────


class StartsWithOperator(NativeMemoryOperator):
    @property
    def name(self) -> NativeOperator:
        return NativeOperator.STARTS_WITH

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        return str(field_value).startswith(str(condition_value))


class EndsWithOperator(NativeMemoryOperator):
    @property
    def name(self) -> NativeOperator:
        return NativeOperator.ENDS_WITH

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        return str(field_value).endswith(str(condition_value))


class ContainsOperator(NativeMemoryOperator):
    @property
    def name(self) -> NativeOperator:
        return NativeOperator.CONTAINS

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        return str(condition_value) in str(field_value)


# ── Null / set ──────────────────────────────────────────────────


class IsNullOperator(NativeMemoryOperator):
    @property
    def name(self) -> NativeOperator:
        return NativeOperator.IS_NULL

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return field_value is None


class IsNotNullOperator(NativeMemoryOperator):
    @property
    def name(self) -> NativeOperator:
        return NativeOperator.IS_NOT_NULL

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return field_value is not None


class InOperator(NativeMemoryOperator):
    @property
    def name(self) -> NativeOperator:
        return NativeOperator.IN

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if not isinstance(condition_value, (list, tuple, set)):
            return False
        return field_value in condition_value


class BetweenOperator(NativeMemoryOperator):
    @property
    def name(self) -> NativeOperator:
        return NativeOperator.BETWEEN

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None or not isinstance(condition_value, (list, tuple)):
            return False
        if len(condition_value) != 2:
            return False
        low, high = condition_value
        return bool(low <= field_value <= high)


class NativeOperatorRegistry:
    """
    Registry of in-memory strategies keyed by ``NativeOperator``.

    Usage::

        registry = build_native_registry()
        registry.evaluate(NativeOperator.STARTS_WITH, "orders", "ord")
    """

    def __init__(self) -> None:
        self._operators: dict[NativeOperator, NativeMemoryOperator] = {}

    # -- registration --------------------------------------------------------

    def register(self, operator: NativeMemoryOperator) -> None:
        self._operators[operator.name] = operator

    def register_all(self, *operators: NativeMemoryOperator) -> None:
        for op in operators:
            self.register(op)

    # -- look-up -------------------------------------------------------------

    def get(self, name: NativeOperator) -> NativeMemoryOperator | None:
        return self._operators.get(name)

    @property
    def supported_operators(self) -> set[NativeOperator]:
        return set(self._operators.keys())

    # -- evaluation ----------------------------------------------------------

    def evaluate(
        self, name: NativeOperator, field_values: list[Any], condition_value: Any
    ) -> bool:
        """
        Evaluate against every value a property path resolved to.

        An empty list stands for an absent value.

        Raises:
            ValueError: If the operator is not registered.
        """
        op = self.get(name)
        if op is None:
            raise ValueError(f"Unsupported operator for in-memory evaluation: {name}")
        if not field_values:
            return op.evaluate(None, condition_value)
        if name is NativeOperator.IS_NULL:
            return False
        if name is NativeOperator.NE:
            return all(op.evaluate(v, condition_value) for v in field_values)
        return any(op.evaluate(v, condition_value) for v in field_values)


def build_native_registry() -> NativeOperatorRegistry:
    """Create a registry with every native operator."""
    registry = NativeOperatorRegistry()
    registry.register_all(
        # Standard comparison
        EqualOperator(),
        NotEqualOperator(),
        GreaterThanOperator(),
        LessThanOperator(),
        GreaterEqualOperator(),
        LessEqualOperator(),
        # String
        StartsWithOperator(),
        EndsWithOperator(),
        ContainsOperator(),
        # Null / set
        IsNullOperator(),
        IsNotNullOperator(),
        InOperator(),
        BetweenOperator(),
    )
    return registry
