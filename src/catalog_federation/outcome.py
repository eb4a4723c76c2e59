"""Outcome - value or typed error returned at the federation boundary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .exceptions import FederationError

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Wrapper returned by every ``MetadataCollection`` operation.

    Usage::

        outcome = await collection.get_entity_detail(guid)
        if outcome:
            entity = outcome.value
        else:
            payload = outcome.error.to_dict()
    """

    value: T | None = None
    error: FederationError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    # ── Factory methods ──────────────────────────────────────────

    @classmethod
    def ok(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: FederationError) -> Outcome[T]:
        return cls(error=error)

    # ── Access ───────────────────────────────────────────────────

    def unwrap(self) -> T:
        """The value, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"success": False, **self.error.to_dict()}
        return {"success": True}

    def __bool__(self) -> bool:
        return self.success
