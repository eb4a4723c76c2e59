"""
Federation exception hierarchy.

All exceptions inherit from ``FederationError`` and provide ``to_dict()``
for API-friendly error responses. Every failure carries the name of the
operation that raised it and the identifying parameters (home collection id,
offending identifier or type name) needed to diagnose it.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class FederationError(Exception):
    """Root exception for the catalog federation layer."""

    error_code = "FEDERATION_ERROR"

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.operation = operation
        self.params: dict[str, Any] = dict(params or {})
        super().__init__(message)

    def with_operation(self, operation: str) -> FederationError:
        """Attach the operation name if the raiser did not know it."""
        if self.operation is None:
            self.operation = operation
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "operation": self.operation,
            "params": dict(self.params),
        }


class ConfigurationError(FederationError):
    """Static mapping configuration is malformed. Raised at start-up only."""

    error_code = "CONFIGURATION_ERROR"


class InvalidParameterError(FederationError):
    """A request parameter is outside its accepted range."""

    error_code = "INVALID_PARAMETER"


class TypeNotMappedError(FederationError):
    """
    Abstract type is unknown or has no mapping.

    Provides fuzzy-matched suggestions for likely intended type names.
    """

    error_code = "TYPE_NOT_MAPPED"

    def __init__(
        self,
        type_name: str,
        *,
        known_types: list[str] | None = None,
        operation: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> None:
        self.type_name = type_name
        self.suggestions = get_close_matches(
            type_name, known_types or [], n=3, cutoff=0.6
        )
        message = f"Type '{type_name}' is not mapped to the backend catalog."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(
            message,
            operation=operation,
            params={"type_name": type_name, **(params or {})},
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["suggestions"] = list(self.suggestions)
        return data


class TypeNotSupportedError(FederationError):
    """Type is known but the requested capability on it is not implemented."""

    error_code = "TYPE_NOT_SUPPORTED"

    def __init__(
        self,
        type_name: str,
        reason: str = "",
        *,
        operation: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> None:
        self.type_name = type_name
        message = f"Type '{type_name}' is not supported"
        message += f": {reason}" if reason else "."
        super().__init__(
            message,
            operation=operation,
            params={"type_name": type_name, **(params or {})},
        )


class EntityNotKnownError(FederationError):
    """Entity identifier is unknown to this collection."""

    error_code = "ENTITY_NOT_KNOWN"

    def __init__(
        self,
        guid: str,
        *,
        operation: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> None:
        self.guid = guid
        super().__init__(
            f"Entity {guid!r} is not known to this collection.",
            operation=operation,
            params={"guid": guid, **(params or {})},
        )


class RelationshipNotKnownError(FederationError):
    """Relationship identifier is unknown to this collection."""

    error_code = "RELATIONSHIP_NOT_KNOWN"

    def __init__(
        self,
        guid: str,
        *,
        operation: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> None:
        self.guid = guid
        super().__init__(
            f"Relationship {guid!r} is not known to this collection.",
            operation=operation,
            params={"guid": guid, **(params or {})},
        )


class MalformedIdentityError(FederationError):
    """
    Identifier cannot be decoded or belongs to a different home collection.

    Raised by ``DecodeResult.unwrap``. The federation API reports it as
    ``EntityNotKnownError`` or ``RelationshipNotKnownError`` with the
    original error chained.
    """

    error_code = "MALFORMED_IDENTITY"

    def __init__(
        self,
        guid: str,
        reason: str,
        *,
        operation: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> None:
        self.guid = guid
        self.reason = reason
        super().__init__(
            f"Identifier {guid!r} is malformed: {reason}",
            operation=operation,
            params={"guid": guid, **(params or {})},
        )


class FunctionNotSupportedError(FederationError):
    """Historical queries, multi-hop traversal and general regex searches."""

    error_code = "FUNCTION_NOT_SUPPORTED"


class BackendCommunicationError(FederationError):
    """Wraps any transport failure. Always names the failing transport call."""

    error_code = "BACKEND_COMMUNICATION_ERROR"

    def __init__(
        self,
        transport_operation: str,
        cause: BaseException | None = None,
        *,
        operation: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> None:
        self.transport_operation = transport_operation
        self.cause = cause
        detail = f": {cause!r}" if cause is not None else ""
        super().__init__(
            f"Backend call '{transport_operation}' failed{detail}",
            operation=operation,
            params={"transport_operation": transport_operation, **(params or {})},
        )
