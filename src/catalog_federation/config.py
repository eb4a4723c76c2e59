"""Federation service configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from .exceptions import ConfigurationError
from .mapping.defaults import DEFAULT_ASSET_TYPE
from .query.translator import DEFAULT_TEXT_SEARCH_EXCLUSIONS
from .typedefs import BASE_TYPE


def _default_exclusions() -> dict[str, tuple[str, ...]]:
    return dict(DEFAULT_TEXT_SEARCH_EXCLUSIONS)


@dataclass(frozen=True)
class FederationConfig:
    """Configuration for one federated metadata collection.

    Attributes:
        home_collection_id: Id of this collection, part of every identifier.
        repository_name: Human-readable name of the backend catalog.
        transport_timeout_seconds: Bound on every transport call.
        base_type: Universal abstract supertype, never searched by itself.
        default_asset_type: Backend catch-all type with no abstract meaning.
        foreign_name_prefix: Qualified names owned by other repositories.
        text_search_exclusions: Per backend release, string properties the
            free-text search must not touch.
    """

    home_collection_id: str
    repository_name: str = "catalog"
    transport_timeout_seconds: float | None = 30.0
    base_type: str = BASE_TYPE
    default_asset_type: str = DEFAULT_ASSET_TYPE
    foreign_name_prefix: str | None = "extern:"
    text_search_exclusions: Mapping[str, tuple[str, ...]] = field(
        default_factory=_default_exclusions
    )

    def __post_init__(self) -> None:
        if not self.home_collection_id:
            raise ConfigurationError("home_collection_id is required")
        timeout = self.transport_timeout_seconds
        if timeout is not None and timeout <= 0:
            raise ConfigurationError(
                "transport_timeout_seconds must be positive",
                params={"transport_timeout_seconds": timeout},
            )
