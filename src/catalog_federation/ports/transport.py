"""ICatalogTransport - Protocol for the backend catalog's REST API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from ..native import NativeSearch
    from ..records import Record


@runtime_checkable
class ICatalogTransport(Protocol):
    """
    Abstract interface to the backend catalog.

    Implementations raise any exception on failure; callers wrap it in a
    ``BackendCommunicationError``. ``search`` yields hits lazily so a caller
    that has filled its page can stop consuming::

        async for record in transport.search(native_search):
            ...
    """

    def search(self, search: NativeSearch) -> AsyncIterator[Record]:
        """Yield the records matching *search*, in its sort order."""
        ...

    async def get_record_by_id(
        self, record_id: str, properties: Sequence[str] = ()
    ) -> Record | None:
        """
        Fetch one record, or None if it does not exist.
        Only *properties* (plus the system properties) need to be populated.
        """
        ...

    async def get_all_string_properties(self, asset_type: str) -> list[str]:
        """Names of the string-valued properties of *asset_type*."""
        ...

    async def get_version(self) -> str:
        """Release of the backend catalog, e.g. ``11.7.0.2``."""
        ...
