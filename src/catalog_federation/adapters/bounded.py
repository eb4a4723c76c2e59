"""BoundedTransport - timeout and error wrapping around any transport."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, TypeVar

from ..exceptions import BackendCommunicationError, FederationError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Sequence

    from ..native import NativeSearch
    from ..ports.transport import ICatalogTransport
    from ..records import Record

logger = logging.getLogger("catalog_federation.transport")

T = TypeVar("T")

_END = object()


async def _next(iterator: AsyncIterator[Any]) -> Any:
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return _END


class BoundedTransport:
    """
    Wraps an ``ICatalogTransport`` so that every call is bounded by a timeout
    and every failure surfaces as ``BackendCommunicationError``.

    For ``search`` the timeout applies to each page of hits, not to the
    whole iteration. Cancellation is never intercepted.
    """

    def __init__(
        self, transport: ICatalogTransport, timeout: float | None = 30.0
    ) -> None:
        self._transport = transport
        self._timeout = timeout

    @property
    def timeout(self) -> float | None:
        return self._timeout

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as err:
            logger.warning(
                "Backend call %s timed out after %s seconds", operation, self._timeout
            )
            raise BackendCommunicationError(operation, err) from err
        except FederationError:
            raise
        except Exception as err:
            logger.warning("Backend call %s failed: %r", operation, err)
            raise BackendCommunicationError(operation, err) from err

    async def search(self, search: NativeSearch) -> AsyncIterator[Record]:
        logger.debug("Native search: %s", search.to_dict())
        try:
            iterator = self._transport.search(search).__aiter__()
        except Exception as err:
            raise BackendCommunicationError("search", err) from err
        try:
            while True:
                record = await self._call("search", _next(iterator))
                if record is _END:
                    return
                yield record
        finally:
            close = getattr(iterator, "aclose", None)
            if close is not None:
                await close()

    async def get_record_by_id(
        self, record_id: str, properties: Sequence[str] = ()
    ) -> Record | None:
        return await self._call(
            "get_record_by_id",
            self._transport.get_record_by_id(record_id, properties),
        )

    async def get_all_string_properties(self, asset_type: str) -> list[str]:
        return await self._call(
            "get_all_string_properties",
            self._transport.get_all_string_properties(asset_type),
        )

    async def get_version(self) -> str:
        return await self._call("get_version", self._transport.get_version())
