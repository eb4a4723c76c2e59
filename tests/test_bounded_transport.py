"""Tests for the timeout and error wrapping transport."""

from __future__ import annotations

import asyncio

import pytest

from catalog_federation import (
    BackendCommunicationError,
    BoundedTransport,
    InMemoryCatalogTransport,
    InvalidParameterError,
)
from catalog_federation.native import NativeSearch


@pytest.fixture
def bounded(transport: InMemoryCatalogTransport) -> BoundedTransport:
    return BoundedTransport(transport, timeout=0.5)


# ══════════════════════════════════════════════════════════════════════
# Pass-through
# ══════════════════════════════════════════════════════════════════════


class TestPassThrough:
    @pytest.mark.asyncio
    async def test_results(self, bounded: BoundedTransport) -> None:
        record = await bounded.get_record_by_id("table-1")
        assert record is not None
        assert record.name == "orders"
        assert await bounded.get_version() == "11.7.1.0"
        assert await bounded.get_all_string_properties("database") == [
            "name",
            "short_description",
            "dbms",
        ]

    @pytest.mark.asyncio
    async def test_search(self, bounded: BoundedTransport) -> None:
        hits = [r.id async for r in bounded.search(NativeSearch(types=["host"]))]
        assert hits == ["host-1"]

    @pytest.mark.asyncio
    async def test_federation_errors_are_not_wrapped(
        self, bounded: BoundedTransport, transport: InMemoryCatalogTransport
    ) -> None:
        transport.fail("get_version", InvalidParameterError("bad release"))
        with pytest.raises(InvalidParameterError):
            await bounded.get_version()


# ══════════════════════════════════════════════════════════════════════
# Failures
# ══════════════════════════════════════════════════════════════════════


class TestFailures:
    @pytest.mark.asyncio
    async def test_exception_is_wrapped(
        self, bounded: BoundedTransport, transport: InMemoryCatalogTransport
    ) -> None:
        cause = ConnectionError("refused")
        transport.fail("get_record_by_id", cause)
        with pytest.raises(BackendCommunicationError) as exc_info:
            await bounded.get_record_by_id("table-1")
        assert exc_info.value.transport_operation == "get_record_by_id"
        assert exc_info.value.cause is cause
        assert exc_info.value.__cause__ is cause

    @pytest.mark.asyncio
    async def test_timeout(self, transport: InMemoryCatalogTransport) -> None:
        transport.delay = 0.2
        bounded = BoundedTransport(transport, timeout=0.05)
        with pytest.raises(BackendCommunicationError) as exc_info:
            await bounded.get_version()
        assert exc_info.value.params == {"transport_operation": "get_version"}

    @pytest.mark.asyncio
    async def test_search_failure(
        self, bounded: BoundedTransport, transport: InMemoryCatalogTransport
    ) -> None:
        """The search request only runs once the first hit is awaited."""
        transport.fail("search", RuntimeError("500"))
        hits = bounded.search(NativeSearch(types=["host"]))
        with pytest.raises(BackendCommunicationError) as exc_info:
            await hits.__anext__()
        assert exc_info.value.transport_operation == "search"

    @pytest.mark.asyncio
    async def test_search_timeout(self, transport: InMemoryCatalogTransport) -> None:
        transport.delay = 0.2
        bounded = BoundedTransport(transport, timeout=0.05)
        with pytest.raises(BackendCommunicationError):
            [r async for r in bounded.search(NativeSearch(types=["host"]))]

    @pytest.mark.asyncio
    async def test_cancellation_propagates(
        self, transport: InMemoryCatalogTransport
    ) -> None:
        transport.delay = 10.0
        bounded = BoundedTransport(transport, timeout=None)
        task = asyncio.ensure_future(bounded.get_version())
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
