"""Per-call cache of backend records fetched by id."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..ports.transport import ICatalogTransport
    from ..records import Record

logger = logging.getLogger("catalog_federation.materializer")


class ObjectCache:
    """
    Avoids refetching the same record within one federation call.

    A cache lives exactly as long as the call that created it and is never
    shared between calls. Misses are remembered too. Each entry remembers the
    properties it was fetched with; asking for a property outside that
    projection refetches the record with the union of both.
    """

    def __init__(self, transport: ICatalogTransport) -> None:
        self._transport = transport
        self._records: dict[str, Record | None] = {}
        self._projections: dict[str, tuple[str, ...]] = {}
        self.hits = 0
        self.misses = 0

    @property
    def transport(self) -> ICatalogTransport:
        return self._transport

    async def get(
        self, record_id: str, properties: Sequence[str] = ()
    ) -> Record | None:
        fetched = self._projections.get(record_id, ())
        if record_id in self._records:
            record = self._records[record_id]
            if record is None or set(properties) <= set(fetched):
                self.hits += 1
                return record
            logger.debug("Widening projection of record %s", record_id)
        self.misses += 1
        projection = tuple(dict.fromkeys([*fetched, *properties]))
        record = await self._transport.get_record_by_id(record_id, projection)
        self._records[record_id] = record
        self._projections[record_id] = projection
        if record is None:
            logger.debug("Record %s does not exist", record_id)
        return record

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def __len__(self) -> int:
        return len(self._records)
