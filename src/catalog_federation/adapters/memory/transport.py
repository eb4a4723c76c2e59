"""InMemoryCatalogTransport - dict-backed fake of the backend catalog."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from ...native import Condition, ConditionSet, NativeSearch, Node
from ...records import Record
from .operators import NativeOperatorRegistry, build_native_registry

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable, Mapping, Sequence

DEFAULT_VERSION = "11.7.1.0"
PATH_SEPARATOR = "."


class InMemoryCatalogTransport:
    """
    In-memory implementation of ``ICatalogTransport``.

    Stores records in a plain dict keyed by their id and evaluates native
    searches against them: dotted property paths are followed through
    reference properties, results are sorted by the search's sort keys and
    cut to its window. Every call is logged for assertions in tests.
    """

    def __init__(
        self,
        records: Iterable[Record] = (),
        *,
        string_properties: Mapping[str, Sequence[str]] | None = None,
        version: str = DEFAULT_VERSION,
        delay: float = 0.0,
        operators: NativeOperatorRegistry | None = None,
    ) -> None:
        self._store: dict[str, Record] = {}
        self._string_properties = {
            k: list(v) for k, v in (string_properties or {}).items()
        }
        self._version = version
        self._operators = operators or build_native_registry()
        self.delay = delay
        self.failures: dict[str, BaseException] = {}
        self.searches: list[NativeSearch] = []
        self.fetched: list[str] = []
        self.calls: list[str] = []
        for record in records:
            self.add(record)

    # ── ICatalogTransport ────────────────────────────────────────

    async def search(self, search: NativeSearch) -> AsyncIterator[Record]:
        await self._enter("search")
        self.searches.append(search)
        hits = [
            record
            for record in self._store.values()
            if record.type in search.types and self._matches(record, search.conditions)
        ]
        for sort in reversed(search.sorts):
            hits.sort(
                key=lambda r, p=sort.property: _sort_key(r.value(p)),
                reverse=not sort.ascending,
            )
        end = search.begin + search.page_size if search.page_size else None
        for record in hits[search.begin : end]:
            yield _project(record, search.properties)

    async def get_record_by_id(
        self, record_id: str, properties: Sequence[str] = ()
    ) -> Record | None:
        await self._enter("get_record_by_id")
        self.fetched.append(record_id)
        record = self._store.get(record_id)
        return None if record is None else _project(record, properties)

    async def get_all_string_properties(self, asset_type: str) -> list[str]:
        await self._enter("get_all_string_properties")
        return list(self._string_properties.get(asset_type, ()))

    async def get_version(self) -> str:
        await self._enter("get_version")
        return self._version

    # ── Evaluation ───────────────────────────────────────────────

    def _matches(self, record: Record, node: Node) -> bool:
        if isinstance(node, ConditionSet):
            if node.is_empty:
                result = True
            elif node.match_any:
                result = any(self._matches(record, c) for c in node.conditions)
            else:
                result = all(self._matches(record, c) for c in node.conditions)
        else:
            result = self._condition_matches(record, node)
        return not result if node.negated else result

    def _condition_matches(self, record: Record, condition: Condition) -> bool:
        values = self.resolve_path(record, condition.property)
        return self._operators.evaluate(condition.operator, values, condition.value)

    def resolve_path(self, record: Record, path: str) -> list[Any]:
        """Values a dotted path reaches from *record*, through references."""
        *hops, last = path.split(PATH_SEPARATOR)
        current = [record]
        for hop in hops:
            current = [
                target
                for item in current
                for ref in item.references(hop)
                if (target := self._store.get(ref.id)) is not None
            ]
        values: list[Any] = []
        for item in current:
            value = item.value(last)
            if isinstance(value, (list, tuple)):
                values.extend(value)
            elif value is not None:
                values.append(value)
        return values

    async def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if self.delay:
            await asyncio.sleep(self.delay)
        failure = self.failures.get(operation)
        if failure is not None:
            raise failure

    # ── Test helpers ─────────────────────────────────────────────

    def add(self, *records: Record) -> None:
        for record in records:
            self._store[record.id] = record

    def fail(self, operation: str, error: BaseException) -> None:
        """Make every later call of *operation* raise *error*."""
        self.failures[operation] = error

    def set_string_properties(self, asset_type: str, names: Sequence[str]) -> None:
        self._string_properties[asset_type] = list(names)

    def reset_log(self) -> None:
        self.searches.clear()
        self.fetched.clear()
        self.calls.clear()

    def get(self, record_id: str) -> Record | None:
        return self._store.get(record_id)

    def __len__(self) -> int:
        return len(self._store)


def _sort_key(value: Any) -> tuple[bool, Any]:
    return (value is None, "" if value is None else value)


def _project(record: Record, properties: Sequence[str]) -> Record:
    if not properties:
        return record
    wanted = set(properties)
    return record.model_copy(
        update={
            "properties": {
                k: v for k, v in record.properties.items() if k in wanted
            }
        }
    )
