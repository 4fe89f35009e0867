"""In-process backend for development and tests.

Items live in a dict keyed by primary key, with a second dict of sets
as the secondary index. Expired items are swept lazily whenever a read
touches them, the same passive behaviour a TTL-enabled table has.

Free-threading safety:
    Mutations run under a ``threading.Lock``; there are no awaits
    inside the critical sections.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from perch.store.codec import AttributeBag, TableSchema
from perch.store.errors import BackendError


def _utcnow() -> datetime:
    return datetime.now(UTC)


class MemoryBackend:
    """Dict-backed session table with a secondary index and passive TTL."""

    __slots__ = ("_clock", "_index", "_items", "_lock", "_schema")

    def __init__(
        self,
        schema: TableSchema,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._schema = schema
        self._clock = clock
        self._items: dict[str, AttributeBag] = {}
        self._index: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    @property
    def schema(self) -> TableSchema:
        return self._schema

    def __len__(self) -> int:
        """Number of stored items, including expired ones not yet swept."""
        return len(self._items)

    # -- Internal --

    def _is_expired(self, item: AttributeBag) -> bool:
        ttl = item.get(self._schema.ttl_attribute)
        if not isinstance(ttl, int):
            return False
        return ttl <= self._clock().timestamp()

    def _evict(self, key: str) -> bool:
        """Remove *key* and its index entry. Caller holds the lock."""
        item = self._items.pop(key, None)
        if item is None:
            return False
        owner = item.get(self._schema.index_key)
        if isinstance(owner, str):
            members = self._index.get(owner)
            if members is not None:
                members.discard(key)
                if not members:
                    del self._index[owner]
        return True

    def _key_of(self, item: AttributeBag) -> str:
        key = item.get(self._schema.partition_key)
        if not isinstance(key, str) or not key:
            msg = f"item has no string {self._schema.partition_key!r} attribute"
            raise BackendError(msg)
        return key

    # -- SessionBackend --

    async def get_item(self, key: str) -> AttributeBag | None:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            if self._is_expired(item):
                self._evict(key)
                return None
            return dict(item)

    async def put_item(self, item: AttributeBag) -> None:
        key = self._key_of(item)
        owner = item.get(self._schema.index_key)
        with self._lock:
            self._evict(key)
            self._items[key] = dict(item)
            if isinstance(owner, str):
                self._index.setdefault(owner, set()).add(key)

    async def query(self, index_value: str) -> list[AttributeBag]:
        with self._lock:
            results: list[AttributeBag] = []
            for key in sorted(self._index.get(index_value, ())):
                item = self._items[key]
                if self._is_expired(item):
                    self._evict(key)
                    continue
                results.append(dict(item))
            return results

    async def batch_delete(
        self, keys: Sequence[str], *, index_value: str | None = None
    ) -> list[str]:
        # eviction already unlinks each key from its owner's index
        with self._lock:
            for key in keys:
                self._evict(key)
        return []

    async def ping(self) -> None:
        return None

    async def aclose(self) -> None:
        return None
