"""Backing-store protocol for session records.

A backend is a key-value table with one secondary index and passive
TTL expiry. ``SessionStore`` depends only on this shape::

    class MyBackend:
        schema: TableSchema

        async def get_item(self, key: str) -> AttributeBag | None: ...
        async def put_item(self, item: AttributeBag) -> None: ...
        async def query(self, index_value: str) -> list[AttributeBag]: ...
        async def batch_delete(
            self, keys: Sequence[str], *, index_value: str | None = None
        ) -> list[str]: ...
        async def ping(self) -> None: ...
        async def aclose(self) -> None: ...

Backends raise ``BackendError`` for their own failures.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from perch.store.codec import AttributeBag, TableSchema


class SessionBackend(Protocol):
    """Protocol for session backing stores."""

    @property
    def schema(self) -> TableSchema: ...

    async def get_item(self, key: str) -> AttributeBag | None:
        """Return the item stored under primary *key*, or None."""
        ...

    async def put_item(self, item: AttributeBag) -> None:
        """Write *item*, overwriting any item with the same primary key."""
        ...

    async def query(self, index_value: str) -> list[AttributeBag]:
        """Return every live item whose index key equals *index_value*."""
        ...

    async def batch_delete(
        self, keys: Sequence[str], *, index_value: str | None = None
    ) -> list[str]:
        """Delete items by primary key; return the keys left unprocessed.

        When *index_value* names the owner the keys are also dropped from
        that index entry in the same batch.
        """
        ...

    async def ping(self) -> None:
        """Raise ``BackendError`` if the store is unreachable."""
        ...

    async def aclose(self) -> None:
        """Release connections held by the backend."""
        ...
