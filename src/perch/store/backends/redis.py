"""Redis backend (``redis.asyncio``).

Layout under the table name::

    <table>:item:<pk>       JSON attribute bag, SET with EXAT <TTL>
    <table>:index:<owner>   set of primary keys owned by <owner>

Redis sweeps expired items on its own. The index set's expiry is
pushed out to the latest member's TTL, and members whose item has
already expired are pruned the next time the index is queried.
Revocation deletes items and their index members in one pipeline.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from perch.store.codec import AttributeBag, TableSchema
from perch.store.errors import BackendError

logger = logging.getLogger("perch.store.redis")


class RedisBackend:
    """Session table stored in Redis.

    Holds a single shared client; the client owns its connection pool
    and is never mutated after construction.

    Usage::

        backend = RedisBackend.from_url(
            "redis://localhost:6379/0",
            TableSchema("sessions"),
            connect_timeout=2.0,
            call_timeout=3.0,
        )
    """

    __slots__ = ("_client", "_schema")

    def __init__(self, client: aioredis.Redis, schema: TableSchema) -> None:
        self._client = client
        self._schema = schema

    @classmethod
    def from_url(
        cls,
        url: str,
        schema: TableSchema,
        *,
        connect_timeout: float,
        call_timeout: float,
    ) -> RedisBackend:
        """Build a backend with a client bounded by connect/socket timeouts."""
        client = aioredis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=connect_timeout,
            socket_timeout=call_timeout,
        )
        return cls(client, schema)

    @property
    def schema(self) -> TableSchema:
        return self._schema

    # -- Keys --

    def item_key(self, key: str) -> str:
        return f"{self._schema.name}:item:{key}"

    def index_key(self, value: str) -> str:
        return f"{self._schema.name}:index:{value}"

    def _load(self, raw: str) -> AttributeBag:
        try:
            item = json.loads(raw)
        except json.JSONDecodeError as exc:
            msg = f"corrupted item in {self._schema.name!r}: {exc}"
            raise BackendError(msg) from exc
        if not isinstance(item, dict):
            msg = f"corrupted item in {self._schema.name!r}: expected an object"
            raise BackendError(msg)
        return item

    # -- SessionBackend --

    async def get_item(self, key: str) -> AttributeBag | None:
        try:
            raw = await self._client.get(self.item_key(key))
        except RedisError as exc:
            msg = f"get_item failed: {exc}"
            raise BackendError(msg) from exc
        if raw is None:
            return None
        return self._load(raw)

    async def put_item(self, item: AttributeBag) -> None:
        schema = self._schema
        key = item.get(schema.partition_key)
        owner = item.get(schema.index_key)
        if not isinstance(key, str) or not isinstance(owner, str):
            msg = f"item needs string {schema.partition_key!r} and {schema.index_key!r}"
            raise BackendError(msg)
        ttl = item.get(schema.ttl_attribute)
        expire_at = ttl if isinstance(ttl, int) else None

        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.set(self.item_key(key), json.dumps(item), exat=expire_at)
                pipe.sadd(self.index_key(owner), key)
                if expire_at is not None:
                    # NX covers a fresh index, GT only ever extends it
                    pipe.expireat(self.index_key(owner), expire_at, nx=True)
                    pipe.expireat(self.index_key(owner), expire_at, gt=True)
                await pipe.execute()
        except RedisError as exc:
            msg = f"put_item failed: {exc}"
            raise BackendError(msg) from exc

    async def query(self, index_value: str) -> list[AttributeBag]:
        index_key = self.index_key(index_value)
        try:
            members = await self._client.smembers(index_key)
            if not members:
                return []
            keys = sorted(members)
            raws: list[Any] = await self._client.mget([self.item_key(k) for k in keys])
            stale = [k for k, raw in zip(keys, raws, strict=True) if raw is None]
            if stale:
                logger.debug("pruning %d expired member(s) from %s", len(stale), index_key)
                await self._client.srem(index_key, *stale)
        except RedisError as exc:
            msg = f"query failed: {exc}"
            raise BackendError(msg) from exc
        return [self._load(raw) for raw in raws if raw is not None]

    async def batch_delete(
        self, keys: Sequence[str], *, index_value: str | None = None
    ) -> list[str]:
        """Delete items; with *index_value*, SREM them from that index too.

        A failed SREM leaves every key unprocessed so the retry removes
        both views together.
        """
        if not keys:
            return []
        try:
            async with self._client.pipeline(transaction=False) as pipe:
                for key in keys:
                    pipe.delete(self.item_key(key))
                if index_value is not None:
                    pipe.srem(self.index_key(index_value), *keys)
                results = await pipe.execute(raise_on_error=False)
        except RedisError as exc:
            msg = f"batch_delete failed: {exc}"
            raise BackendError(msg) from exc
        if index_value is not None and isinstance(results[-1], Exception):
            logger.warning("index prune for %s failed: %s", index_value, results[-1])
            unprocessed = list(keys)
        else:
            unprocessed = [
                key
                for key, result in zip(keys, results[: len(keys)], strict=True)
                if isinstance(result, Exception)
            ]
        if unprocessed:
            logger.warning(
                "batch_delete left %d of %d key(s) unprocessed", len(unprocessed), len(keys)
            )
        return unprocessed

    async def ping(self) -> None:
        try:
            await self._client.ping()
        except RedisError as exc:
            msg = f"ping failed: {exc}"
            raise BackendError(msg) from exc

    async def aclose(self) -> None:
        await self._client.aclose()
