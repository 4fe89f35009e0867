"""Tests for perch.store.backends.memory: in-process session table."""

import pytest

from perch.store.backends.memory import MemoryBackend
from perch.store.errors import BackendError
from perch.testing import FakeClock


def _item(pk: str, owner: str, ttl: int) -> dict[str, str | int]:
    return {"PK": pk, "GSI1PK": owner, "TTL": ttl, "id": pk, "username": owner}


@pytest.fixture
def now(clock: FakeClock) -> int:
    return int(clock().timestamp())


class TestItems:
    async def test_put_then_get(self, backend: MemoryBackend, now: int) -> None:
        await backend.put_item(_item("a", "alice", now + 60))
        assert (await backend.get_item("a"))["username"] == "alice"

    async def test_get_missing(self, backend: MemoryBackend) -> None:
        assert await backend.get_item("nope") is None

    async def test_put_overwrites_and_reindexes(self, backend: MemoryBackend, now: int) -> None:
        await backend.put_item(_item("a", "alice", now + 60))
        await backend.put_item(_item("a", "bob", now + 60))

        assert await backend.query("alice") == []
        assert [i["PK"] for i in await backend.query("bob")] == ["a"]
        assert len(backend) == 1

    async def test_get_returns_copy(self, backend: MemoryBackend, now: int) -> None:
        await backend.put_item(_item("a", "alice", now + 60))
        item = await backend.get_item("a")
        item["username"] = "mallory"
        assert (await backend.get_item("a"))["username"] == "alice"

    async def test_put_requires_partition_key(self, backend: MemoryBackend) -> None:
        with pytest.raises(BackendError, match="PK"):
            await backend.put_item({"GSI1PK": "alice"})


class TestExpiry:
    async def test_expired_item_is_swept_on_get(
        self, backend: MemoryBackend, clock: FakeClock, now: int
    ) -> None:
        await backend.put_item(_item("a", "alice", now + 60))
        clock.advance(seconds=60)

        assert await backend.get_item("a") is None
        assert len(backend) == 0

    async def test_expired_item_is_swept_on_query(
        self, backend: MemoryBackend, clock: FakeClock, now: int
    ) -> None:
        await backend.put_item(_item("a", "alice", now + 60))
        await backend.put_item(_item("b", "alice", now + 600))
        clock.advance(seconds=120)

        assert [i["PK"] for i in await backend.query("alice")] == ["b"]
        assert len(backend) == 1

    async def test_item_without_ttl_never_expires(
        self, backend: MemoryBackend, clock: FakeClock
    ) -> None:
        await backend.put_item({"PK": "a", "GSI1PK": "alice"})
        clock.advance(days=365)
        assert await backend.get_item("a") is not None


class TestQueryAndDelete:
    async def test_query_only_returns_owner_items(self, backend: MemoryBackend, now: int) -> None:
        await backend.put_item(_item("a", "alice", now + 60))
        await backend.put_item(_item("b", "bob", now + 60))
        await backend.put_item(_item("c", "alice", now + 60))

        assert [i["PK"] for i in await backend.query("alice")] == ["a", "c"]

    async def test_batch_delete(self, backend: MemoryBackend, now: int) -> None:
        await backend.put_item(_item("a", "alice", now + 60))
        await backend.put_item(_item("b", "alice", now + 60))

        assert await backend.batch_delete(["a", "b", "missing"]) == []
        assert await backend.query("alice") == []
        assert len(backend) == 0

    async def test_batch_delete_with_owner(self, backend: MemoryBackend, now: int) -> None:
        await backend.put_item(_item("a", "alice", now + 60))

        assert await backend.batch_delete(["a"], index_value="alice") == []
        assert await backend.query("alice") == []

    async def test_ping_and_close(self, backend: MemoryBackend) -> None:
        await backend.ping()
        await backend.aclose()
