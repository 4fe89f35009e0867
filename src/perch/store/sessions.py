"""Session store: create, read and bulk-revoke session records.

Built on a ``SessionBackend`` and the record codec. The store itself
holds only immutable references, so one instance is shared by every
request. Each backend call is bounded by ``anyio.fail_after``; a call
that overruns surfaces as ``BackendError`` like any other backend
failure.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta

import anyio

from perch.store.backends.base import SessionBackend
from perch.store.codec import SessionRecord, decode, encode
from perch.store.errors import (
    BackendError,
    CodecError,
    PartialRevocationError,
    SessionExpired,
    SessionNotFound,
)

logger = logging.getLogger("perch.store")

DEFAULT_TTL = timedelta(days=7)
DEFAULT_CALL_TIMEOUT = 3.0
DEFAULT_REVOKE_ATTEMPTS = 3


def utcnow() -> datetime:
    return datetime.now(UTC)


class SessionStore:
    """Session records keyed by id, indexed by username.

    Usage::

        store = SessionStore(MemoryBackend(TableSchema("sessions")))
        session_id = await store.create("alice")
        record = await store.get(session_id)
        removed = await store.revoke_by_owner("alice")
    """

    __slots__ = ("_backend", "_call_timeout", "_clock", "_revoke_attempts", "_ttl")

    def __init__(
        self,
        backend: SessionBackend,
        *,
        ttl: timedelta = DEFAULT_TTL,
        call_timeout: float = DEFAULT_CALL_TIMEOUT,
        revoke_attempts: int = DEFAULT_REVOKE_ATTEMPTS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if ttl <= timedelta(0):
            msg = f"ttl must be positive, got {ttl}"
            raise ValueError(msg)
        if revoke_attempts < 1:
            msg = f"revoke_attempts must be at least 1, got {revoke_attempts}"
            raise ValueError(msg)
        self._backend = backend
        self._ttl = ttl
        self._call_timeout = call_timeout
        self._revoke_attempts = revoke_attempts
        self._clock = clock

    @property
    def backend(self) -> SessionBackend:
        return self._backend

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    async def _call[T](self, operation: str, call: Awaitable[T]) -> T:
        try:
            with anyio.fail_after(self._call_timeout):
                return await call
        except TimeoutError as exc:
            logger.warning("%s timed out after %ss", operation, self._call_timeout)
            msg = f"{operation} timed out after {self._call_timeout}s"
            raise BackendError(msg) from exc
        except BackendError as exc:
            logger.warning("%s failed: %s", operation, exc)
            raise

    # -- Operations --

    async def create(self, username: str) -> str:
        """Issue a new session for *username* and return its id."""
        return await self.create_at(username, self._clock())

    async def create_at(self, username: str, created_at: datetime) -> str:
        """Issue a session with an explicit creation time.

        ``expires_at`` is derived from *created_at*, so a back-dated
        session may already be expired when it is written.
        """
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        record = SessionRecord.issue(str(uuid.uuid4()), username, created_at, self._ttl)
        await self._call("put_item", self._backend.put_item(encode(record)))
        logger.debug("session created for %s", username)
        return record.id

    async def get(self, session_id: str) -> SessionRecord:
        """Return the live record for *session_id*.

        Raises ``SessionNotFound`` when no record exists and
        ``SessionExpired`` when the record's expiry has passed but the
        backend has not swept it yet.
        """
        item = await self._call("get_item", self._backend.get_item(session_id))
        if item is None:
            raise SessionNotFound(session_id)
        try:
            record = decode(item)
        except CodecError as exc:
            logger.error("unreadable session item %s: %s", session_id, exc)
            msg = f"stored session {session_id!r} is unreadable: {exc}"
            raise BackendError(msg) from exc
        if record.is_expired(self._clock()):
            raise SessionExpired(session_id)
        return record

    async def revoke_by_owner(self, username: str) -> int:
        """Delete every session owned by *username*; return how many.

        Keys the backend reports as unprocessed are retried until
        ``revoke_attempts`` batches have been issued. Anything still
        left raises ``PartialRevocationError``.
        """
        schema = self._backend.schema
        items = await self._call("query", self._backend.query(username))
        keys = [
            key
            for item in items
            if isinstance(key := item.get(schema.partition_key), str)
        ]
        logger.info("%d session(s) found for %s", len(keys), username)

        pending = keys
        attempt = 0
        while pending and attempt < self._revoke_attempts:
            attempt += 1
            pending = await self._call(
                "batch_delete", self._backend.batch_delete(pending, index_value=username)
            )
            if pending:
                logger.warning(
                    "batch delete left %d key(s) for %s (attempt %d/%d)",
                    len(pending),
                    username,
                    attempt,
                    self._revoke_attempts,
                )

        if pending:
            raise PartialRevocationError(username, list(pending), len(keys) - len(pending))
        return len(keys)
