"""Session records and their attribute-bag encoding.

A backend persists attribute bags: flat ``str -> str | int`` mappings.
Indexing attributes (``PK``, ``GSI1PK``, ``TTL``) sit next to the
record's own attributes::

    {
        "PK": "0b5f...",
        "GSI1PK": "alice",
        "TTL": 1730000000,
        "id": "0b5f...",
        "username": "alice",
        "created_at": "2024-10-20T12:00:00+00:00",
        "expires_at": "2024-10-27T12:00:00+00:00",
    }
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from perch.store.errors import InvalidField, MissingField

type AttributeValue = str | int
type AttributeBag = dict[str, AttributeValue]

# Indexing attributes
PARTITION_KEY = "PK"
INDEX_KEY = "GSI1PK"
TTL_ATTRIBUTE = "TTL"


@dataclass(frozen=True, slots=True)
class TableSchema:
    """Layout of the session table, as a backend needs to know it."""

    name: str
    partition_key: str = PARTITION_KEY
    index_key: str = INDEX_KEY
    ttl_attribute: str = TTL_ATTRIBUTE


@dataclass(frozen=True, slots=True)
class SessionRecord:
    """A persisted session.

    ``expires_at`` is always ``created_at`` plus the store's TTL; build
    records through ``SessionRecord.issue`` rather than by hand.
    """

    id: str
    username: str
    created_at: datetime
    expires_at: datetime

    @classmethod
    def issue(
        cls,
        session_id: str,
        username: str,
        created_at: datetime,
        ttl: timedelta,
    ) -> SessionRecord:
        return cls(
            id=session_id,
            username=username,
            created_at=created_at,
            expires_at=created_at + ttl,
        )

    def is_expired(self, now: datetime) -> bool:
        """True once *now* has reached ``expires_at``."""
        return self.expires_at <= now


def encode(record: SessionRecord) -> AttributeBag:
    """Encode *record* as an attribute bag."""
    return {
        # Indexing attributes
        PARTITION_KEY: record.id,
        INDEX_KEY: record.username,
        TTL_ATTRIBUTE: int(record.expires_at.timestamp()),
        # Item attributes
        "id": record.id,
        "username": record.username,
        "created_at": record.created_at.isoformat(),
        "expires_at": record.expires_at.isoformat(),
    }


def decode(bag: Mapping[str, object]) -> SessionRecord:
    """Decode an attribute bag into a ``SessionRecord``.

    Raises ``MissingField`` when a required attribute is absent or not a
    string, and ``InvalidField`` when a timestamp or the ``TTL`` number
    cannot be parsed.
    """
    if TTL_ATTRIBUTE in bag:
        get_number(bag, TTL_ATTRIBUTE)
    return SessionRecord(
        id=get_string(bag, "id"),
        created_at=get_datetime(bag, "created_at"),
        expires_at=get_datetime(bag, "expires_at"),
        username=get_string(bag, "username"),
    )


def get_string(bag: Mapping[str, object], key: str) -> str:
    value = bag.get(key)
    if not isinstance(value, str):
        raise MissingField(key)
    return value


def get_number(bag: Mapping[str, object], key: str) -> int:
    """Return an integer attribute.

    Accepts an ``int`` or an integer-valued numeric string, since some
    stores hand numbers back as text.
    """
    value = bag.get(key)
    if isinstance(value, bool) or value is None:
        raise MissingField(key)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            raise InvalidField(key, bag.get(key)) from None
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidField(key, bag.get(key))
        return int(value)
    raise MissingField(key)


def get_datetime(bag: Mapping[str, object], key: str) -> datetime:
    """Return an ISO-8601 attribute as an aware UTC datetime."""
    raw = get_string(bag, key)
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise InvalidField(key, raw) from None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
