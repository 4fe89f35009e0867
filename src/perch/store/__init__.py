"""Session persistence: records, codec, backends and the store."""

from perch.store.backends import MemoryBackend, SessionBackend
from perch.store.codec import SessionRecord, TableSchema, decode, encode
from perch.store.errors import (
    BackendError,
    CodecError,
    InvalidField,
    MissingField,
    PartialRevocationError,
    SessionExpired,
    SessionNotFound,
    StoreError,
)
from perch.store.sessions import SessionStore

__all__ = [
    "BackendError",
    "CodecError",
    "InvalidField",
    "MemoryBackend",
    "MissingField",
    "PartialRevocationError",
    "SessionBackend",
    "SessionExpired",
    "SessionNotFound",
    "SessionRecord",
    "SessionStore",
    "StoreError",
    "TableSchema",
    "decode",
    "encode",
]
