"""Session backends.

``MemoryBackend`` is always available. ``RedisBackend`` is imported
lazily so the in-memory path never loads the redis client.
"""

from perch.store.backends.base import SessionBackend
from perch.store.backends.memory import MemoryBackend

__all__ = ["MemoryBackend", "RedisBackend", "SessionBackend"]


def __getattr__(name: str) -> object:
    if name == "RedisBackend":
        from perch.store.backends.redis import RedisBackend

        return RedisBackend

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
