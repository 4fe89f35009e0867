"""Service configuration.

PerchConfig is a frozen dataclass, immutable after creation. Build it
directly in tests, or from the process environment at startup::

    config = PerchConfig.from_env()
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Literal

from perch.errors import ConfigurationError

type BackendKind = Literal["redis", "memory"]
type LogFormat = Literal["json", "text"]

DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_SESSION_TTL_SECONDS = 7 * 24 * 60 * 60
DEFAULT_CONNECT_TIMEOUT = 2.0
DEFAULT_CALL_TIMEOUT = 3.0
DEFAULT_REVOKE_ATTEMPTS = 3
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000

_BACKENDS = ("redis", "memory")
_LOG_FORMATS = ("json", "text")
_LOG_LEVELS = ("debug", "info", "warning", "error", "critical")
_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off", "")


@dataclass(frozen=True, slots=True)
class PerchConfig:
    """Service configuration. Immutable after creation.

    ``table_name`` and ``passwords`` have no useful default; ``from_env``
    requires them.
    """

    # Storage
    table_name: str = "sessions"
    backend: BackendKind = "redis"
    redis_url: str = DEFAULT_REDIS_URL
    session_ttl: timedelta = timedelta(seconds=DEFAULT_SESSION_TTL_SECONDS)
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    call_timeout: float = DEFAULT_CALL_TIMEOUT
    revoke_attempts: int = DEFAULT_REVOKE_ATTEMPTS

    # Auth
    passwords: frozenset[str] = frozenset()

    # Server
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    debug: bool = False

    # Logging
    log_level: str = "info"
    log_format: LogFormat = "json"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PerchConfig:
        """Load configuration from ``PERCH_*`` environment variables.

        Raises ``ConfigurationError`` for missing required values or
        malformed numbers.
        """
        env = os.environ if environ is None else environ

        table_name = env.get("PERCH_TABLE_NAME") or env.get("TABLE_NAME")
        if not table_name:
            msg = "PERCH_TABLE_NAME (or TABLE_NAME) must be set."
            raise ConfigurationError(msg)

        raw_passwords = env.get("PERCH_PASSWORDS", "").split(",")
        passwords = frozenset(p.strip() for p in raw_passwords if p.strip())
        if not passwords:
            msg = "PERCH_PASSWORDS must list at least one accepted password."
            raise ConfigurationError(msg)

        backend = env.get("PERCH_BACKEND", "redis").strip().lower()
        if backend not in _BACKENDS:
            msg = f"PERCH_BACKEND must be one of {', '.join(_BACKENDS)}, got {backend!r}."
            raise ConfigurationError(msg)

        log_format = env.get("PERCH_LOG_FORMAT", "json").strip().lower()
        if log_format not in _LOG_FORMATS:
            msg = f"PERCH_LOG_FORMAT must be one of {', '.join(_LOG_FORMATS)}, got {log_format!r}."
            raise ConfigurationError(msg)

        log_level = env.get("PERCH_LOG_LEVEL", "info").strip().lower()
        if log_level not in _LOG_LEVELS:
            msg = f"PERCH_LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {log_level!r}."
            raise ConfigurationError(msg)

        ttl_seconds = _positive(env, "PERCH_SESSION_TTL_SECONDS", int, DEFAULT_SESSION_TTL_SECONDS)
        revoke_attempts = _positive(env, "PERCH_REVOKE_ATTEMPTS", int, DEFAULT_REVOKE_ATTEMPTS)

        return cls(
            table_name=table_name,
            backend=backend,
            redis_url=env.get("PERCH_REDIS_URL", DEFAULT_REDIS_URL),
            session_ttl=timedelta(seconds=ttl_seconds),
            connect_timeout=_positive(env, "PERCH_CONNECT_TIMEOUT", float, DEFAULT_CONNECT_TIMEOUT),
            call_timeout=_positive(env, "PERCH_CALL_TIMEOUT", float, DEFAULT_CALL_TIMEOUT),
            revoke_attempts=revoke_attempts,
            passwords=passwords,
            host=env.get("PERCH_HOST", DEFAULT_HOST),
            port=_positive(env, "PERCH_PORT", int, DEFAULT_PORT),
            debug=_flag(env, "PERCH_DEBUG", False),
            log_level=log_level,
            log_format=log_format,
        )


def _positive[N: (int, float)](env: Mapping[str, str], name: str, kind: type[N], default: N) -> N:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = kind(raw.strip())
    except ValueError:
        msg = f"{name} must be a number, got {raw!r}."
        raise ConfigurationError(msg) from None
    if value <= 0:
        msg = f"{name} must be positive, got {raw!r}."
        raise ConfigurationError(msg)
    return value


def _flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    msg = f"{name} must be a boolean flag, got {raw!r}."
    raise ConfigurationError(msg)
