"""Credential helpers for the session endpoints."""

import hmac
from collections.abc import Iterable

from perch.errors import BadRequest
from perch.http.request import Request

AUTHORIZATION = "authorization"
BEARER_PREFIX = "bearer "


def bearer_token(request: Request) -> str:
    """Return the session id carried in the ``Authorization`` header.

    The value is lower-cased and a leading ``bearer `` prefix is removed.
    A missing header, or one that is empty once stripped, raises
    ``BadRequest``.
    """
    raw = request.headers.get(AUTHORIZATION)
    token = (raw or "").lower().removeprefix(BEARER_PREFIX).strip()
    if not token:
        raise BadRequest("Missing Header: Authorization")
    return token


def password_accepted(password: str, accepted: Iterable[str]) -> bool:
    """Compare *password* against every accepted value in constant time."""
    candidate = password.encode("utf-8")
    matched = False
    for secret in accepted:
        # no short-circuit
        matched |= hmac.compare_digest(candidate, secret.encode("utf-8"))
    return matched
