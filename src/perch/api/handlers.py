"""Handlers for the session endpoints.

Each handler is an object built with its collaborators and called with
the routed request. Failures are raised as ``HTTPError`` subclasses;
the router turns them into ``{"error": ...}`` responses.
"""

import logging
from collections.abc import Iterable

from perch.api.auth import bearer_token, password_accepted
from perch.errors import BadRequest, InternalError, ServiceUnavailable, Unauthorized
from perch.http.request import Request
from perch.http.response import Response, json_response
from perch.store.backends.base import SessionBackend
from perch.store.codec import SessionRecord
from perch.store.errors import BackendError, SessionNotFound
from perch.store.sessions import SessionStore

logger = logging.getLogger("perch.api")

JSON_MEDIA_TYPE = "application/json"


async def _authenticate(store: SessionStore, request: Request) -> SessionRecord:
    """Resolve the bearer token to a live session or raise 400/401/500."""
    session_id = bearer_token(request)
    try:
        return await store.get(session_id)
    except SessionNotFound as exc:
        logger.info("rejected session on %s %s: %s", request.method, request.path, exc)
        raise Unauthorized(str(exc)) from exc
    except BackendError as exc:
        raise InternalError(str(exc)) from exc


class GetSession:
    """``GET /sessions``: resolve the bearer session to its owner."""

    __slots__ = ("_store",)

    def __init__(self, store: SessionStore) -> None:
        self._store = store

    async def __call__(self, request: Request) -> Response:
        record = await _authenticate(self._store, request)
        return json_response(200, {"username": record.username})


class CreateSession:
    """``POST /sessions``: exchange a username and password for a session id."""

    __slots__ = ("_passwords", "_store")

    def __init__(self, store: SessionStore, passwords: Iterable[str]) -> None:
        self._store = store
        self._passwords = frozenset(passwords)

    async def __call__(self, request: Request) -> Response:
        content_type = request.content_type or ""
        if not content_type.startswith(JSON_MEDIA_TYPE):
            raise BadRequest("expects JSON payload")

        try:
            payload = await request.json()
        except ValueError as exc:
            logger.warning("unparsable session payload: %s", exc)
            raise BadRequest("invalid payload, cannot parse JSON") from exc

        if not isinstance(payload, dict):
            raise BadRequest("invalid payload, cannot parse JSON")
        username = payload.get("username")
        password = payload.get("password")
        if not isinstance(username, str) or not isinstance(password, str):
            logger.warning("session payload missing username or password")
            raise BadRequest("invalid payload, cannot parse JSON")

        if not password_accepted(password, self._passwords):
            logger.info("password rejected for %s", username)
            raise Unauthorized("incorrect password or username")

        try:
            session_id = await self._store.create(username)
        except BackendError as exc:
            raise InternalError(str(exc)) from exc
        return json_response(200, {"sessionId": session_id})


class RevokeUserSessions:
    """``DELETE /sessions/:username``: revoke every session of the caller.

    The bearer session must belong to the user named in the path.
    """

    __slots__ = ("_store",)

    def __init__(self, store: SessionStore) -> None:
        self._store = store

    async def __call__(self, request: Request) -> Response:
        record = await _authenticate(self._store, request)
        if record.username != request.path_params.get("username"):
            logger.warning(
                "session owned by %s tried to revoke %s",
                record.username,
                request.path_params.get("username"),
            )
            raise Unauthorized("Invalid session")

        try:
            await self._store.revoke_by_owner(record.username)
        except BackendError as exc:
            raise InternalError(str(exc)) from exc
        return json_response(200, {"username": record.username})


class HealthCheck:
    """``GET /health``: 200 while the backend answers a ping, else 503."""

    __slots__ = ("_backend",)

    def __init__(self, backend: SessionBackend) -> None:
        self._backend = backend

    async def __call__(self, request: Request) -> Response:
        try:
            await self._backend.ping()
        except BackendError as exc:
            logger.warning("health check failed: %s", exc)
            raise ServiceUnavailable(str(exc)) from exc
        return json_response(200, {"status": "ok"})
