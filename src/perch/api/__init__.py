"""Session HTTP API.

``register_routes`` binds the handlers to a store and installs them on
a router::

    router = Router()
    register_routes(router, store, passwords=config.passwords)
    router.compile()
"""

from collections.abc import Iterable

from perch.api.auth import bearer_token, password_accepted
from perch.api.handlers import CreateSession, GetSession, HealthCheck, RevokeUserSessions
from perch.routing.router import Router
from perch.store.sessions import SessionStore

__all__ = [
    "CreateSession",
    "GetSession",
    "HealthCheck",
    "RevokeUserSessions",
    "bearer_token",
    "password_accepted",
    "register_routes",
]


def register_routes(router: Router, store: SessionStore, *, passwords: Iterable[str]) -> None:
    """Register the session and health endpoints on *router*."""
    router.register("GET", "/sessions", GetSession(store), name="get_session")
    router.register("POST", "/sessions", CreateSession(store, passwords), name="create_session")
    router.register(
        "DELETE",
        "/sessions/:username",
        RevokeUserSessions(store),
        name="revoke_user_sessions",
    )
    router.register("GET", "/health", HealthCheck(store.backend), name="health")
