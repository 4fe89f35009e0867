"""Perch: a minimal session-authentication service.

Issues, resolves and revokes opaque session tokens for a username over
a small JSON API.

Basic usage::

    from perch import PerchConfig, create_app

    app = create_app(PerchConfig.from_env())
    app.run()

In tests, back the app with the in-memory store::

    from perch.store import MemoryBackend, TableSchema

    app = create_app(config, backend=MemoryBackend(TableSchema("sessions")))
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "BackendError",
    "ConfigurationError",
    "HTTPError",
    "PerchConfig",
    "PerchError",
    "RegistrationError",
    "Request",
    "Response",
    "Router",
    "SessionStore",
    "create_app",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import perch`` from loading the store and server stack.
    """
    if name in ("App", "create_app"):
        from perch import app as _app

        return getattr(_app, name)

    if name == "PerchConfig":
        from perch.config import PerchConfig

        return PerchConfig

    if name in ("Request", "Response"):
        from perch import http as _http

        return getattr(_http, name)

    if name == "Router":
        from perch.routing.router import Router

        return Router

    if name in ("SessionStore", "BackendError"):
        from perch import store as _store

        return getattr(_store, name)

    if name in ("ConfigurationError", "HTTPError", "PerchError", "RegistrationError"):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
