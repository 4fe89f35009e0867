"""The perch ASGI application.

``create_app`` wires config, backend, store and routes together::

    app = create_app()                       # from PERCH_* environment
    app = create_app(config, backend=MemoryBackend(TableSchema("t")))

The resulting ``App`` is an ASGI 3 callable.
"""

from __future__ import annotations

import inspect
import logging
import threading
from collections.abc import Callable
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch.api import register_routes
from perch.config import PerchConfig
from perch.routing.router import Router
from perch.server.handler import handle_request
from perch.store.backends.base import SessionBackend
from perch.store.backends.memory import MemoryBackend
from perch.store.codec import TableSchema
from perch.store.sessions import SessionStore

logger = logging.getLogger("perch.app")


class App:
    """ASGI application over a router and a session store.

    The route table is compiled on the first lifespan or HTTP scope,
    after which no more routes or hooks may be added.
    """

    __slots__ = (
        "_freeze_lock",
        "_frozen",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
        "router",
        "store",
    )

    def __init__(self, config: PerchConfig, router: Router, store: SessionStore) -> None:
        self.config = config
        self.router = router
        self.store = store
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync hook run at lifespan startup."""
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync hook run at lifespan shutdown."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Server --

    def run(
        self, host: str | None = None, port: int | None = None, *, app_path: str | None = None
    ) -> None:
        """Serve the app with pounce. Blocks until the server stops.

        Reload is on only in debug mode with an *app_path* to re-import.
        """
        from perch.server.dev import run_server

        self._ensure_frozen()
        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            reload=self.config.debug and app_path is not None,
            app_path=app_path,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        await handle_request(scope, receive, send, router=self.router)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Startup hooks run before the server accepts requests; shutdown
        hooks (closing the backend among them) run after it stops.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    for hook in self._startup_hooks:
                        await run_hook(hook)
                except Exception as exc:
                    logger.exception("startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                try:
                    for hook in self._shutdown_hooks:
                        await run_hook(hook)
                except Exception as exc:
                    logger.exception("shutdown failed")
                    await send({"type": "lifespan.shutdown.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify the app after it has started serving requests."
            raise RuntimeError(msg)

    def _ensure_frozen(self) -> None:
        """Compile the router once, with double-checked locking.

        Concurrent first requests on different worker threads must not
        compile twice.
        """
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self.router.compile()
            logger.debug("route table frozen with %d route(s)", len(self.router.routes))
            self._frozen = True


async def run_hook(hook: Callable[..., Any]) -> None:
    result = hook()
    if inspect.isawaitable(result):
        await result


def build_backend(config: PerchConfig) -> SessionBackend:
    """Build the backend selected by ``config.backend``."""
    schema = TableSchema(config.table_name)
    if config.backend == "memory":
        return MemoryBackend(schema)

    from perch.store.backends.redis import RedisBackend

    return RedisBackend.from_url(
        config.redis_url,
        schema,
        connect_timeout=config.connect_timeout,
        call_timeout=config.call_timeout,
    )


def build_store(config: PerchConfig, backend: SessionBackend | None = None) -> SessionStore:
    """Build a SessionStore over *backend*, or over ``build_backend(config)``."""
    return SessionStore(
        backend if backend is not None else build_backend(config),
        ttl=config.session_ttl,
        call_timeout=config.call_timeout,
        revoke_attempts=config.revoke_attempts,
    )


def create_app(
    config: PerchConfig | None = None,
    *,
    backend: SessionBackend | None = None,
) -> App:
    """Build the session service.

    Without *config*, configuration is read from the environment.
    ``ConfigurationError`` and ``RegistrationError`` are the only
    failures raised here.
    """
    config = config if config is not None else PerchConfig.from_env()
    store = build_store(config, backend)

    router = Router()
    register_routes(router, store, passwords=config.passwords)

    app = App(config, router, store)
    app.on_shutdown(store.backend.aclose)
    return app
