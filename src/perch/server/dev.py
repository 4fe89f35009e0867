"""Run the service under the pounce ASGI server.

pounce is an optional dependency (the ``serve`` extra) and is imported
only when a server is actually started.
"""

import logging

from perch.errors import ConfigurationError

logger = logging.getLogger("perch.server")


def run_server(
    app: object,
    host: str,
    port: int,
    *,
    reload: bool = False,
    app_path: str | None = None,
) -> None:
    """Start a single-worker pounce server around the live *app*.

    Pounce's ``run()`` takes an import string, but here we hold an
    ``App`` object, so ``pounce.Server`` is driven directly.

    Args:
        app: The perch ``App``.
        host: Bind host address.
        port: Bind port number.
        reload: Restart on file changes. Needs *app_path*, since a live
            object cannot be re-imported.
        app_path: ``"module:attribute"`` import string pounce re-imports
            on each reload.
    """
    if reload and app_path is None:
        msg = "reload needs an app_path import string such as 'myservice:app'"
        raise ConfigurationError(msg)

    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError as exc:
        msg = "perch serve needs the pounce server: pip install 'perch[serve]'"
        raise ConfigurationError(msg) from exc

    config = ServerConfig(host=host, port=port, workers=1, reload=reload)
    logger.info("serving on http://%s:%d (reload=%s)", host, port, reload)
    Server(config, app, app_path=app_path).run()
