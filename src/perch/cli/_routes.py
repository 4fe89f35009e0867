"""``perch routes``: list registered routes.

The table is built over an in-memory store, so no configuration or
backend connection is needed.
"""

import argparse

from perch.api import register_routes
from perch.routing.router import Router
from perch.store.backends.memory import MemoryBackend
from perch.store.codec import TableSchema
from perch.store.sessions import SessionStore


def build_route_table() -> Router:
    router = Router()
    store = SessionStore(MemoryBackend(TableSchema("routes")))
    register_routes(router, store, passwords=())
    router.compile()
    return router


def run_routes(args: argparse.Namespace) -> None:
    """Print a METHOD, PATH, HANDLER table of the service's routes."""
    routes = build_route_table().routes
    rows = [(str(route.method), route.pattern, route.handler_name) for route in routes]

    width_method = max(6, *(len(r[0]) for r in rows))  # "METHOD" header
    width_path = max(4, *(len(r[1]) for r in rows))  # "PATH" header

    fmt = f"{{:<{width_method}}}  {{:<{width_path}}}  {{}}"
    print(fmt.format("METHOD", "PATH", "HANDLER"))
    sep_len = width_method + width_path + 4 + max(len(r[2]) for r in rows)
    print("-" * min(sep_len, 80))
    for method, path, handler_name in rows:
        print(fmt.format(method, path, handler_name))
