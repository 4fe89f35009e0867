"""Session administration commands.

``create-session``, ``get-session`` and ``revoke`` act on the store
configured through the environment, without going through HTTP.
"""

import argparse
import json
import sys
from collections.abc import Awaitable, Callable
from dataclasses import asdict

import anyio

from perch.errors import ConfigurationError
from perch.store.errors import StoreError
from perch.store.sessions import SessionStore


async def _create(store: SessionStore, args: argparse.Namespace) -> str:
    return await store.create(args.username)


async def _get(store: SessionStore, args: argparse.Namespace) -> str:
    record = await store.get(args.session_id)
    return json.dumps(asdict(record), default=lambda value: value.isoformat(), indent=2)


async def _revoke(store: SessionStore, args: argparse.Namespace) -> str:
    return str(await store.revoke_by_owner(args.username))


_COMMANDS: dict[str, Callable[[SessionStore, argparse.Namespace], Awaitable[str]]] = {
    "create-session": _create,
    "get-session": _get,
    "revoke": _revoke,
}


async def _run(store: SessionStore, args: argparse.Namespace) -> str:
    try:
        return await _COMMANDS[args.command](store, args)
    finally:
        await store.backend.aclose()


def run_session_command(args: argparse.Namespace, *, store: SessionStore | None = None) -> None:
    """Run one admin command and print its result.

    Store and configuration errors are reported on stderr with exit
    code 1.
    """
    from perch.app import build_store
    from perch.config import PerchConfig
    from perch.logs import configure_logging

    try:
        if store is None:
            config = PerchConfig.from_env()
            configure_logging(config.log_level, "text")
            store = build_store(config)
        output = anyio.run(_run, store, args)
    except (ConfigurationError, StoreError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    print(output)
