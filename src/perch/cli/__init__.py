"""Perch CLI: server, route listing and session administration.

Entry point registered as ``perch`` in ``pyproject.toml``::

    [project.scripts]
    perch = "perch.cli:main"

Every command except ``routes`` reads its configuration from the
``PERCH_*`` environment variables.
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``perch`` command."""
    parser = argparse.ArgumentParser(
        prog="perch",
        description="Perch: a minimal session-authentication service.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- perch serve ------------------------------------------------------
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service")
    serve_parser.add_argument("--host", default=None, help="Bind host address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port number")

    # -- perch routes -----------------------------------------------------
    subparsers.add_parser("routes", help="List the registered routes")

    # -- perch create-session ---------------------------------------------
    create_parser = subparsers.add_parser("create-session", help="Issue a session for a user")
    create_parser.add_argument("username", help="Owner of the new session")

    # -- perch get-session ------------------------------------------------
    get_parser = subparsers.add_parser("get-session", help="Show a session record as JSON")
    get_parser.add_argument("session_id", help="Session id to look up")

    # -- perch revoke -----------------------------------------------------
    revoke_parser = subparsers.add_parser("revoke", help="Revoke every session of a user")
    revoke_parser.add_argument("username", help="User whose sessions are removed")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from perch.cli._serve import run_serve

        run_serve(args)
    elif args.command == "routes":
        from perch.cli._routes import run_routes

        run_routes(args)
    else:
        from perch.cli._sessions import run_session_command

        run_session_command(args)
