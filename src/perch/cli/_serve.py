"""``perch serve``: run the service under pounce."""

import argparse
import sys

from perch.errors import ConfigurationError


def run_serve(args: argparse.Namespace) -> None:
    """Load config, configure logging and serve until interrupted."""
    from perch.app import create_app
    from perch.config import PerchConfig
    from perch.logs import configure_logging

    try:
        config = PerchConfig.from_env()
        configure_logging(config.log_level, config.log_format)
        app = create_app(config)
        app.run(host=args.host, port=args.port)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
