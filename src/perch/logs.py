"""Logging setup.

Modules log through ``logging.getLogger("perch.<area>")``. This module
attaches the single handler those loggers propagate to::

    configure_logging("info", "json")

The ``json`` format writes one object per line with ``timestamp``,
``level``, ``logger`` and ``message`` keys, plus ``exc_info`` when a
traceback is attached.
"""

import logging
import sys
from typing import TextIO

from pythonjsonlogger.json import JsonFormatter

from perch.errors import ConfigurationError

ROOT_LOGGER = "perch"
TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
JSON_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s"


def build_formatter(fmt: str) -> logging.Formatter:
    """Return the formatter for *fmt* (``json`` or ``text``)."""
    if fmt == "json":
        return JsonFormatter(
            JSON_FIELDS,
            rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
        )
    if fmt == "text":
        return logging.Formatter(TEXT_FORMAT)
    msg = f"Unknown log format {fmt!r}. Use 'json' or 'text'."
    raise ConfigurationError(msg)


def configure_logging(
    level: str = "info", fmt: str = "json", *, stream: TextIO | None = None
) -> logging.Logger:
    """Install one stream handler on the ``perch`` logger.

    Calling it again replaces the handler instead of stacking another.
    """
    numeric = logging.getLevelNamesMapping().get(level.upper())
    if numeric is None:
        msg = f"Unknown log level {level!r}."
        raise ConfigurationError(msg)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(build_formatter(fmt))

    logger = logging.getLogger(ROOT_LOGGER)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(numeric)
    logger.propagate = False
    return logger
