"""Tests for perch.logs: handler installation and JSON output."""

import io
import json
import logging

import pytest

from perch.errors import ConfigurationError
from perch.logs import configure_logging


class TestConfigureLogging:
    def test_json_lines(self) -> None:
        stream = io.StringIO()
        configure_logging("info", "json", stream=stream)

        logging.getLogger("perch.store").info("3 session(s) found for %s", "alice")

        entry = json.loads(stream.getvalue().strip())
        assert entry["message"] == "3 session(s) found for alice"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "perch.store"
        assert "timestamp" in entry

    def test_json_includes_traceback(self) -> None:
        stream = io.StringIO()
        configure_logging("info", "json", stream=stream)

        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logging.getLogger("perch.server").exception("unhandled")

        entry = json.loads(stream.getvalue().strip())
        assert "RuntimeError: boom" in entry["exc_info"]

    def test_level_filters(self) -> None:
        stream = io.StringIO()
        configure_logging("warning", "text", stream=stream)

        logging.getLogger("perch.api").info("quiet")
        logging.getLogger("perch.api").warning("loud")

        output = stream.getvalue()
        assert "quiet" not in output
        assert "WARNING" in output
        assert "perch.api: loud" in output

    def test_reconfigure_replaces_handler(self) -> None:
        configure_logging("info", "json", stream=io.StringIO())
        logger = configure_logging("info", "text", stream=io.StringIO())
        assert len(logger.handlers) == 1

    def test_unknown_format(self) -> None:
        with pytest.raises(ConfigurationError, match="log format"):
            configure_logging("info", "xml")

    def test_unknown_level(self) -> None:
        with pytest.raises(ConfigurationError, match="log level"):
            configure_logging("loud", "json")
