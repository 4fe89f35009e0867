"""Tests for perch.errors and the server error handlers."""

import logging

import pytest

from perch.errors import (
    BadRequest,
    HTTPError,
    InternalError,
    NotFound,
    PerchError,
    ServiceUnavailable,
    Unauthorized,
)
from perch.http.request import Request
from perch.server.errors import handle_http_error, handle_internal_error


class TestHTTPError:
    @pytest.mark.parametrize(
        ("cls", "status"),
        [
            (BadRequest, 400),
            (Unauthorized, 401),
            (NotFound, 404),
            (InternalError, 500),
            (ServiceUnavailable, 503),
        ],
    )
    def test_status(self, cls: type[HTTPError], status: int) -> None:
        exc = cls("boom")
        assert exc.status == status
        assert isinstance(exc, PerchError)
        assert str(exc) == f"{status}: boom"

    def test_internal_default_detail(self) -> None:
        assert InternalError().detail == "internal server error"

    def test_str_without_detail(self) -> None:
        assert str(HTTPError(status=418)) == "418"


class TestHandlers:
    def test_http_error_body(self) -> None:
        request = Request.build("GET", "/sessions")
        response = handle_http_error(Unauthorized("Invalid session"), request)
        assert response.status == 401
        assert response.json() == {"error": "Invalid session"}

    def test_http_error_without_detail(self) -> None:
        response = handle_http_error(HTTPError(status=418), Request.build("GET", "/"))
        assert response.json() == {"error": "Error 418"}

    def test_internal_error_hides_message(self, caplog: pytest.LogCaptureFixture) -> None:
        request = Request.build("POST", "/sessions")
        with caplog.at_level(logging.ERROR, logger="perch.server"):
            response = handle_internal_error(RuntimeError("secret detail"), request)

        assert response.status == 500
        assert response.json() == {"error": "internal server error"}
        assert "unhandled RuntimeError while handling POST /sessions" in caplog.text
