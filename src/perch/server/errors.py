"""Error responses for perch requests.

Maps HTTPError exceptions and unexpected failures to JSON ``Response``
objects so no handler error escapes the invocation.
"""

import logging

from perch.errors import HTTPError
from perch.http.request import Request
from perch.http.response import Response, error_response

logger = logging.getLogger("perch.server")

INTERNAL_ERROR_MESSAGE = "internal server error"


def handle_http_error(exc: HTTPError, request: Request) -> Response:
    """Map an HTTPError to a ``{"error": detail}`` response."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
    return error_response(exc.status, exc.detail or f"Error {exc.status}")


def handle_internal_error(exc: Exception, request: Request) -> Response:
    """Log an unexpected failure and return a generic 500 response.

    The exception text is never sent to the client.
    """
    logger.error(
        "unhandled %s while handling %s %s",
        type(exc).__name__,
        request.method,
        request.path,
        exc_info=exc,
    )
    return error_response(500, INTERNAL_ERROR_MESSAGE)
