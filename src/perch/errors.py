"""Perch exception hierarchy.

Shared across Router, App, handlers, and the session store so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when service configuration is invalid.

    Typically raised by ``PerchConfig.from_env()`` at startup.
    """


class RegistrationError(PerchError):
    """Raised when a route cannot be registered.

    Unsupported methods, malformed patterns, ambiguous or duplicate
    patterns, and registration after the table is frozen all end up
    here. Only ever raised on the startup path.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by handlers. The router catches these and turns them into
    a JSON ``{"error": detail}`` response with ``status``.
    """

    status: int
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class BadRequest(HTTPError):  # noqa: N818
    """400: the request is malformed or missing required input."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)


class Unauthorized(HTTPError):  # noqa: N818
    """401: invalid credentials, unknown session, or owner mismatch."""

    def __init__(self, detail: str = "Unauthorized") -> None:
        super().__init__(status=401, detail=detail)


class NotFound(HTTPError):  # noqa: N818
    """404: no route matched the request."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class InternalError(HTTPError):  # noqa: N818
    """500: a backend or codec failure surfaced to the client."""

    def __init__(self, detail: str = "internal server error") -> None:
        super().__init__(status=500, detail=detail)


class ServiceUnavailable(HTTPError):  # noqa: N818
    """503: the backing store is not reachable."""

    def __init__(self, detail: str = "Service Unavailable") -> None:
        super().__init__(status=503, detail=detail)
