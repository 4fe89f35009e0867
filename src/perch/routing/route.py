"""Route, RouteMatch, and the supported HTTP methods."""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from perch.http.request import Request
from perch.http.response import Response


class Method(StrEnum):
    """HTTP methods a route can be registered for.

    The route table keeps one sub-table per member, so an unsupported
    method is an explicit, enumerable case rather than a missing key.
    """

    CONNECT = "CONNECT"
    DELETE = "DELETE"
    GET = "GET"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    PATCH = "PATCH"
    POST = "POST"
    PUT = "PUT"
    TRACE = "TRACE"

    @classmethod
    def parse(cls, value: str) -> Method | None:
        """Return the member for *value* (case-insensitive), or None."""
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


class Handler(Protocol):
    """A request handler.

    Any callable taking the routed ``Request`` and returning a
    ``Response`` (directly or as an awaitable)::

        class GetSession:
            def __init__(self, store: SessionStore) -> None:
                self.store = store

            async def __call__(self, request: Request) -> Response: ...
    """

    def __call__(self, request: Request) -> Response | Awaitable[Response]: ...


class SegmentKind(StrEnum):
    LITERAL = "literal"
    PARAM = "param"
    CATCH_ALL = "catch_all"


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route pattern.

    Literal:    ``sessions``   (kind=LITERAL, value="sessions")
    Param:      ``:username``  (kind=PARAM, value="username")
    Catch-all:  ``*rest``      (kind=CATCH_ALL, value="rest")
    """

    value: str
    kind: SegmentKind = SegmentKind.LITERAL


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition, created at registration time."""

    method: Method
    pattern: str
    handler: Handler
    name: str | None = None

    @property
    def handler_name(self) -> str:
        """Readable name of the handler, for logs and ``perch routes``."""
        if self.name:
            return self.name
        handler = self.handler
        return getattr(handler, "__name__", type(handler).__name__)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: Mapping[str, str]
