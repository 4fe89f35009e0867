"""Immutable HTTP request.

Frozen metadata with async body access. Path parameters are attached
by the router through ``with_path_params`` once a route matches.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from perch._internal.asgi import Receive
from perch.http.headers import Headers


async def _empty_body() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers) is frozen at creation. The body is
    read once through ``.body()`` and cached.
    """

    method: str
    path: str
    headers: Headers
    path_params: Mapping[str, str] = field(default_factory=dict)
    query_string: bytes = b""
    client: tuple[str, int] | None = None

    # Private: ASGI receive callable for body streaming
    _receive: Receive = _empty_body

    # Private: mutable cache for the body bytes
    # (dict contents are mutable even though the field reference is frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    def with_path_params(self, params: Mapping[str, str]) -> Request:
        """Return a copy carrying *params*, replacing any existing ones.

        The body cache is shared so a body read before routing is not
        lost.
        """
        return replace(self, path_params=dict(params), _cache=self._cache)

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        The ASGI receive is consumed once, then the same bytes are
        returned on subsequent calls.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def json(self) -> Any:
        """Parse the body as JSON.

        Raises ``ValueError`` when the body is not valid JSON, including
        bodies nested too deeply for the decoder.
        """
        raw = await self.body()
        try:
            return json_module.loads(raw)
        except RecursionError as exc:
            msg = "JSON body is nested too deeply"
            raise ValueError(msg) from exc

    # -- Factories --

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any], receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(tuple(pair) for pair in scope.get("headers", ()))),
            query_string=scope.get("query_string", b""),
            client=tuple(client) if client else None,
            _receive=receive,
        )

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
        path_params: Mapping[str, str] | None = None,
    ) -> Request:
        """Create a Request without an ASGI server, e.g. for direct dispatch."""
        request = cls(
            method=method.upper(),
            path=path,
            headers=Headers.from_mapping(headers or {}),
            path_params=dict(path_params or {}),
        )
        request._cache["_body"] = body
        return request
