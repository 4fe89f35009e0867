"""Per-method router with trie-based path matching.

Routes are registered during setup and compiled into an immutable
lookup structure before the first request is served.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from perch._internal.invoke import invoke
from perch.errors import HTTPError, RegistrationError
from perch.http.request import Request
from perch.http.response import Response, error_response
from perch.routing.route import Handler, Method, PathSegment, Route, RouteMatch, SegmentKind
from perch.server.errors import handle_http_error, handle_internal_error

logger = logging.getLogger("perch.routing")


def parse_pattern(pattern: str) -> list[PathSegment]:
    """Parse a route pattern into segments.

    Examples::

        "/sessions"            -> [PathSegment("sessions")]
        "/sessions/:username"  -> [PathSegment("sessions"), PathSegment("username", PARAM)]
        "/files/*rest"         -> [PathSegment("files"), PathSegment("rest", CATCH_ALL)]

    Raises ``RegistrationError`` for malformed patterns.
    """
    if not pattern.startswith("/"):
        msg = f"Route pattern {pattern!r} must start with '/'."
        raise RegistrationError(msg)

    parts = [part for part in pattern.strip("/").split("/") if part]
    segments: list[PathSegment] = []
    for index, part in enumerate(parts):
        if (part.startswith("{") and part.endswith("}")) or (
            part.startswith("<") and part.endswith(">")
        ):
            msg = (
                f"Route pattern {pattern!r} uses {{param}} or <param> syntax. "
                "Use ':param' for path parameters, e.g. '/sessions/:username'."
            )
            raise RegistrationError(msg)

        if part[0] in (":", "*"):
            name = part[1:]
            if not name:
                msg = f"Route pattern {pattern!r} has an unnamed parameter at segment {index}."
                raise RegistrationError(msg)
            if part[0] == "*":
                if index != len(parts) - 1:
                    msg = f"Catch-all '{part}' must be the last segment of {pattern!r}."
                    raise RegistrationError(msg)
                segments.append(PathSegment(name, SegmentKind.CATCH_ALL))
            else:
                segments.append(PathSegment(name, SegmentKind.PARAM))
        else:
            segments.append(PathSegment(part))
    return segments


def split_path(path: str) -> list[str]:
    """Tokenize a request path; empty segments are dropped."""
    return [part for part in path.strip("/").split("/") if part]


async def not_found(request: Request) -> Response:
    """Default not-found handler."""
    return error_response(404, f"endpoint {request.path} not found")


class _TrieNode:
    """A node in one method's route trie. Mutable during registration only."""

    __slots__ = ("catch_all", "children", "param", "route")

    def __init__(self) -> None:
        # Literal segment children: "sessions" -> node
        self.children: dict[str, _TrieNode] = {}
        # Single parameter child (one parameter name per position)
        self.param: _ParamEdge | None = None
        # Catch-all edge, consumes the remaining path
        self.catch_all: _CatchAllEdge | None = None
        # Route terminating at this node
        self.route: Route | None = None


@dataclass(slots=True)
class _ParamEdge:
    """A parameter edge in the trie."""

    name: str
    node: _TrieNode
    pattern: str  # first pattern that introduced this edge, for error messages


@dataclass(slots=True)
class _CatchAllEdge:
    """A catch-all edge, terminal by construction."""

    name: str
    route: Route


class Router:
    """Per-method route table with trie-based matching.

    Usage::

        router = Router()
        router.register("GET", "/sessions", get_session)
        router.register("DELETE", "/sessions/:username", revoke_sessions)
        router.compile()
        response = await router.dispatch(request)

    Matching prefers literal segments over parameters, and parameters
    over catch-alls, backtracking when a branch dead-ends.
    """

    __slots__ = ("_compiled", "_not_found", "_roots", "_routes")

    def __init__(self, not_found: Handler = not_found) -> None:
        self._roots: dict[Method, _TrieNode] = {}
        self._routes: list[Route] = []
        self._not_found = not_found
        self._compiled = False

    # -- Registration --

    def register(
        self,
        method: str,
        pattern: str,
        handler: Handler,
        *,
        name: str | None = None,
    ) -> Route:
        """Add a route. Must be called before ``compile()``.

        Raises ``RegistrationError`` if the router is frozen, the method
        is unsupported, or *pattern* is malformed or ambiguous with a
        pattern already registered for the same method.
        """
        if self._compiled:
            msg = f"Cannot register {method} {pattern!r}: the route table is frozen."
            raise RegistrationError(msg)

        parsed_method = Method.parse(method)
        if parsed_method is None:
            supported = ", ".join(m.value for m in Method)
            msg = f"Unsupported method {method!r} for {pattern!r}. Supported: {supported}."
            raise RegistrationError(msg)

        segments = parse_pattern(pattern)
        route = Route(method=parsed_method, pattern=pattern, handler=handler, name=name)
        root = self._roots.get(parsed_method) or _TrieNode()
        self._check_conflicts(root, route, segments)
        self._insert(root, route, segments)
        self._roots[parsed_method] = root
        self._routes.append(route)
        return route

    @staticmethod
    def _check_conflicts(root: _TrieNode, route: Route, segments: list[PathSegment]) -> None:
        """Walk the existing trie without mutating it, rejecting ambiguity."""
        node: _TrieNode | None = root
        for index, seg in enumerate(segments):
            if node is None:
                return  # new branch from here on, nothing to collide with

            if seg.kind is SegmentKind.CATCH_ALL:
                edge = node.catch_all
                if edge is None:
                    return
                if edge.name != seg.value:
                    msg = (
                        f"{route.method} {route.pattern!r} conflicts with "
                        f"{edge.route.pattern!r}: catch-all '*{seg.value}' vs "
                        f"'*{edge.name}' at segment {index}."
                    )
                else:
                    msg = f"{route.method} {route.pattern!r} is already registered."
                raise RegistrationError(msg)

            if seg.kind is SegmentKind.PARAM:
                param = node.param
                if param is None:
                    return
                if param.name != seg.value:
                    msg = (
                        f"{route.method} {route.pattern!r} conflicts with "
                        f"{param.pattern!r}: parameter ':{seg.value}' vs "
                        f"':{param.name}' at segment {index}."
                    )
                    raise RegistrationError(msg)
                node = param.node
            else:
                node = node.children.get(seg.value)

        if node is not None and node.route is not None:
            existing = node.route.pattern
            if existing == route.pattern:
                msg = f"{route.method} {route.pattern!r} is already registered."
            else:
                msg = f"{route.method} {route.pattern!r} duplicates {existing!r}."
            raise RegistrationError(msg)

    @staticmethod
    def _insert(root: _TrieNode, route: Route, segments: list[PathSegment]) -> None:
        node = root
        for seg in segments:
            if seg.kind is SegmentKind.CATCH_ALL:
                node.catch_all = _CatchAllEdge(name=seg.value, route=route)
                return
            if seg.kind is SegmentKind.PARAM:
                if node.param is None:
                    node.param = _ParamEdge(name=seg.value, node=_TrieNode(), pattern=route.pattern)
                node = node.param.node
            else:
                node = node.children.setdefault(seg.value, _TrieNode())
        node.route = route

    def compile(self) -> None:
        """Freeze the router. No more routes can be registered."""
        self._compiled = True

    @property
    def frozen(self) -> bool:
        return self._compiled

    @property
    def routes(self) -> list[Route]:
        """All registered routes, in registration order."""
        return list(self._routes)

    # -- Matching --

    def match(self, method: str, path: str) -> RouteMatch | None:
        """Match *method* and *path* against the route table.

        Returns ``None`` when the method has no sub-table or no pattern
        matches the path.
        """
        parsed_method = Method.parse(method)
        if parsed_method is None:
            return None
        root = self._roots.get(parsed_method)
        if root is None:
            return None
        return self._match_node(root, split_path(path), 0, {})

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
    ) -> RouteMatch | None:
        """Recursively match path parts against the trie."""
        # All parts consumed, so this node must terminate a route
        if index == len(parts):
            if node.route is not None:
                return RouteMatch(route=node.route, path_params=params)
            return None

        part = parts[index]

        # 1. Literal child (static beats dynamic)
        child = node.children.get(part)
        if child is not None:
            result = self._match_node(child, parts, index + 1, params)
            if result is not None:
                return result

        # 2. Parameter child
        if node.param is not None:
            edge = node.param
            result = self._match_node(edge.node, parts, index + 1, {**params, edge.name: part})
            if result is not None:
                return result

        # 3. Catch-all
        if node.catch_all is not None:
            edge_all = node.catch_all
            remaining = "/".join(parts[index:])
            return RouteMatch(
                route=edge_all.route, path_params={**params, edge_all.name: remaining}
            )

        return None

    # -- Dispatch --

    async def dispatch(self, request: Request) -> Response:
        """Route *request* to its handler and return the response.

        Never raises: unmatched requests go to the not-found handler,
        ``HTTPError`` becomes its status with a JSON error body, and any
        other exception becomes a logged 500.
        """
        try:
            match = self.match(request.method, request.path)
            if match is None:
                logger.debug("no route for %s %s", request.method, request.path)
                return await invoke(self._not_found, request)

            logger.debug(
                "%s %s matched %r params=%s",
                request.method,
                request.path,
                match.route.pattern,
                dict(match.path_params),
            )
            routed = request.with_path_params(match.path_params)
            return await invoke(match.route.handler, routed)
        except HTTPError as exc:
            return handle_http_error(exc, request)
        except Exception as exc:
            return handle_internal_error(exc, request)
