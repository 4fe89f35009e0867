"""Tests for perch.routing.router: per-method trie router."""

import pytest

from perch.errors import BadRequest, RegistrationError
from perch.http.request import Request
from perch.http.response import Response, json_response
from perch.routing.route import Method, SegmentKind
from perch.routing.router import Router, parse_pattern, split_path


async def _ok(request: Request) -> Response:
    return json_response(200, {"params": dict(request.path_params)})


def _named(name: str):
    async def handler(request: Request) -> Response:
        return json_response(200, {"handler": name, "params": dict(request.path_params)})

    handler.__name__ = name
    return handler


class TestParsePattern:
    def test_literal(self) -> None:
        segments = parse_pattern("/sessions")
        assert [s.value for s in segments] == ["sessions"]
        assert segments[0].kind is SegmentKind.LITERAL

    def test_param(self) -> None:
        segments = parse_pattern("/sessions/:username")
        assert segments[1].kind is SegmentKind.PARAM
        assert segments[1].value == "username"

    def test_catch_all(self) -> None:
        segments = parse_pattern("/files/*rest")
        assert segments[1].kind is SegmentKind.CATCH_ALL
        assert segments[1].value == "rest"

    def test_root(self) -> None:
        assert parse_pattern("/") == []

    def test_must_start_with_slash(self) -> None:
        with pytest.raises(RegistrationError, match="must start with '/'"):
            parse_pattern("sessions")

    def test_rejects_brace_syntax(self) -> None:
        with pytest.raises(RegistrationError) as exc_info:
            parse_pattern("/sessions/{username}")
        assert "':param'" in str(exc_info.value)
        assert "/sessions/{username}" in str(exc_info.value)

    def test_rejects_angle_syntax(self) -> None:
        with pytest.raises(RegistrationError, match="':param'"):
            parse_pattern("/sessions/<username>")

    def test_rejects_unnamed_param(self) -> None:
        with pytest.raises(RegistrationError, match="unnamed parameter"):
            parse_pattern("/sessions/:")

    def test_catch_all_must_be_last(self) -> None:
        with pytest.raises(RegistrationError, match="must be the last segment"):
            parse_pattern("/files/*rest/more")


class TestSplitPath:
    def test_ignores_trailing_and_duplicate_slashes(self) -> None:
        assert split_path("//sessions///alice/") == ["sessions", "alice"]

    def test_root(self) -> None:
        assert split_path("/") == []


class TestRegistration:
    def test_conflicting_param_names_rejected(self) -> None:
        r = Router()
        r.register("DELETE", "/sessions/:a", _ok)
        with pytest.raises(RegistrationError, match="conflicts with"):
            r.register("DELETE", "/sessions/:b", _ok)

    def test_same_patterns_under_different_methods_allowed(self) -> None:
        r = Router()
        r.register("GET", "/sessions/:a", _ok)
        r.register("DELETE", "/sessions/:b", _ok)
        assert len(r.routes) == 2

    def test_duplicate_pattern_rejected(self) -> None:
        r = Router()
        r.register("GET", "/sessions", _ok)
        with pytest.raises(RegistrationError, match="already registered"):
            r.register("GET", "/sessions", _ok)

    def test_duplicate_after_normalization_rejected(self) -> None:
        r = Router()
        r.register("GET", "/sessions", _ok)
        with pytest.raises(RegistrationError, match="duplicates"):
            r.register("GET", "/sessions/", _ok)

    def test_conflicting_catch_all_names_rejected(self) -> None:
        r = Router()
        r.register("GET", "/files/*rest", _ok)
        with pytest.raises(RegistrationError, match="catch-all"):
            r.register("GET", "/files/*path", _ok)

    def test_unsupported_method_rejected(self) -> None:
        r = Router()
        with pytest.raises(RegistrationError, match="Unsupported method 'FETCH'"):
            r.register("FETCH", "/sessions", _ok)

    def test_method_is_case_insensitive(self) -> None:
        r = Router()
        route = r.register("get", "/sessions", _ok)
        assert route.method is Method.GET

    def test_register_after_compile_rejected(self) -> None:
        r = Router()
        r.register("GET", "/sessions", _ok)
        r.compile()
        assert r.frozen
        with pytest.raises(RegistrationError, match="frozen"):
            r.register("POST", "/sessions", _ok)

    def test_failed_registration_leaves_table_untouched(self) -> None:
        r = Router()
        r.register("GET", "/a/:x/b", _ok)
        with pytest.raises(RegistrationError):
            r.register("GET", "/a/:y/c", _ok)
        r.compile()
        assert r.match("GET", "/a/1/c") is None
        assert len(r.routes) == 1

    def test_routes_in_registration_order(self) -> None:
        r = Router()
        r.register("GET", "/sessions", _named("get_session"))
        r.register("POST", "/sessions", _ok, name="create")
        assert [(str(rt.method), rt.pattern) for rt in r.routes] == [
            ("GET", "/sessions"),
            ("POST", "/sessions"),
        ]
        assert r.routes[0].handler_name == "get_session"
        assert r.routes[1].handler_name == "create"


class TestMatch:
    def test_static_beats_param(self) -> None:
        r = Router()
        r.register("GET", "/sessions/:username", _named("param"))
        r.register("GET", "/sessions/active", _named("literal"))
        r.compile()

        match = r.match("GET", "/sessions/active")
        assert match is not None
        assert match.route.pattern == "/sessions/active"
        assert match.path_params == {}

        match = r.match("GET", "/sessions/alice")
        assert match is not None
        assert match.path_params == {"username": "alice"}

    def test_backtracks_from_dead_end_literal(self) -> None:
        r = Router()
        r.register("GET", "/sessions/active/list", _ok)
        r.register("GET", "/sessions/:username/devices", _ok)
        r.compile()

        match = r.match("GET", "/sessions/active/devices")
        assert match is not None
        assert match.route.pattern == "/sessions/:username/devices"
        assert match.path_params == {"username": "active"}

    def test_catch_all_binds_rest(self) -> None:
        r = Router()
        r.register("GET", "/files/*rest", _ok)
        r.compile()

        match = r.match("GET", "/files/a/b/c.txt")
        assert match is not None
        assert match.path_params == {"rest": "a/b/c.txt"}

    def test_catch_all_needs_at_least_one_segment(self) -> None:
        r = Router()
        r.register("GET", "/files/*rest", _ok)
        r.compile()
        assert r.match("GET", "/files") is None

    def test_param_needs_a_segment(self) -> None:
        r = Router()
        r.register("GET", "/sessions/:user_id", _ok)
        r.compile()
        assert r.match("GET", "/sessions") is None

    def test_trailing_slash_ignored(self) -> None:
        r = Router()
        r.register("GET", "/sessions", _ok)
        r.compile()
        assert r.match("GET", "/sessions/") is not None
        assert r.match("GET", "//sessions") is not None

    def test_no_match(self) -> None:
        r = Router()
        r.register("GET", "/sessions", _ok)
        r.compile()
        assert r.match("GET", "/users") is None

    def test_method_without_subtable(self) -> None:
        r = Router()
        r.register("GET", "/sessions", _ok)
        r.compile()
        assert r.match("PUT", "/sessions") is None

    def test_unsupported_method(self) -> None:
        r = Router()
        r.register("GET", "/sessions", _ok)
        r.compile()
        assert r.match("BREW", "/sessions") is None


class TestDispatch:
    async def test_calls_handler_with_path_params(self) -> None:
        r = Router()
        r.register("DELETE", "/sessions/:username", _ok)
        r.compile()

        response = await r.dispatch(Request.build("DELETE", "/sessions/alice"))
        assert response.status == 200
        assert response.json() == {"params": {"username": "alice"}}

    async def test_handler_called_once_and_response_returned_as_is(self) -> None:
        sentinel = Response("{}", status=201)
        calls: list[Request] = []

        async def handler(request: Request) -> Response:
            calls.append(request)
            return sentinel

        r = Router()
        r.register("POST", "/sessions", handler)
        r.compile()

        response = await r.dispatch(Request.build("POST", "/sessions"))
        assert response is sentinel
        assert len(calls) == 1

    async def test_router_params_overwrite_caller_params(self) -> None:
        r = Router()
        r.register("DELETE", "/sessions/:username", _ok)
        r.compile()

        request = Request.build(
            "DELETE", "/sessions/bob", path_params={"username": "mallory", "x": "1"}
        )
        response = await r.dispatch(request)
        assert response.json() == {"params": {"username": "bob"}}

    async def test_not_found_payload(self) -> None:
        r = Router()
        r.register("GET", "/sessions", _ok)
        r.compile()

        response = await r.dispatch(Request.build("GET", "/nope"))
        assert response.status == 404
        assert response.json() == {"error": "endpoint /nope not found"}
        assert response.content_type == "application/json"

    async def test_unsupported_method_is_not_found(self) -> None:
        r = Router()
        r.register("GET", "/sessions", _ok)
        r.compile()

        response = await r.dispatch(Request.build("BREW", "/sessions"))
        assert response.status == 404

    async def test_custom_not_found(self) -> None:
        def missing(request: Request) -> Response:
            return json_response(404, {"missing": request.path})

        r = Router(not_found=missing)
        r.compile()

        response = await r.dispatch(Request.build("GET", "/x"))
        assert response.json() == {"missing": "/x"}

    async def test_http_error_becomes_status(self) -> None:
        async def bad(request: Request) -> Response:
            raise BadRequest("x")

        r = Router()
        r.register("GET", "/bad", bad)
        r.compile()

        response = await r.dispatch(Request.build("GET", "/bad"))
        assert response.status == 400
        assert response.json() == {"error": "x"}

    async def test_unexpected_error_becomes_500(self, caplog: pytest.LogCaptureFixture) -> None:
        async def boom(request: Request) -> Response:
            raise RuntimeError("secret detail")

        r = Router()
        r.register("GET", "/boom", boom)
        r.compile()

        with caplog.at_level("ERROR", logger="perch.server"):
            response = await r.dispatch(Request.build("GET", "/boom"))
        assert response.status == 500
        assert response.json() == {"error": "internal server error"}
        assert "secret detail" not in response.text
        assert any(record.exc_info for record in caplog.records)

    async def test_sync_handler(self) -> None:
        def sync(request: Request) -> Response:
            return json_response(201, {"ok": True})

        r = Router()
        r.register("POST", "/sync", sync)
        r.compile()

        response = await r.dispatch(Request.build("POST", "/sync"))
        assert response.status == 201
