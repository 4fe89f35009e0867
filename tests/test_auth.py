"""Tests for perch.api.auth: bearer extraction and password check."""

import pytest

from perch.api.auth import bearer_token, password_accepted
from perch.errors import BadRequest
from perch.http.request import Request


def _request(authorization: str | None) -> Request:
    headers = {} if authorization is None else {"Authorization": authorization}
    return Request.build("GET", "/sessions", headers=headers)


class TestBearerToken:
    def test_strips_prefix(self) -> None:
        assert bearer_token(_request("Bearer abc-123")) == "abc-123"

    def test_lowercases(self) -> None:
        assert bearer_token(_request("bearer ABC")) == "abc"

    def test_without_prefix(self) -> None:
        assert bearer_token(_request("abc")) == "abc"

    def test_trims_whitespace(self) -> None:
        assert bearer_token(_request("Bearer   abc  ")) == "abc"

    @pytest.mark.parametrize("value", [None, "", "Bearer ", "bearer    "])
    def test_missing(self, value: str | None) -> None:
        with pytest.raises(BadRequest) as exc_info:
            bearer_token(_request(value))
        assert exc_info.value.status == 400


class TestPasswordAccepted:
    def test_accepts_any_configured(self) -> None:
        accepted = {"pingpong", "perlimpinpin"}
        assert password_accepted("pingpong", accepted)
        assert password_accepted("perlimpinpin", accepted)

    def test_rejects_others(self) -> None:
        assert not password_accepted("PINGPONG", {"pingpong"})
        assert not password_accepted("", {"pingpong"})

    def test_empty_set_rejects_everything(self) -> None:
        assert not password_accepted("pingpong", frozenset())

    def test_non_ascii(self) -> None:
        assert password_accepted("dévoid", {"dévoid"})
