# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Unit tests for the default matcher and the matcher adapters."""

import asyncio
from dataclasses import dataclass

import pytest
from starlette.requests import Request

from genro_structhttp import (
    DefaultMatcher,
    FunctionMatcher,
    Matcher,
    MatchResult,
    ParamKind,
    ParamShape,
    StatusError,
    route_path,
)
from genro_structhttp.core.matching import ensure_matcher


@dataclass
class Point:
    x: int
    y: int


def make_request(method: str, path: str, body: bytes = b"") -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "headers": [],
        "query_string": b"",
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


def run_match(matcher, request, name, *params):
    return asyncio.run(matcher.match(request, name, params))


def data(name, annotation):
    return ParamShape(name=name, kind=ParamKind.DATA, annotation=annotation)


@pytest.mark.parametrize(
    "method, path, expected",
    [
        ("POST", "/ping", True),
        ("POST", "ping", True),
        ("GET", "/ping", False),
        ("PUT", "/ping", False),
        ("POST", "/Ping", False),
        ("POST", "/ping/", False),
        ("POST", "/api/ping", False),
    ],
)
def test_default_path_rules(method, path, expected):
    result = run_match(DefaultMatcher(), make_request(method, path), "ping")
    assert result.matches is expected
    assert result.error is None
    assert result.arguments == []


def test_default_decodes_single_parameter():
    request = make_request("POST", "/move", b'{"x": 1, "y": 2}')
    result = run_match(DefaultMatcher(), request, "move", data("to", Point))
    assert result == MatchResult(arguments=[Point(1, 2)], matches=True)


def test_default_decode_failure_is_a_match_with_error():
    request = make_request("POST", "/move", b'{"x": 1}')
    result = run_match(DefaultMatcher(), request, "move", data("to", Point))
    assert result.matches is True
    assert isinstance(result.error, StatusError)
    assert result.error.status_code == 400
    assert str(result.error).startswith("failed to decode request body: y: ")


def test_default_rejects_several_parameters():
    request = make_request("POST", "/move", b"{}")
    result = run_match(DefaultMatcher(), request, "move", data("a", int), data("b", int))
    assert result == MatchResult.no_match()


def test_default_custom_method_and_prefix():
    matcher = DefaultMatcher(http_method="put", prefix="/api/")
    assert run_match(matcher, make_request("PUT", "/api/ping"), "ping").matches
    assert not run_match(matcher, make_request("POST", "/api/ping"), "ping").matches
    assert repr(matcher) == "DefaultMatcher(http_method='PUT', prefix='/api')"


def test_match_result_constructors():
    assert MatchResult.no_match() == MatchResult([], False, None)
    assert MatchResult.matched(1, 2) == MatchResult([1, 2], True, None)
    err = ValueError("x")
    assert MatchResult.failed(err) == MatchResult([], True, err)


def test_function_matcher_accepts_sync_and_async():
    def sync_func(request, name, params):
        return MatchResult.matched("sync")

    async def async_func(request, name, params):
        return (["async"], True, None)

    request = make_request("GET", "/")
    assert run_match(FunctionMatcher(sync_func), request, "x").arguments == ["sync"]
    assert run_match(FunctionMatcher(async_func), request, "x").arguments == ["async"]


def test_ensure_matcher():
    matcher = DefaultMatcher()
    assert ensure_matcher(matcher) is matcher
    wrapped = ensure_matcher(lambda request, name, params: MatchResult.no_match())
    assert isinstance(wrapped, FunctionMatcher)
    assert isinstance(wrapped, Matcher)
    with pytest.raises(TypeError):
        ensure_matcher("not a matcher")


@pytest.mark.parametrize(
    "path, root_path, expected",
    [
        ("/ping", "", "/ping"),
        ("/api/ping", "/api", "/ping"),
        ("/api", "/api", ""),
        ("/apiary/ping", "/api", "/apiary/ping"),
        ("/ping", "/api", "/ping"),
    ],
)
def test_route_path_strips_mount_point(path, root_path, expected):
    request = make_request("POST", path)
    request.scope["root_path"] = root_path
    assert route_path(request) == expected


def test_default_matches_below_mount_point():
    request = make_request("POST", "/api/ping")
    request.scope["root_path"] = "/api"
    assert run_match(DefaultMatcher(), request, "ping").matches is True


def test_default_skips_parameter_without_adapter():
    class Plain:
        pass

    request = make_request("POST", "/take", b"{}")
    result = run_match(DefaultMatcher(), request, "take", data("payload", Plain))
    assert result == MatchResult.no_match()


def test_matcher_classes_are_rejected():
    with pytest.raises(TypeError, match="must be an instance"):
        ensure_matcher(DefaultMatcher)
