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

"""Tests for pluggable matching strategies."""

from __future__ import annotations

import re
from typing import Any

import pytest
from starlette.requests import Request
from starlette.testclient import TestClient

from genro_structhttp import (
    DEFAULT_MATCHER,
    Matcher,
    MatcherContractError,
    MatchResult,
    StatusError,
    build_handler,
    route_path,
)


class Things:
    def __init__(self):
        self.calls: list[str] = []

    def get_thing(self, thing_id: str) -> tuple[dict[str, str], Exception | None]:
        self.calls.append(f"get_thing:{thing_id}")
        return {"id": thing_id}, None

    def get_pair(self, left: str, right: str) -> dict[str, str]:
        return {"left": left, "right": right}

    def no_result(self) -> None:
        self.calls.append("no_result")


def by_id(request: Request, method_name: str, params) -> Any:
    if not method_name.startswith("get_"):
        return DEFAULT_MATCHER.match(request, method_name, params)
    if request.method != "GET":
        return MatchResult.no_match()
    if not params:
        return MatchResult.matched()
    if len(params) > 1:
        return MatchResult.no_match()
    pattern = rf"^/{re.escape(method_name[4:])}/([a-zA-Z0-9_-]+)$"
    found = re.match(pattern, route_path(request))
    if found is None:
        return MatchResult.no_match()
    return MatchResult.matched(found.group(1))


def test_get_with_path_identifier():
    things = Things()
    client = TestClient(build_handler(things, matcher=by_id))
    response = client.get("/thing/1")
    assert response.status_code == 200
    assert response.content == b'{"id":"1"}\n'
    assert things.calls == ["get_thing:1"]


def test_custom_matcher_leaves_other_methods_alone():
    things = Things()
    client = TestClient(build_handler(things, matcher=by_id))
    assert client.post("/no_result").status_code == 204
    assert client.get("/thing/").status_code == 404
    assert client.post("/get_thing", content='"1"').status_code == 404
    assert things.calls == ["no_result"]


class PairMatcher(Matcher):
    """Bind every path segment to one parameter."""

    async def match(self, request, method_name, params):
        segments = route_path(request).strip("/").split("/")
        if segments[0] != method_name or len(segments) - 1 != len(params):
            return MatchResult.no_match()
        return MatchResult.matched(*segments[1:])


def test_matcher_subclass_may_bind_several_arguments():
    client = TestClient(build_handler(Things(), matcher=PairMatcher()))
    response = client.get("/get_pair/a/b")
    assert response.json() == {"left": "a", "right": "b"}


def test_tuple_results_are_accepted():
    def legacy(request, method_name, params):
        if method_name == "get_thing" and route_path(request) == "/legacy":
            return ["7"], True, None
        return None, False, None

    client = TestClient(build_handler(Things(), matcher=legacy))
    assert client.get("/legacy").json() == {"id": "7"}
    assert client.get("/other").status_code == 404


def test_binding_error_skips_invocation():
    things = Things()

    async def reject(request, method_name, params):
        if method_name == "get_thing":
            return MatchResult.failed(StatusError(401, "token required"))
        return MatchResult.no_match()

    client = TestClient(build_handler(things, matcher=reject))
    response = client.get("/anything")
    assert response.status_code == 401
    assert response.json() == {"error": "token required"}
    assert things.calls == []


def test_plain_binding_error_defaults_to_500():
    def broken(request, method_name, params):
        return MatchResult.failed(ValueError("bad"))

    response = TestClient(build_handler(Things(), matcher=broken)).get("/x")
    assert response.status_code == 500
    assert response.json() == {"error": "bad"}


@pytest.mark.parametrize("arguments", [[], ["1", "2"]])
def test_wrong_argument_count_is_a_contract_violation(arguments):
    def miscount(request, method_name, params):
        if method_name == "get_thing":
            return MatchResult.matched(*arguments)
        return MatchResult.no_match()

    client = TestClient(build_handler(Things(), matcher=miscount))
    with pytest.raises(MatcherContractError) as exc_info:
        client.get("/thing/1")
    assert exc_info.value.method_name == "get_thing"
    assert exc_info.value.expected == 1
    assert exc_info.value.got == len(arguments)


def test_matcher_options_require_default_matcher():
    with pytest.raises(TypeError):
        build_handler(Things(), matcher=by_id, matcher_prefix="/api")


def test_invalid_matcher_is_rejected():
    with pytest.raises(TypeError):
        build_handler(Things(), matcher=42)
