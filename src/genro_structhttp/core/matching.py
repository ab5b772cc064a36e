# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Request matching strategies.

A matcher decides, for one incoming request and one candidate method, whether
the request targets that method and which application-data arguments to pass.
The dispatcher asks every method in table order and stops at the first match.

Contract
--------
``await matcher.match(request, method_name, params)`` returns a
:class:`MatchResult`. ``params`` lists only the application-data parameters of
the method: context and request parameters are filled by the dispatcher.

- ``MatchResult.no_match()``: try the next method.
- ``MatchResult.matched(*args)``: invoke the method; ``args`` must hold exactly
  one value per entry in ``params``.
- ``MatchResult.failed(error)``: the request targets this method but its
  arguments cannot be bound; ``error`` is answered as if the method had
  returned it.

Default strategy
----------------
:class:`DefaultMatcher` answers ``POST /<method_name>`` (the bare method name is
accepted as an alias). A single application-data parameter is decoded from the
JSON body into its declared type; more than one never matches, nor does one
whose annotation pydantic cannot decode. Paths are compared relative to the
mount point (see :func:`route_path`).

Custom strategies subclass :class:`Matcher` or are plain functions wrapped by
:class:`FunctionMatcher`::

    def get_by_id(request, method_name, params):
        if request.method != "GET" or not method_name.startswith("get_"):
            return DEFAULT_MATCHER.match(request, method_name, params)
        ...
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from genro_toolbox.typeutils import safe_is_instance
from pydantic import ValidationError
from starlette.requests import Request

from genro_structhttp.exceptions import StatusError

from .shapes import ParamShape

__all__ = [
    "DEFAULT_MATCHER",
    "DefaultMatcher",
    "FunctionMatcher",
    "MatchResult",
    "Matcher",
    "ensure_matcher",
    "route_path",
]


@dataclass(frozen=True)
class MatchResult:
    """Outcome of asking a matcher about one candidate method.

    Attributes:
        arguments: Application-data argument values, in parameter order.
        matches: Whether the request targets the method.
        error: Binding error; only meaningful when ``matches`` is True.
    """

    arguments: list[Any] = field(default_factory=list)
    matches: bool = False
    error: BaseException | None = None

    @classmethod
    def no_match(cls) -> MatchResult:
        return cls()

    @classmethod
    def matched(cls, *arguments: Any) -> MatchResult:
        return cls(arguments=list(arguments), matches=True)

    @classmethod
    def failed(cls, error: BaseException) -> MatchResult:
        return cls(matches=True, error=error)


class Matcher(ABC):
    """Strategy deciding request-to-method correspondence."""

    @abstractmethod
    async def match(
        self, request: Request, method_name: str, params: Sequence[ParamShape]
    ) -> MatchResult:
        """Return the match result of ``request`` against ``method_name``."""
        ...


def route_path(request: Request) -> str:
    """Return the request path relative to the mount point of the handler.

    Enclosing routers (``Mount("/api", app=handler)``) keep the full path in
    ``scope["path"]`` and record the mount point in ``scope["root_path"]``.
    """
    path: str = request.scope["path"]
    root_path: str = request.scope.get("root_path", "")
    if not root_path or not path.startswith(root_path):
        return path
    if path == root_path:
        return ""
    if path[len(root_path)] == "/":
        return path[len(root_path) :]
    return path


class DefaultMatcher(Matcher):
    """Match ``<http_method> <prefix>/<method_name>`` with a JSON body argument.

    Args:
        http_method: HTTP method answered by every exposed method.
        prefix: Path prefix prepended to ``/<method_name>``.
    """

    __slots__ = ("http_method", "prefix")

    def __init__(self, http_method: str = "POST", prefix: str = "") -> None:
        self.http_method = http_method.upper()
        self.prefix = prefix.rstrip("/")

    def path_matches(self, path: str, method_name: str) -> bool:
        return path == f"{self.prefix}/{method_name}" or path == method_name

    async def match(
        self, request: Request, method_name: str, params: Sequence[ParamShape]
    ) -> MatchResult:
        if request.method != self.http_method or not self.path_matches(
            route_path(request), method_name
        ):
            return MatchResult.no_match()
        if not params:
            return MatchResult.matched()
        if len(params) > 1 or params[0].adapter is None:
            return MatchResult.no_match()

        body = await request.body()
        try:
            value = params[0].adapter.validate_json(body)
        except ValidationError as exc:
            return MatchResult.failed(
                StatusError(400, f"failed to decode request body: {_describe(exc)}")
            )
        return MatchResult.matched(value)

    def __repr__(self) -> str:
        return f"DefaultMatcher(http_method={self.http_method!r}, prefix={self.prefix!r})"


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors(include_url=False):
        loc = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{loc}: {error['msg']}" if loc else error["msg"])
    return "; ".join(parts)


class FunctionMatcher(Matcher):
    """Adapt a plain callable to the :class:`Matcher` contract.

    The callable receives ``(request, method_name, params)`` and may be sync or
    async. It returns a :class:`MatchResult` or an
    ``(arguments, matches, error)`` tuple.
    """

    __slots__ = ("func",)

    def __init__(self, func: Callable[..., Any]) -> None:
        self.func = func

    async def match(
        self, request: Request, method_name: str, params: Sequence[ParamShape]
    ) -> MatchResult:
        result = self.func(request, method_name, params)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, MatchResult):
            return result
        arguments, matches, error = result
        return MatchResult(arguments=list(arguments or []), matches=bool(matches), error=error)

    def __repr__(self) -> str:
        return f"FunctionMatcher({getattr(self.func, '__qualname__', self.func)!r})"


DEFAULT_MATCHER = DefaultMatcher()


def ensure_matcher(matcher: Any) -> Matcher:
    """Return ``matcher`` as a :class:`Matcher`, wrapping plain callables."""
    if safe_is_instance(matcher, "genro_structhttp.core.matching.Matcher"):
        return matcher  # type: ignore[no-any-return]
    if isinstance(matcher, type):
        raise TypeError(
            f"matcher must be an instance, got the class {matcher.__name__}; "
            f"pass {matcher.__name__}() instead"
        )
    if callable(matcher):
        return FunctionMatcher(matcher)
    raise TypeError(
        f"matcher must be a Matcher or a callable, got {type(matcher).__name__}"
    )
