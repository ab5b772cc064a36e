# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Request dispatcher exposing an object's methods over HTTP.

:func:`build_handler` inspects a target object once and returns a
:class:`StructHandler`, an ASGI application that answers each request by
calling one of the object's public methods.

Construction
------------
Constructor signature::

    build_handler(target, *, matcher=None, logger=None, **matcher_options)

- ``target`` is required; ``None`` raises ``ValueError``. The handler holds a
  reference to it but does not own it.
- ``matcher``: a :class:`Matcher` or a plain callable replacing the default
  strategy (see :mod:`genro_structhttp.core.matching`).
- ``logger``: logger used for dispatch messages (default ``genro_structhttp``).
- ``matcher_*`` options configure the :class:`DefaultMatcher` (e.g.
  ``matcher_prefix="/api"``). They cannot be combined with ``matcher``.

The exposed method table is built at construction time and never changes, so
one handler can serve concurrent requests without locking.

Dispatch
--------
For each request, methods are tried in table order (sorted by name):

1. the matcher gets the request, the method name and its application-data
   parameter shapes;
2. no match: next method; no method left: 404;
3. match with a binding error: the error is answered, the method is not called;
4. clean match: parameters are bound in declaration order. Context parameters
   get a :class:`RequestContext`, request parameters the request itself and
   data parameters consume the matcher's values. A count mismatch raises
   :class:`MatcherContractError`;
5. the method is called (coroutines are awaited, sync methods run in the
   threadpool) and its outcome is encoded.

Exceptions raised by methods are not converted into responses: they reach the
hosting server's error handling unchanged.

Example::

    from genro_structhttp import build_handler

    class Greeter:
        def hello(self, name: str) -> dict:
            return {"greeting": f"Hello, {name}!"}

    app = build_handler(Greeter())
    # uvicorn module:app  ->  POST /hello  body: "world"
"""

from __future__ import annotations

import inspect
import logging
import time
from typing import Any

from genro_toolbox import dictExtract
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from genro_structhttp.exceptions import MatcherContractError, NotFound

from .context import RequestContext
from .encoding import encode_outcome, error_response, outcome_values
from .matching import DefaultMatcher, Matcher, ensure_matcher
from .shapes import MethodEntry, ParamKind, collect_methods

__all__ = ["StructHandler", "build_handler"]


class StructHandler:
    """ASGI application dispatching requests to the methods of one object.

    Slots: ``target`` (the object), ``matcher`` (strategy in use),
    ``_methods`` (exposed method table), ``_logger``.
    """

    __slots__ = ("target", "matcher", "_methods", "_logger")

    def __init__(
        self,
        target: Any,
        *,
        matcher: Matcher,
        logger: logging.Logger | None = None,
    ) -> None:
        if target is None:
            raise ValueError("StructHandler requires a target object")
        self.target = target
        self.matcher = matcher
        self._logger = logger or logging.getLogger("genro_structhttp")
        self._methods = collect_methods(target)
        self._logger.debug(
            "%s exposes %s",
            type(target).__name__,
            ", ".join(entry.name for entry in self._methods) or "no methods",
        )

    @property
    def methods(self) -> tuple[MethodEntry, ...]:
        return self._methods

    def method(self, name: str) -> MethodEntry | None:
        for entry in self._methods:
            if entry.name == name:
                return entry
        return None

    def nodes(self) -> dict[str, Any]:
        """Describe the exposed methods.

        Returns:
            Dict with an ``entries`` key mapping method names to their
            parameter and return shapes and docstring. Empty when nothing is
            exposed.
        """
        entries = {entry.name: entry.describe() for entry in self._methods}
        return {"entries": entries} if entries else {}

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    async def handle(self, request: Request) -> Response:
        """Dispatch ``request`` and return the response to send."""
        for entry in self._methods:
            result = await self.matcher.match(request, entry.name, entry.extra_params)
            if not result.matches:
                continue
            if result.error is not None:
                self._logger.warning("%s binding failed: %s", entry.name, result.error)
                return error_response(result.error, log=self._logger)
            args, kwargs = self._bind(entry, request, result.arguments)
            return await self._invoke(entry, args, kwargs)

        self._logger.debug("no method matches %s %s", request.method, request.url.path)
        return error_response(NotFound(request.method, request.url.path), log=self._logger)

    def _bind(
        self, entry: MethodEntry, request: Request, arguments: list[Any]
    ) -> tuple[list[Any], dict[str, Any]]:
        expected = len(entry.extra_params)
        if len(arguments) != expected:
            raise MatcherContractError(entry.name, expected, len(arguments))
        values = iter(arguments)
        context: RequestContext | None = None
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for param in entry.params:
            if param.kind is ParamKind.CONTEXT:
                if context is None:
                    context = _make_context(param.annotation, request)
                value: Any = context
            elif param.kind is ParamKind.REQUEST:
                value = request
            else:
                value = next(values)
            if param.positional:
                args.append(value)
            else:
                kwargs[param.name] = value
        return args, kwargs

    async def _invoke(
        self, entry: MethodEntry, args: list[Any], kwargs: dict[str, Any]
    ) -> Response:
        self._logger.info("%s start", entry.name)
        t0 = time.perf_counter()
        if entry.is_async:
            result = await entry.func(*args, **kwargs)
        else:
            result = await run_in_threadpool(entry.func, *args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
        elapsed = (time.perf_counter() - t0) * 1000
        self._logger.info("%s end (%.2f ms)", entry.name, elapsed)
        return encode_outcome(entry, outcome_values(entry, result), log=self._logger)

    # ------------------------------------------------------------------
    # ASGI
    # ------------------------------------------------------------------
    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await _run_lifespan(receive, send)
            return
        if scope["type"] != "http":
            raise TypeError(f"StructHandler cannot serve {scope['type']!r} connections")
        request = Request(scope, receive)
        response = await self.handle(request)
        await response(scope, receive, send)

    def __repr__(self) -> str:
        return f"<StructHandler {type(self.target).__name__} ({len(self._methods)} methods)>"


def _make_context(annotation: Any, request: Request) -> RequestContext:
    factory = annotation if isinstance(annotation, type) else RequestContext
    return factory(request)  # type: ignore[no-any-return]


async def _run_lifespan(receive: Receive, send: Send) -> None:
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            await send({"type": "lifespan.shutdown.complete"})
            return


def build_handler(
    target: Any,
    *,
    matcher: Matcher | Any | None = None,
    logger: logging.Logger | None = None,
    **kwargs: Any,
) -> StructHandler:
    """Return an ASGI handler exposing the public methods of ``target``.

    Args:
        target: Object whose methods become endpoints.
        matcher: Strategy replacing :class:`DefaultMatcher`; a
            :class:`Matcher` instance or a plain callable.
        logger: Logger for dispatch messages.
        **kwargs: ``matcher_*`` options forwarded to :class:`DefaultMatcher`
            with the prefix stripped.

    Raises:
        ValueError: If ``target`` is None.
        TypeError: On unknown options, or ``matcher_*`` options combined with
            an explicit ``matcher``.
    """
    matcher_options = dictExtract(kwargs, "matcher_", slice_prefix=True, pop=False)
    unknown = sorted(key for key in kwargs if not key.startswith("matcher_"))
    if unknown:
        raise TypeError(f"Unknown handler options: {', '.join(unknown)}")
    if matcher is None:
        resolved: Matcher = DefaultMatcher(**matcher_options)
    else:
        if matcher_options:
            raise TypeError("matcher_* options only apply to the default matcher")
        resolved = ensure_matcher(matcher)
    return StructHandler(target, matcher=resolved, logger=logger)
