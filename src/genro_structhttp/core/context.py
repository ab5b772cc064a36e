# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""RequestContext - Execution context of a single HTTP request.

Exposed methods that declare a parameter annotated with :class:`RequestContext`
receive one built from the incoming request. The context never carries
user-supplied data: it is the ambient environment of the call (application,
state, connection) and the cancellation carrier.

Example::

    from genro_structhttp import RequestContext

    class Reports:
        async def build(self, ctx: RequestContext, order: ReportOrder) -> Report:
            for section in order.sections:
                if await ctx.is_cancelled():
                    break
                ...

Subclasses may add adapter-specific properties; parameter classification uses
``issubclass`` so a subclass annotation is also injected.
"""

from __future__ import annotations

from typing import Any

from starlette.requests import Request

__all__ = ["RequestContext"]


class RequestContext:
    """Per-request execution context.

    Properties:
        request: The Starlette request this context belongs to.
        app: ASGI application hosting the handler (``scope["app"]``), if any.
        state: Request-scoped state object.
        scope: Raw ASGI scope.
        client: Client address, if known.
        path_params: Path parameters set by an enclosing router, if any.
    """

    __slots__ = ("_request",)

    def __init__(self, request: Request) -> None:
        self._request = request

    @property
    def request(self) -> Request:
        return self._request

    @property
    def app(self) -> Any:
        return self._request.scope.get("app")

    @property
    def state(self) -> Any:
        return self._request.state

    @property
    def scope(self) -> dict[str, Any]:
        return self._request.scope

    @property
    def client(self) -> Any:
        return self._request.client

    @property
    def path_params(self) -> dict[str, Any]:
        return self._request.path_params

    async def is_cancelled(self) -> bool:
        """Return True once the client has disconnected."""
        return await self._request.is_disconnected()

    def __repr__(self) -> str:
        return f"<RequestContext {self._request.method} {self._request.url.path}>"
