"""Genro StructHTTP - Expose an object's methods as HTTP endpoints.

Given any object, ``build_handler`` inspects its public methods and returns an
ASGI application. Each request is matched against the methods, arguments are
decoded from the request, the method is called and its return value is
encoded onto the response. No routing, decoding or encoding code is written
by the object's author.

Public exports:
    - ``build_handler``: Build the ASGI handler for an object
    - ``StructHandler``: The handler class
    - ``Matcher`` / ``DefaultMatcher`` / ``MatchResult``: Matching strategies
    - ``RequestContext``: Per-request context injected into methods
    - ``StatusError``: Error carrying an HTTP status code

Example::

    from genro_structhttp import StatusError, build_handler

    class Inventory:
        def __init__(self):
            self.items = {"apple": 3}

        def count(self, name: str) -> tuple[int, StatusError | None]:
            if name not in self.items:
                return 0, StatusError(404, f"unknown item {name!r}")
            return self.items[name], None

    app = build_handler(Inventory())
    # POST /count  body: "apple"  ->  200  3
"""

__version__ = "0.1.0"

from .core import (
    DEFAULT_MATCHER,
    DefaultMatcher,
    FunctionMatcher,
    Matcher,
    MatchResult,
    MethodEntry,
    ParamKind,
    ParamShape,
    RequestContext,
    StructHandler,
    build_handler,
    is_exposable,
    route_path,
)
from .exceptions import (
    HTTPStatusCoder,
    MatcherContractError,
    NotFound,
    StatusError,
    status_code_of,
)

__all__ = [
    "DEFAULT_MATCHER",
    "DefaultMatcher",
    "FunctionMatcher",
    "HTTPStatusCoder",
    "MatchResult",
    "Matcher",
    "MatcherContractError",
    "MethodEntry",
    "NotFound",
    "ParamKind",
    "ParamShape",
    "RequestContext",
    "StatusError",
    "StructHandler",
    "build_handler",
    "is_exposable",
    "route_path",
    "status_code_of",
]
