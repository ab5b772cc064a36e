"""Core runtime aggregator for Genro StructHTTP.

Exposes the dispatch pipeline building blocks from a single module.

Public API:
    - ``build_handler`` / ``StructHandler``: the ASGI dispatcher
    - ``Matcher``, ``DefaultMatcher``, ``FunctionMatcher``, ``MatchResult``:
      request matching strategies
    - ``MethodEntry``, ``ParamShape``, ``ParamKind``, ``is_exposable``:
      method shapes and the exposure filter
    - ``RequestContext``: per-request execution context

Importing this module performs only imports; it does not build handlers.
"""

from .context import RequestContext
from .encoding import encode_outcome, error_response
from .handler import StructHandler, build_handler
from .matching import (
    DEFAULT_MATCHER,
    DefaultMatcher,
    FunctionMatcher,
    Matcher,
    MatchResult,
    route_path,
)
from .shapes import MethodEntry, ParamKind, ParamShape, is_error_shape, is_exposable

__all__ = [
    "DEFAULT_MATCHER",
    "DefaultMatcher",
    "FunctionMatcher",
    "MatchResult",
    "Matcher",
    "MethodEntry",
    "ParamKind",
    "ParamShape",
    "RequestContext",
    "StructHandler",
    "build_handler",
    "encode_outcome",
    "error_response",
    "is_error_shape",
    "is_exposable",
    "route_path",
]
