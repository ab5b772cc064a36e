# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Method shapes and the exposure filter.

This module turns the public methods of a target object into
:class:`MethodEntry` records. It runs once, when a handler is built; the
resulting table is immutable.

Parameter shapes
----------------
Each bindable parameter is classified by its annotation:

- ``CONTEXT``: annotated with :class:`RequestContext` (or a subclass).
- ``REQUEST``: annotated with ``starlette.requests.Request`` (or a subclass).
- ``DATA``: anything else. Unannotated parameters have shape ``Any``.

``*args`` and ``**kwargs`` are never bound and are left out of the shape list.

Return shapes
-------------
Derived from the return annotation:

- ``-> None`` declares zero values.
- ``-> tuple[A, B]`` (fixed arity) declares one value per element.
- Anything else, including no annotation, declares a single value.

A shape is error-shaped when it is an exception class or a union of exception
classes with ``None``.

Exposure rule
-------------
``is_exposable`` rejects more than two return values, and two return values
whose second is not error-shaped. Rejected methods are skipped silently: they
simply have no route.
"""

from __future__ import annotations

import enum
import inspect
import logging
import types
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, Union, get_args, get_origin, get_type_hints

from pydantic import TypeAdapter
from pydantic.errors import PydanticSchemaGenerationError
from starlette.requests import Request

from .context import RequestContext

__all__ = [
    "MethodEntry",
    "ParamKind",
    "ParamShape",
    "collect_methods",
    "inspect_method",
    "is_error_shape",
    "is_exposable",
    "return_shapes",
]

logger = logging.getLogger("genro_structhttp")


class ParamKind(enum.Enum):
    CONTEXT = "context"
    REQUEST = "request"
    DATA = "data"


@dataclass(frozen=True)
class ParamShape:
    """One bindable parameter of an exposed method.

    Attributes:
        name: Parameter name.
        kind: How the dispatcher fills it.
        annotation: Declared type (``Any`` when missing).
        positional: False for keyword-only parameters.
        adapter: Pydantic adapter decoding JSON into ``annotation``. Built once
            for data parameters; None when pydantic cannot build a schema for
            the annotation (the default matcher then never routes the method).
    """

    name: str
    kind: ParamKind
    annotation: Any = Any
    positional: bool = True
    adapter: TypeAdapter | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.kind is not ParamKind.DATA:
            return
        try:
            adapter = TypeAdapter(self.annotation)
        except PydanticSchemaGenerationError:
            logger.debug("%s: no JSON schema for %r", self.name, self.annotation)
            return
        object.__setattr__(self, "adapter", adapter)

    @property
    def decodable(self) -> bool:
        return self.adapter is not None


@dataclass(frozen=True)
class MethodEntry:
    """An exposed method of the target object.

    Attributes:
        name: Method name, unique per target.
        func: Bound callable invoked by the dispatcher.
        params: Bindable parameter shapes in declaration order.
        returns: Declared return shapes (0, 1 or 2 entries).
        doc: Method docstring.
    """

    name: str
    func: Callable
    params: tuple[ParamShape, ...]
    returns: tuple[Any, ...]
    doc: str = ""

    @property
    def extra_params(self) -> tuple[ParamShape, ...]:
        """Application-data parameters, in declaration order."""
        return tuple(p for p in self.params if p.kind is ParamKind.DATA)

    @property
    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self.func)

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "params": [
                {"name": p.name, "kind": p.kind.value, "annotation": _type_name(p.annotation)}
                for p in self.params
            ],
            "returns": [_type_name(shape) for shape in self.returns],
            "doc": self.doc,
        }


def _type_name(annotation: Any) -> str:
    if isinstance(annotation, type):
        return annotation.__name__
    return repr(annotation).replace("typing.", "")


def _strip_none(annotation: Any) -> tuple[Any, ...] | None:
    """Return the non-None members of a union, or None if not a union."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        return tuple(arg for arg in get_args(annotation) if arg is not type(None))
    return None


def is_error_shape(annotation: Any) -> bool:
    """Return True when ``annotation`` declares an error value."""
    members = _strip_none(annotation)
    if members is None:
        members = (annotation,)
    if not members:
        return False
    return all(isinstance(m, type) and issubclass(m, BaseException) for m in members)


def is_exposable(returns: Sequence[Any]) -> bool:
    """Decide whether a method with these return shapes can be exposed."""
    if len(returns) > 2:
        return False
    if len(returns) == 2 and not is_error_shape(returns[1]):
        return False
    return True


def return_shapes(annotation: Any) -> tuple[Any, ...]:
    """Translate a return annotation into the ordered list of returned values."""
    if annotation is inspect.Signature.empty:
        return (Any,)
    if annotation is None or annotation is type(None):
        return ()
    if get_origin(annotation) is tuple:
        args = get_args(annotation)
        if Ellipsis in args:
            return (annotation,)
        if args == ((),):
            return ()
        return tuple(args)
    return (annotation,)


def _classify(annotation: Any) -> ParamKind:
    if isinstance(annotation, type):
        if issubclass(annotation, RequestContext):
            return ParamKind.CONTEXT
        if issubclass(annotation, Request):
            return ParamKind.REQUEST
    return ParamKind.DATA


def _resolve_hints(func: Callable) -> dict[str, Any]:
    target = inspect.unwrap(getattr(func, "__func__", func))
    try:
        return get_type_hints(target)
    except Exception:
        # Unresolvable forward references: treat every hint as Any
        return {}


def inspect_method(name: str, func: Callable) -> MethodEntry | None:
    """Build the entry for ``func`` or return None when it is not exposable."""
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        logger.debug("%s skipped: signature not available", name)
        return None
    hints = _resolve_hints(func)

    params: list[ParamShape] = []
    for param in sig.parameters.values():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        annotation = hints.get(param.name, Any)
        params.append(
            ParamShape(
                name=param.name,
                kind=_classify(annotation),
                annotation=annotation,
                positional=param.kind is not inspect.Parameter.KEYWORD_ONLY,
            )
        )

    returns = return_shapes(hints.get("return", inspect.Signature.empty))
    if not is_exposable(returns):
        logger.debug("%s skipped: return shape %r not exposable", name, returns)
        return None

    return MethodEntry(
        name=name,
        func=func,
        params=tuple(params),
        returns=returns,
        doc=inspect.getdoc(func) or "",
    )


def _iter_public_members(target: Any) -> Iterator[tuple[str, Callable]]:
    """Yield public methods of ``target`` walking its MRO (derived class wins)."""
    seen_names: set[str] = set()
    for base in type(target).__mro__:
        if base is object:
            continue
        for attr_name, value in vars(base).items():
            if attr_name in seen_names:
                continue
            seen_names.add(attr_name)
            if attr_name.startswith("_"):
                continue
            if not isinstance(value, (types.FunctionType, staticmethod, classmethod)):
                continue
            yield attr_name, getattr(target, attr_name)


def collect_methods(target: Any) -> tuple[MethodEntry, ...]:
    """Return the exposed method table of ``target``, sorted by name."""
    entries = []
    for name, func in sorted(_iter_public_members(target), key=lambda item: item[0]):
        entry = inspect_method(name, func)
        if entry is not None:
            entries.append(entry)
    return tuple(entries)
