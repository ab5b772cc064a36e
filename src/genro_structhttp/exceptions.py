# Copyright 2025 Softwell S.r.l. - All Rights Reserved
# SPDX-License-Identifier: Apache-2.0
"""Exceptions for Genro StructHTTP.

This module defines the status-coded error value returned by exposed methods
and matchers, plus the errors raised by the dispatcher itself.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

__all__ = [
    "HTTPStatusCoder",
    "StatusError",
    "NotFound",
    "MatcherContractError",
    "status_code_of",
]


@runtime_checkable
class HTTPStatusCoder(Protocol):
    """Capability of errors that carry an explicit HTTP status code."""

    def http_status_code(self) -> int: ...


class StatusError(Exception):
    """An error carrying an HTTP status code.

    Wraps an inner error: the message text is the inner error's text and the
    inner error is the ``__cause__`` of this one.

    Attributes:
        status_code: HTTP status code written on the response.
        err: The wrapped error.
    """

    def __init__(self, status_code: int, err: BaseException | str) -> None:
        if isinstance(err, str):
            err = Exception(err)
        self.status_code = status_code
        self.err = err
        super().__init__(str(err))
        self.__cause__ = err

    def http_status_code(self) -> int:
        return self.status_code

    def unwrap(self) -> BaseException:
        return self.err

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.status_code}, {self.err!r})"


class NotFound(StatusError):
    """Raised when no exposed method matches the request (404).

    Attributes:
        method: HTTP method of the unmatched request.
        path: URL path of the unmatched request.
    """

    def __init__(self, method: str, path: str) -> None:
        self.method = method
        self.path = path
        super().__init__(404, "404 page not found")


class MatcherContractError(RuntimeError):
    """Raised when a matcher supplies the wrong number of arguments.

    A matched method must receive exactly one value per application-data
    parameter. Anything else is a defect of the matcher, never a client error.
    """

    def __init__(self, method_name: str, expected: int, got: int) -> None:
        self.method_name = method_name
        self.expected = expected
        self.got = got
        qualifier = "not enough" if got < expected else "too many"
        super().__init__(
            f"{qualifier} arguments to {method_name} method: expected {expected}, got {got}"
        )


def status_code_of(err: BaseException, default: int = 500) -> int:
    """Return the status code carried by ``err`` or anything it wraps.

    The first error in the chain implementing :class:`HTTPStatusCoder` wins.
    Falls back to ``default`` when none does.
    """
    seen: set[int] = set()
    current: BaseException | None = err
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, HTTPStatusCoder):
            return int(current.http_status_code())
        unwrap = getattr(current, "unwrap", None)
        cause = getattr(current, "__cause__", None)
        current = cause or (unwrap() if callable(unwrap) else None)
    return default
