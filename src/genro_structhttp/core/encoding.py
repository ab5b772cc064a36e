# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Response encoding for invocation outcomes.

``encode_outcome(entry, values)`` writes what a method returned:

- no declared values: ``204 No Content``;
- a single error-shaped value: ``204`` when None, error response otherwise;
- ``(result, error)``: error response when ``error`` is set (the result is
  discarded), otherwise the result;
- a result that is a byte sequence is written verbatim, anything else is
  serialized as JSON followed by a newline.

Error responses always carry ``{"error": "<message>"}`` as JSON, with the
status code carried by the error (see ``status_code_of``) or 500.

A result that cannot be serialized is a defect of the method's declared
return shape: the serializer error propagates instead of becoming a response.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic_core import to_json
from starlette.responses import Response

from genro_structhttp.exceptions import status_code_of

from .shapes import MethodEntry, is_error_shape

__all__ = ["encode_outcome", "error_response", "outcome_values", "result_response"]

logger = logging.getLogger("genro_structhttp")

JSON_MEDIA_TYPE = "application/json"
BYTES_MEDIA_TYPE = "application/octet-stream"


def outcome_values(entry: MethodEntry, result: Any) -> tuple[Any, ...]:
    """Normalize a raw return value into the declared number of values."""
    count = len(entry.returns)
    if count == 0:
        return ()
    if count == 1:
        return (result,)
    if not isinstance(result, tuple) or len(result) != count:
        raise TypeError(
            f"{entry.name} declares {count} return values, got {type(result).__name__}"
        )
    return result


def error_response(err: BaseException, *, log: logging.Logger | None = None) -> Response:
    """Build the error response for ``err``."""
    status = status_code_of(err)
    if status >= 500:
        (log or logger).error("error response %s: %s", status, err)
    return Response(
        content=to_json({"error": str(err)}) + b"\n",
        status_code=status,
        media_type=JSON_MEDIA_TYPE,
    )


def result_response(result: Any) -> Response:
    """Build the success response for a non-error result."""
    if isinstance(result, (bytes, bytearray, memoryview)):
        return Response(content=bytes(result), media_type=BYTES_MEDIA_TYPE)
    return Response(content=to_json(result) + b"\n", media_type=JSON_MEDIA_TYPE)


def encode_outcome(
    entry: MethodEntry, values: tuple[Any, ...], *, log: logging.Logger | None = None
) -> Response:
    """Encode the invocation outcome of ``entry`` into a response."""
    if not values:
        return Response(status_code=204)

    last_shape = entry.returns[-1]
    if is_error_shape(last_shape):
        err = values[-1]
        if err is not None:
            return error_response(err, log=log)
        if len(values) == 1:
            return Response(status_code=204)

    return result_response(values[0])
