"""JSON response helpers, handler errors and the default error renderer."""

from __future__ import annotations

import base64
import dataclasses
import json
from typing import Any

JSON_CONTENT_TYPE = "application/json; charset=utf-8"

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


class HTTPError(Exception):
    """An error that carries the HTTP status and message shown to the client.

    The optional cause is kept as ``__cause__`` and never reaches the client.
    """

    def __init__(self, code: int, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.__cause__ is not None:
            return f"{self.message}: {self.__cause__}"
        return self.message


class Abort(Exception):
    """Raised by a handler to end a request silently with what it has written."""


def _default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def _encode(value: Any) -> bytes:
    text = json.dumps(value, default=_default, ensure_ascii=False, separators=(",", ":"))
    for char, escaped in _HTML_ESCAPES.items():
        text = text.replace(char, escaped)
    return (text + "\n").encode("utf-8")


def json_response(writer: Any, status: int, value: Any) -> None:
    """Write value as a JSON response with the given status."""
    writer.headers.set("Content-Type", JSON_CONTENT_TYPE)
    writer.write_header(status)
    writer.write(_encode(value))


def json_data(writer: Any, value: Any) -> None:
    """Write value in a ``{"data": ...}`` envelope with status 200."""
    json_response(writer, 200, {"data": value})


def json_data_status(writer: Any, status: int, value: Any) -> None:
    """Write value in a ``{"data": ...}`` envelope with a custom status."""
    json_response(writer, status, {"data": value})


def json_list(writer: Any, items: Any, total: int) -> None:
    """Write items in a ``{"data": [...], "total": n}`` envelope."""
    json_response(writer, 200, {"data": items, "total": total})


def json_error(writer: Any, status: int, message: str) -> None:
    """Write a ``{"error": message, "status": status}`` envelope."""
    json_response(writer, status, {"error": message, "status": status})


def _as_http_error(error: BaseException | None) -> HTTPError | None:
    seen: set[int] = set()
    while error is not None and id(error) not in seen:
        if isinstance(error, HTTPError):
            return error
        seen.add(id(error))
        error = error.__cause__
    return None


def default_error_renderer(writer: Any, request: Any, error: BaseException) -> None:
    """Render an error as a JSON envelope.

    An HTTPError (directly or as the cause of the error) sets the status and
    its message is shown; anything else becomes a generic 500 so internal
    details are not leaked.
    """
    http_error = _as_http_error(error)
    if http_error is not None:
        json_error(writer, http_error.code, http_error.message)
    else:
        json_error(writer, 500, "Internal Server Error")