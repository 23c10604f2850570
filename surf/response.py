"""Response writer wrapper that tracks status, size and custom data."""

from __future__ import annotations

import threading
import time
from typing import Any

from surf.state import Headers, Request, state_from_request


class Recorder:
    """In-memory response writer that records what a handler sends.

    The first status written wins; writing a body without a status
    records 200.
    """

    def __init__(self) -> None:
        self.headers = Headers()
        self.code = 200
        self.body = bytearray()
        self.flushed = False
        self._wrote_header = False

    def write_header(self, status: int) -> None:
        """Record the status code, ignoring any after the first."""
        if self._wrote_header:
            return
        self.code = status
        self._wrote_header = True

    def write(self, data: bytes) -> int:
        """Append data to the recorded body and return its length."""
        if not self._wrote_header:
            self.write_header(200)
        self.body.extend(data)
        return len(data)

    def flush(self) -> None:
        """Mark the response as flushed."""
        if not self._wrote_header:
            self.write_header(200)
        self.flushed = True

    @property
    def text(self) -> str:
        """The recorded body decoded as UTF-8."""
        return self.body.decode("utf-8")


class ResponseWriter:
    """Wraps a response writer to track the status, size and custom data.

    ``start_time`` is not set by the framework; a caller that wants
    ``latency()`` sets it to ``time.monotonic()`` itself.
    """

    def __init__(self, inner: Any) -> None:
        self.inner = inner
        self.start_time: float | None = None
        self._status = 200
        self._size = 0
        self._written = False
        self._wrote_header = False
        self._custom: dict[str, Any] = {}
        self._lock = threading.RLock()

    @property
    def headers(self) -> Headers:
        """Headers of the wrapped writer."""
        return self.inner.headers

    @property
    def status(self) -> int:
        """The status code sent, 200 until one is written."""
        return self._status

    @property
    def size(self) -> int:
        """Number of body bytes written."""
        return self._size

    @property
    def written(self) -> bool:
        """Whether any body has been written."""
        return self._written

    @property
    def committed(self) -> bool:
        """Whether the status line or any body has been sent."""
        return self._wrote_header or self._written

    def write_header(self, status: int) -> None:
        """Send the status code; later calls are ignored."""
        if self._wrote_header:
            return
        self._status = status
        self._wrote_header = True
        self.inner.write_header(status)

    def write(self, data: bytes) -> int:
        """Write body bytes, sending status 200 first if none was sent."""
        if not self._wrote_header:
            self.write_header(200)
        count = self.inner.write(data)
        self._size += count
        self._written = True
        return count

    def write_string(self, text: str) -> int:
        """Write text encoded as UTF-8."""
        return self.write(text.encode("utf-8"))

    def latency(self) -> float:
        """Seconds since start_time, or 0.0 when start_time is unset."""
        if self.start_time is None:
            return 0.0
        return time.monotonic() - self.start_time

    def set(self, key: str, value: Any) -> None:
        """Store a custom value."""
        with self._lock:
            self._custom[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """A custom value, or default when absent."""
        with self._lock:
            return self._custom.get(key, default)

    def get_string(self, key: str, default: str = "") -> str:
        """A custom value if it is a string, otherwise default."""
        value = self.get(key)
        return value if isinstance(value, str) else default

    def custom_data(self) -> dict[str, Any]:
        """A copy of the custom values."""
        with self._lock:
            return dict(self._custom)

    def flush(self) -> None:
        """Flush the wrapped writer if it supports flushing."""
        flush = getattr(self.inner, "flush", None)
        if callable(flush):
            flush()

    def hijack(self) -> Any:
        """Take over the connection from the wrapped writer.

        Raises RuntimeError when the wrapped writer cannot be hijacked.
        """
        hijack = getattr(self.inner, "hijack", None)
        if not callable(hijack):
            raise RuntimeError("response writer does not support hijacking")
        return hijack()


def get_response_writer(request: Request) -> ResponseWriter | None:
    """The ResponseWriter attached to request, or None before routing."""
    state = state_from_request(request)
    if state is None or state.writer is None:
        return None
    return state.writer


def response_status(request: Request) -> int:
    """The response status for request, or 0 if there is no writer."""
    writer = get_response_writer(request)
    return writer.status if writer is not None else 0


def response_size(request: Request) -> int:
    """The response size in bytes for request, or 0 if there is no writer."""
    writer = get_response_writer(request)
    return writer.size if writer is not None else 0