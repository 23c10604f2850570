"""Minimal WebSocket support: handshake, framing and origin checks."""

from __future__ import annotations

import base64
import enum
import hashlib
import struct
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, BinaryIO
from urllib.parse import urlsplit

from surf.render import HTTPError
from surf.state import Request

_CONTINUATION = 0x0
_CLOSE = 0x8
_PING = 0x9
_PONG = 0xA

_WS_GUID = "258EAFA5-E914-47DA-95CA-C5AB0DC85B11"

DEFAULT_MAX_MESSAGE_SIZE = 8 << 20
"""Default cap on the size of a single inbound message (8 MiB)."""


class MessageType(enum.IntEnum):
    """Data message types, matching the protocol opcodes."""

    TEXT = 0x1
    BINARY = 0x2


class WebSocketClosed(Exception):
    """Raised by WSConn.read_message once the peer has sent a close frame."""

    def __init__(self, message: str = "websocket closed by peer") -> None:
        super().__init__(message)


OriginCheck = Callable[[Request], bool]


@dataclass
class UpgradeConfig:
    """Settings for the WebSocket handshake.

    ``check_origin`` returns True to permit the upgrade. When None,
    same_origin_check is used. Browsers attach cookies to cross-origin
    handshakes, so replace it only to accept cross-origin clients on purpose.
    """

    check_origin: OriginCheck | None = None


def _header_list_contains(value: str, token: str) -> bool:
    wanted = token.casefold()
    return any(part.strip().casefold() == wanted for part in value.split(","))


def is_websocket_upgrade(request: Request) -> bool:
    """Whether request is a valid WebSocket upgrade request."""
    headers = request.headers
    return (
        request.method == "GET"
        and _header_list_contains(headers.get("Connection"), "upgrade")
        and headers.get("Upgrade").casefold() == "websocket"
        and headers.get("Sec-WebSocket-Version") == "13"
        and headers.get("Sec-WebSocket-Key") != ""
    )


def compute_accept_key(key: str) -> str:
    """The Sec-WebSocket-Accept value derived from the client key."""
    digest = hashlib.sha1((key + _WS_GUID).encode("ascii")).digest()
    return base64.b64encode(digest).decode("ascii")


def same_origin_check(request: Request) -> bool:
    """Allow requests without an Origin, or whose Origin host equals Host."""
    origin = request.headers.get("Origin")
    if not origin:
        return True
    try:
        netloc = urlsplit(origin).netloc
    except ValueError:
        return False
    host = netloc.rpartition("@")[2]
    return host.casefold() == request.host.casefold()


def allow_origins(*args: str) -> OriginCheck:
    """An origin check allowing only the given origins (case-insensitive).

    A request without an Origin header is allowed.
    """
    allowed = [origin.casefold() for origin in args]

    def check(request: Request) -> bool:
        origin = request.headers.get("Origin")
        if not origin:
            return True
        return origin.casefold() in allowed

    return check


class WSConn:
    """A WebSocket connection carrying text and binary messages.

    Fragmented messages are reassembled and pings are answered
    automatically. One reader and one writer thread may use it at once;
    writes are serialized.
    """

    def __init__(
        self,
        conn: Any,
        reader: BinaryIO | None = None,
        writer: BinaryIO | None = None,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> None:
        self._conn = conn
        self._owned: list[BinaryIO] = []
        if reader is None:
            reader = conn.makefile("rb")
            self._owned.append(reader)
        if writer is None:
            writer = conn.makefile("wb")
            self._owned.append(writer)
        self._reader = reader
        self._writer = writer
        self._write_lock = threading.Lock()
        self._max_message_size = max_message_size

    @property
    def max_message_size(self) -> int:
        """The inbound message size limit in bytes."""
        return self._max_message_size

    def set_max_message_size(self, size: int) -> None:
        """Override the inbound message size limit; non-positive is ignored."""
        if size > 0:
            self._max_message_size = size

    def read_message(self) -> tuple[MessageType, bytes]:
        """Read the next complete text or binary message.

        Raises WebSocketClosed when the peer closes, ValueError on a
        protocol violation or an oversized message, and EOFError when the
        stream ends mid-frame.
        """
        buffer = bytearray()
        message_type: MessageType | None = None
        while True:
            fin, opcode, data = self._read_frame()
            if opcode == _PING:
                self._write_frame(_PONG, data)
                continue
            if opcode == _PONG:
                continue
            if opcode == _CLOSE:
                try:
                    self._write_frame(_CLOSE, b"")
                except OSError:
                    pass
                raise WebSocketClosed()
            if opcode in (MessageType.TEXT, MessageType.BINARY):
                if message_type is not None:
                    raise ValueError("unexpected new message before fragment finished")
                message_type = MessageType(opcode)
                buffer.extend(data)
            elif opcode == _CONTINUATION:
                if message_type is None:
                    raise ValueError("continuation frame without an initial frame")
                buffer.extend(data)
            else:
                raise ValueError(f"unsupported websocket opcode 0x{opcode:x}")
            if len(buffer) > self._max_message_size:
                raise ValueError("websocket message exceeds size limit")
            if fin:
                return message_type, bytes(buffer)

    def _read_exact(self, count: int) -> bytes:
        if count == 0:
            return b""
        data = self._reader.read(count)
        if data is None or len(data) < count:
            raise EOFError("websocket stream ended unexpectedly")
        return data

    def _read_frame(self) -> tuple[bool, int, bytes]:
        first, second = self._read_exact(2)
        fin = bool(first & 0x80)
        opcode = first & 0x0F
        masked = bool(second & 0x80)
        length = second & 0x7F
        if length == 126:
            (length,) = struct.unpack(">H", self._read_exact(2))
        elif length == 127:
            (length,) = struct.unpack(">Q", self._read_exact(8))
        if length > self._max_message_size:
            raise ValueError("websocket frame exceeds size limit")

        mask = self._read_exact(4) if masked else b""
        payload = self._read_exact(length)
        if masked:
            payload = bytes(byte ^ mask[i % 4] for i, byte in enumerate(payload))
        return fin, opcode, payload

    def write_message(self, message_type: int, data: bytes) -> None:
        """Send one unfragmented text or binary message."""
        if message_type not in (MessageType.TEXT, MessageType.BINARY):
            raise ValueError(f"invalid websocket message type {message_type}")
        self._write_frame(int(message_type), data)

    def write_text(self, text: str) -> None:
        """Send a UTF-8 text message."""
        self._write_frame(MessageType.TEXT, text.encode("utf-8"))

    def write_binary(self, data: bytes) -> None:
        """Send a binary message."""
        self._write_frame(MessageType.BINARY, data)

    def _write_frame(self, opcode: int, data: bytes) -> None:
        size = len(data)
        if size <= 125:
            header = struct.pack(">BB", 0x80 | opcode, size)
        elif size <= 0xFFFF:
            header = struct.pack(">BBH", 0x80 | opcode, 126, size)
        else:
            header = struct.pack(">BBQ", 0x80 | opcode, 127, size)
        with self._write_lock:
            self._writer.write(header)
            self._writer.write(bytes(data))
            self._writer.flush()

    def close(self) -> None:
        """Send a close frame and close the connection."""
        try:
            self._write_frame(_CLOSE, b"")
        except (OSError, ValueError):
            pass
        for stream in self._owned:
            try:
                stream.close()
            except OSError:
                pass
        self._conn.close()

    def __enter__(self) -> WSConn:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def upgrade(writer: Any, request: Request, config: UpgradeConfig | None = None) -> WSConn:
    """Complete the handshake on request and return the connection.

    A request that is not an upgrade raises a 400 HTTPError and one refused
    by the origin check raises a 403 HTTPError; in both cases the
    connection is left alone. A writer that cannot be hijacked raises
    RuntimeError. The caller owns and must close the returned connection.
    """
    if not is_websocket_upgrade(request):
        raise HTTPError(400, "request is not a websocket upgrade")

    check_origin = (config.check_origin if config else None) or same_origin_check
    if not check_origin(request):
        raise HTTPError(403, "websocket origin not allowed")

    hijack = getattr(writer, "hijack", None)
    if not callable(hijack):
        raise RuntimeError("ResponseWriter does not support hijacking")
    conn, reader, stream = hijack()

    accept = compute_accept_key(request.headers.get("Sec-WebSocket-Key"))
    response = (
        "HTTP/1.1 101 Switching Protocols\r\n"
        "Upgrade: websocket\r\n"
        "Connection: Upgrade\r\n"
        f"Sec-WebSocket-Accept: {accept}\r\n\r\n"
    )
    try:
        stream.write(response.encode("ascii"))
        stream.flush()
    except OSError:
        conn.close()
        raise
    return WSConn(conn, reader, stream)