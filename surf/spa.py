"""Serving a built single-page application with index fallback."""

from __future__ import annotations

import email.utils
import mimetypes
import os
import posixpath
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from surf.app import App, param
from surf.state import Request

IMMUTABLE_CACHE_CONTROL = "public, max-age=31536000, immutable"
NO_CACHE = "no-cache"

_CONTENT_TYPES = {
    ".css": "text/css; charset=utf-8",
    ".html": "text/html; charset=utf-8",
    ".htm": "text/html; charset=utf-8",
    ".js": "text/javascript; charset=utf-8",
    ".mjs": "text/javascript; charset=utf-8",
    ".json": "application/json",
    ".svg": "image/svg+xml",
    ".txt": "text/plain; charset=utf-8",
    ".wasm": "application/wasm",
    ".xml": "text/xml; charset=utf-8",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".ico": "image/x-icon",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
}

_RANGE = re.compile(r"bytes=(\d*)-(\d*)")


@dataclass
class SPAConfig:
    """Settings for mounting a single-page application.

    ``files`` is either a mapping of relative names to contents or a
    directory (a path or any object with ``joinpath``). ``index`` is served
    for the mount root and for unknown paths. Files whose first path segment
    is in ``immutable_prefixes`` (default ``["assets"]``) are cached forever;
    everything else gets ``no-cache``. Paths whose first segment is in
    ``exclude_prefixes`` answer 404 instead of falling back to the index.
    """

    prefix: str = ""
    files: Any = None
    index: str = "index.html"
    immutable_prefixes: list[str] | None = None
    exclude_prefixes: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class _Asset:
    data: bytes
    modified: float | None


class _Files:
    """Read-only view over a mapping or a directory of built files."""

    def __init__(self, files: Any) -> None:
        self._mapping: Mapping[str, Any] | None = None
        self._root: Any = None
        if isinstance(files, Mapping):
            self._mapping = files
        elif isinstance(files, (str, os.PathLike)):
            self._root = Path(files)
        else:
            self._root = files

    def read(self, name: str) -> _Asset | None:
        """The file called name, or None when it is missing or a directory.

        Raises OSError when the file exists but cannot be read.
        """
        if self._mapping is not None:
            value = self._mapping.get(name)
            if value is None:
                return None
            data = value.encode("utf-8") if isinstance(value, str) else bytes(value)
            return _Asset(data, None)
        target = self._root.joinpath(*name.split("/"))
        try:
            if not target.is_file():
                return None
        except OSError:
            return None
        data = target.read_bytes()
        modified = os.stat(target).st_mtime if isinstance(target, Path) else None
        return _Asset(data, modified)


def _plain_error(writer: Any, status: int, text: str) -> None:
    writer.headers.set("Content-Type", "text/plain; charset=utf-8")
    writer.headers.set("X-Content-Type-Options", "nosniff")
    writer.write_header(status)
    writer.write((text + "\n").encode("utf-8"))


def _content_type(name: str) -> str:
    extension = posixpath.splitext(name)[1].lower()
    known = _CONTENT_TYPES.get(extension)
    if known is not None:
        return known
    guessed, _ = mimetypes.guess_type(name)
    if guessed is None:
        return "application/octet-stream"
    if guessed.startswith("text/"):
        return guessed + "; charset=utf-8"
    return guessed


def _parse_range(value: str, size: int) -> tuple[int, int] | None:
    """The (start, stop) byte span of a single range, None if unsatisfiable."""
    match = _RANGE.fullmatch(value.strip())
    if match is None:
        return None
    first, last = match.groups()
    if not first:
        if not last:
            return None
        length = min(int(last), size)
        if length == 0:
            return None
        return size - length, size
    start = int(first)
    if start >= size:
        return None
    if not last:
        return start, size
    end = int(last)
    if end < start:
        return None
    return start, min(end, size - 1) + 1


def _not_modified(request: Request, modified: int) -> bool:
    since = request.headers.get("If-Modified-Since")
    if not since or request.headers.get("If-None-Match"):
        return False
    try:
        parsed = email.utils.parsedate_to_datetime(since)
    except (TypeError, ValueError):
        return False
    if parsed is None:
        return False
    return modified <= parsed.timestamp()


def _serve_content(writer: Any, request: Request, name: str, asset: _Asset) -> None:
    headers = writer.headers
    data = asset.data
    size = len(data)

    if asset.modified is not None:
        modified = int(asset.modified)
        if _not_modified(request, modified):
            writer.write_header(304)
            return
        headers.set("Last-Modified", email.utils.formatdate(modified, usegmt=True))

    if "Content-Type" not in headers:
        headers.set("Content-Type", _content_type(name))
    headers.set("Accept-Ranges", "bytes")

    status = 200
    body = data
    requested = request.headers.get("Range")
    if requested and "," not in requested:
        span = _parse_range(requested, size)
        if span is None:
            headers.set("Content-Range", f"bytes */{size}")
            _plain_error(writer, 416, "invalid range: failed to overlap")
            return
        start, stop = span
        status = 206
        body = data[start:stop]
        headers.set("Content-Range", f"bytes {start}-{stop - 1}/{size}")

    headers.set("Content-Length", str(len(body)))
    writer.write_header(status)
    writer.write(body)


def spa(app: App, prefix: str, files: Any) -> None:
    """Mount a single-page application at prefix with default settings."""
    spa_with_config(app, SPAConfig(prefix=prefix, files=files))


def spa_with_config(app: App, config: SPAConfig) -> None:
    """Mount the single-page application described by config.

    Unknown paths fall back to the index document, assets get long-lived
    caching and directory traversal is contained. Raises ValueError when
    ``config.files`` is None.
    """
    if config.files is None:
        raise ValueError("SPA requires files to serve")
    index = config.index or "index.html"
    immutable = (
        ["assets"] if config.immutable_prefixes is None else list(config.immutable_prefixes)
    )
    exclude = list(config.exclude_prefixes)
    files = _Files(config.files)
    prefix = config.prefix.removesuffix("/")

    def serve_index(writer: Any, request: Request) -> None:
        try:
            asset = files.read(index)
        except OSError:
            asset = None
        if asset is None:
            _plain_error(writer, 500, "SPA index document not found")
            return
        writer.headers.set("Content-Type", "text/html; charset=utf-8")
        writer.headers.set("Cache-Control", NO_CACHE)
        writer.write_header(200)
        writer.write(asset.data)

    def serve_file(writer: Any, request: Request) -> None:
        relative = param(request, "*").removeprefix("/")
        # Normalising against "/" collapses "." and ".." so nothing escapes.
        clean = posixpath.normpath("/" + relative).lstrip("/")
        if clean in ("", "."):
            serve_index(writer, request)
            return

        first = clean.partition("/")[0]
        if first in exclude:
            _plain_error(writer, 404, "404 page not found")
            return

        try:
            asset = files.read(clean)
        except OSError:
            _plain_error(writer, 500, "failed to read asset")
            return
        if asset is None:
            serve_index(writer, request)
            return

        cache_control = IMMUTABLE_CACHE_CONTROL if first in immutable else NO_CACHE
        writer.headers.set("Cache-Control", cache_control)
        _serve_content(writer, request, clean, asset)

    app.get(prefix or "/", serve_index)
    app.get(prefix + "/*", serve_file)