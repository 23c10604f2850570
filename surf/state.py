"""Request, header and per-request framework state types."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs


class _StateKey:
    def __repr__(self) -> str:
        return "STATE_KEY"


STATE_KEY = _StateKey()
"""Key under which the framework stores a RequestState in Request.context."""


def _canonical(key: str) -> str:
    return "-".join(part[:1].upper() + part[1:].lower() for part in key.split("-"))


class Headers:
    """Case-insensitive multi-valued HTTP header map."""

    def __init__(self, items: Mapping[str, str] | Iterable[tuple[str, str]] | None = None):
        self._values: dict[str, list[str]] = {}
        if items is None:
            return
        pairs = items.items() if isinstance(items, Mapping) else items
        for key, value in pairs:
            self.add(key, value)

    def get(self, key: str, default: str = "") -> str:
        """First value for key, or default when absent."""
        values = self._values.get(_canonical(key))
        return values[0] if values else default

    def set(self, key: str, value: str) -> None:
        """Replace every value of key with value."""
        self._values[_canonical(key)] = [value]

    def add(self, key: str, value: str) -> None:
        """Append value to the values of key."""
        self._values.setdefault(_canonical(key), []).append(value)

    def get_all(self, key: str) -> list[str]:
        """Every value of key, in the order added."""
        return list(self._values.get(_canonical(key), ()))

    def __delitem__(self, key: str) -> None:
        canonical = _canonical(key)
        if canonical not in self._values:
            raise KeyError(key)
        self._values.pop(canonical)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and _canonical(key) in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"Headers({self._values!r})"


@dataclass
class Request:
    """An incoming HTTP request.

    A query string given in ``path`` is split off into ``raw_query``.
    ``context`` carries request-scoped values, including the framework's
    RequestState under STATE_KEY.
    """

    method: str = "GET"
    path: str = "/"
    raw_query: str = ""
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""
    host: str = ""
    remote_addr: str = ""
    context: dict[Any, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if "?" in self.path and not self.raw_query:
            self.path, _, self.raw_query = self.path.partition("?")
        if not isinstance(self.headers, Headers):
            self.headers = Headers(self.headers)

    def query_param(self, key: str) -> str:
        """First value of a query parameter, or "" when absent."""
        values = parse_qs(self.raw_query, keep_blank_values=True).get(key)
        return values[0] if values else ""


@dataclass
class RequestState:
    """Framework data attached to one request: app, writer and path params."""

    app: Any = None
    writer: Any = None
    params: list[tuple[str, str]] = field(default_factory=list)


def state_from_request(request: Request) -> RequestState | None:
    """The RequestState attached to request, or None if there is none."""
    state = request.context.get(STATE_KEY)
    return state if isinstance(state, RequestState) else None