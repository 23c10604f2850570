"""Metadata recorded for every registered route."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any


class RouteStyle(enum.Enum):
    """The handler signature a route was registered with."""

    STANDARD = "standard"
    CONTEXT = "context"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RouteInfo:
    """Description of a single registered route.

    It is captured at registration time and never changes. ``req_type`` and
    ``resp_type`` are set only for typed handlers; other routes leave them
    as None.
    """

    method: str
    pattern: str
    params: tuple[str, ...] = ()
    style: RouteStyle = RouteStyle.STANDARD
    req_type: Any = None
    resp_type: Any = None