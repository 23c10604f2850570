"""Helpers for route patterns and request paths."""

from __future__ import annotations

from collections.abc import Iterable


def extract_params(pattern: str) -> list[str]:
    """Names of the ``:name`` parameters in pattern, in order."""
    return [part[1:] for part in pattern.split("/") if part.startswith(":")]


def toggle_trailing_slash(path: str) -> str | None:
    """path with its trailing slash added or removed; None for the root."""
    if path in ("", "/"):
        return None
    if path.endswith("/"):
        return path[:-1]
    return path + "/"


def match_path(pattern: str, path: str) -> dict[str, str] | None:
    """Match path against pattern segment by segment.

    Returns the extracted parameters, or None when the path does not match.
    A ``*`` segment matches the rest of the path, reported under ``"*"``.
    """
    pattern_parts = pattern.split("/")
    path_parts = path.split("/")

    if "*" in pattern_parts:
        wildcard = pattern_parts.index("*")
        if wildcard > len(path_parts):
            return None
        for expected, actual in zip(pattern_parts[:wildcard], path_parts):
            if not expected.startswith(":") and expected != actual:
                return None
        if wildcard > len(path_parts):
            return None
        if len(path_parts) < wildcard:
            return None
        params = {
            expected[1:]: actual
            for expected, actual in zip(pattern_parts[:wildcard], path_parts)
            if expected.startswith(":")
        }
        if wildcard < len(path_parts):
            params["*"] = "/".join(path_parts[wildcard:])
        return params

    if len(pattern_parts) != len(path_parts):
        return None
    params = {}
    for expected, actual in zip(pattern_parts, path_parts):
        if expected.startswith(":"):
            params[expected[1:]] = actual
        elif expected != actual:
            return None
    return params


def match_any_glob(path: str, patterns: Iterable[str]) -> bool:
    """Whether path matches any pattern.

    A pattern ending in ``*`` matches by prefix; any other pattern must
    equal path exactly.
    """
    for pattern in patterns:
        if pattern.endswith("*"):
            if path.startswith(pattern[:-1]):
                return True
        elif path == pattern:
            return True
    return False