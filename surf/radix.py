"""Radix tree used by the router to match request paths to routes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(eq=False)
class _Node:
    """One node of the tree.

    Children are kept in three slots by kind: any number of static children,
    at most one parameter child and at most one wildcard child.
    """

    path: str = ""
    handler: Any = None
    param_key: str = ""
    static_children: list[_Node] = field(default_factory=list)
    param_child: _Node | None = None
    wildcard_child: _Node | None = None


def longest_common_prefix(a: str, b: str) -> int:
    """Length of the shared prefix of a and b; ':' and '*' never count."""
    for index, (left, right) in enumerate(zip(a, b)):
        if left != right or left in ":*":
            return index
    return min(len(a), len(b))


class RadixTree:
    """Routing tree for one HTTP method.

    Patterns are made of static text, ``:name`` parameters that match one
    path segment, and a trailing ``*`` that matches the rest of the path.
    Static children are preferred over the parameter child, which is
    preferred over the wildcard.
    """

    def __init__(self) -> None:
        self._root = _Node()

    def insert(self, pattern: str, handler: Any) -> None:
        """Add a route, splitting existing static nodes where needed."""
        remaining = pattern or "/"
        current = self._root
        while remaining:
            head = remaining[0]
            if head == ":":
                slash = remaining.find("/", 1)
                if slash == -1:
                    name, remaining = remaining[1:], ""
                else:
                    name, remaining = remaining[1:slash], remaining[slash:]
                if current.param_child is None:
                    current.param_child = _Node(path=":", param_key=name)
                current = current.param_child
                continue
            if head == "*":
                current.wildcard_child = _Node(path="*", param_key="*", handler=handler)
                return
            current, remaining = self._descend_static(current, remaining)
        current.handler = handler

    @staticmethod
    def _descend_static(node: _Node, remaining: str) -> tuple[_Node, str]:
        for index, child in enumerate(node.static_children):
            common = longest_common_prefix(remaining, child.path)
            if not common:
                continue
            if common == len(child.path):
                return child, remaining[common:]
            split = _Node(path=child.path[:common], static_children=[child])
            child.path = child.path[common:]
            node.static_children[index] = split
            return split, remaining[common:]

        end = next(
            (i for i, char in enumerate(remaining) if char in ":*"), len(remaining)
        )
        created = _Node(path=remaining[:end])
        node.static_children.append(created)
        return created, remaining[end:]

    def search(self, path: str) -> tuple[Any, dict[str, str]]:
        """Return the handler matching path and its parameters.

        On a miss the handler is None and the parameters are empty. The
        wildcard match is reported under the key ``"*"``.
        """
        params: list[tuple[str, str]] = []
        handler = self._search(self._root, path or "/", params)
        if handler is None:
            return None, {}
        return handler, dict(params)

    @classmethod
    def _search(cls, node: _Node, path: str, params: list[tuple[str, str]]) -> Any:
        if not path:
            return node.handler

        for child in node.static_children:
            if path.startswith(child.path):
                found = cls._search(child, path[len(child.path):], params)
                if found is not None:
                    return found

        param_child = node.param_child
        if param_child is not None:
            value, slash, rest = path.partition("/")
            if value:
                mark = len(params)
                params.append((param_child.param_key, value))
                found = cls._search(param_child, slash + rest, params)
                if found is not None:
                    return found
                del params[mark:]

        wildcard = node.wildcard_child
        if wildcard is not None:
            params.append(("*", path))
            return wildcard.handler

        return None