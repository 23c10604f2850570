"""Application object: route registration, groups, middleware and dispatch."""

from __future__ import annotations

import dataclasses
import html
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from surf.paths import extract_params, match_any_glob, toggle_trailing_slash
from surf.radix import RadixTree
from surf.render import Abort, default_error_renderer
from surf.response import ResponseWriter
from surf.routes import RouteInfo, RouteStyle
from surf.state import STATE_KEY, Request, RequestState, state_from_request

Handler = Callable[[Any, Request], Any]
Middleware = Callable[[Handler], Handler]
MiddlewareFunc = Callable[[Any, Request, Handler], Any]
ErrorRenderer = Callable[[Any, Request, BaseException], Any]

_log = logging.getLogger("surf")


class RouteConflictError(Exception):
    """A route pattern that is already registered for a method."""

    def __init__(self, method: str, pattern: str) -> None:
        super().__init__(f"route conflict: {method} {pattern} is already registered")
        self.method = method
        self.pattern = pattern


@dataclass(eq=False)
class _Route:
    pattern: str
    handler: Handler
    params: list[str]
    before: list[Handler] = field(default_factory=list)
    after: list[Handler] = field(default_factory=list)
    middlewares: list[Middleware] = field(default_factory=list)


def param(request: Request, key: str) -> str:
    """A path parameter resolved by the router, or "" when absent.

    The wildcard match is available under the key ``"*"``.
    """
    state = state_from_request(request)
    if state is None:
        return ""
    return next((value for name, value in state.params if name == key), "")


class App:
    """An HTTP application that routes requests to handlers.

    Handlers are called as ``handler(writer, request)`` and report failure
    by raising. Middleware takes the next handler and returns a new one.
    """

    def __init__(
        self,
        *,
        error_handler: ErrorRenderer | None = None,
        not_found_handler: Handler | None = None,
        method_not_allowed_handler: Handler | None = None,
        redirect_trailing_slash: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self.error_handler = error_handler
        self.not_found_handler = not_found_handler
        self.method_not_allowed_handler = method_not_allowed_handler
        self.redirect_trailing_slash = redirect_trailing_slash
        self.logger = logger
        self._routes: dict[str, dict[str, _Route]] = {}
        self._trees: dict[str, RadixTree] = {}
        self._route_info: list[RouteInfo] = []
        self._before: list[Handler] = []
        self._after: list[Handler] = []
        self._middlewares: list[Middleware] = []
        self._services: dict[Any, Any] = {}
        self._services_lock = threading.Lock()
        self._chain: Handler | None = None
        self._chain_lock = threading.Lock()

    # Registration

    def _register(
        self,
        method: str,
        pattern: str,
        handler: Handler,
        *,
        before: list[Handler] | None = None,
        after: list[Handler] | None = None,
        middlewares: list[Middleware] | None = None,
    ) -> None:
        routes = self._routes.setdefault(method, {})
        tree = self._trees.get(method)
        if tree is None:
            tree = self._trees[method] = RadixTree()
        if pattern in routes:
            _log.warning(
                "route conflict: overwriting existing route method=%s pattern=%s",
                method,
                pattern,
            )
        route = _Route(
            pattern=pattern,
            handler=handler,
            params=extract_params(pattern),
            before=list(before or ()),
            after=list(after or ()),
            middlewares=list(middlewares or ()),
        )
        routes[pattern] = route
        tree.insert(pattern, route)
        self._route_info.append(
            RouteInfo(method, pattern, tuple(route.params), RouteStyle.STANDARD)
        )

    def get(self, pattern: str, handler: Handler, *args: Middleware) -> None:
        """Register a GET route; extra middleware wraps this route only."""
        self._register("GET", pattern, handler, middlewares=list(args))

    def post(self, pattern: str, handler: Handler, *args: Middleware) -> None:
        """Register a POST route with optional per-route middleware."""
        self._register("POST", pattern, handler, middlewares=list(args))

    def put(self, pattern: str, handler: Handler, *args: Middleware) -> None:
        """Register a PUT route with optional per-route middleware."""
        self._register("PUT", pattern, handler, middlewares=list(args))

    def delete(self, pattern: str, handler: Handler, *args: Middleware) -> None:
        """Register a DELETE route with optional per-route middleware."""
        self._register("DELETE", pattern, handler, middlewares=list(args))

    def patch(self, pattern: str, handler: Handler, *args: Middleware) -> None:
        """Register a PATCH route with optional per-route middleware."""
        self._register("PATCH", pattern, handler, middlewares=list(args))

    def head(self, pattern: str, handler: Handler, *args: Middleware) -> None:
        """Register a HEAD route with optional per-route middleware."""
        self._register("HEAD", pattern, handler, middlewares=list(args))

    def options(self, pattern: str, handler: Handler, *args: Middleware) -> None:
        """Register an OPTIONS route with optional per-route middleware."""
        self._register("OPTIONS", pattern, handler, middlewares=list(args))

    def before(self, handler: Handler) -> None:
        """Add a handler that runs before every route handler."""
        self._before.append(handler)

    def after(self, handler: Handler) -> None:
        """Add a handler that runs after every route handler."""
        self._after.append(handler)

    def use(self, middleware: Middleware) -> None:
        """Add application-wide middleware; add it before serving starts."""
        self._middlewares.append(middleware)

    def use_func(self, fn: MiddlewareFunc) -> None:
        """Add middleware written as ``fn(writer, request, next)``."""

        def middleware(next_handler: Handler) -> Handler:
            def wrapped(writer: Any, request: Request) -> None:
                fn(writer, request, next_handler)

            return wrapped

        self.use(middleware)

    def group(self, prefix: str) -> Group:
        """A route group sharing prefix."""
        return Group(self, prefix)

    def routes(self) -> list[RouteInfo]:
        """A snapshot of the registered routes in registration order."""
        return list(self._route_info)

    # Services

    def set_service(self, key: Any, value: Any) -> None:
        """Store a service in the application container under key."""
        with self._services_lock:
            self._services[key] = value

    def get_service(self, key: Any) -> Any:
        """The service stored under key, or None."""
        with self._services_lock:
            return self._services.get(key)

    # Serving

    def serve(self, writer: Any, request: Request) -> None:
        """Handle one request, writing the response to writer."""
        chain = self._chain
        if chain is None:
            with self._chain_lock:
                if self._chain is None:
                    handler: Handler = self._dispatch
                    for middleware in reversed(self._middlewares):
                        handler = middleware(handler)
                    self._chain = handler
                chain = self._chain
        chain(writer, request)

    def _dispatch(self, writer: Any, request: Request) -> None:
        tree = self._trees.get(request.method)
        if tree is None:
            self._serve_no_route(writer, request)
            return
        route, params = tree.search(request.path)
        if route is None:
            if self.redirect_trailing_slash:
                alternative = toggle_trailing_slash(request.path)
                if alternative is not None and tree.search(alternative)[0] is not None:
                    target = alternative
                    if request.raw_query:
                        target += "?" + request.raw_query
                    self._redirect(writer, request, target)
                    return
            self._serve_no_route(writer, request)
            return
        self._serve_route(writer, request, route, list(params.items()))

    @staticmethod
    def _redirect(writer: Any, request: Request, target: str) -> None:
        had_content_type = "Content-Type" in writer.headers
        writer.headers.set("Location", target)
        if not had_content_type and request.method in ("GET", "HEAD"):
            writer.headers.set("Content-Type", "text/html; charset=utf-8")
        writer.write_header(308)
        if not had_content_type and request.method == "GET":
            body = f'<a href="{html.escape(target)}">Permanent Redirect</a>.\n\n'
            writer.write(body.encode("utf-8"))

    def _allowed_methods(self, path: str) -> list[str]:
        return [
            method
            for method, tree in self._trees.items()
            if tree.search(path)[0] is not None
        ]

    @staticmethod
    def _plain_error(writer: Any, status: int, text: str) -> None:
        writer.headers.set("Content-Type", "text/plain; charset=utf-8")
        writer.headers.set("X-Content-Type-Options", "nosniff")
        writer.write_header(status)
        writer.write((text + "\n").encode("utf-8"))

    def _serve_no_route(self, writer: Any, request: Request) -> None:
        allowed = self._allowed_methods(request.path)
        if allowed:
            writer.headers.set("Allow", ", ".join(allowed))
            if self.method_not_allowed_handler is not None:
                self.method_not_allowed_handler(writer, request)
            else:
                self._plain_error(writer, 405, "Method Not Allowed")
            return
        if self.not_found_handler is not None:
            self.not_found_handler(writer, request)
        else:
            self._plain_error(writer, 404, "404 page not found")

    def _render_error(
        self, writer: ResponseWriter, request: Request, error: BaseException, where: str
    ) -> None:
        if isinstance(error, Abort):
            return
        (self.logger or _log).error(
            "request handler error: %s context=%s method=%s path=%s remote_addr=%s",
            error,
            where,
            request.method,
            request.path,
            request.remote_addr,
        )
        if writer.committed:
            return
        renderer = self.error_handler or default_error_renderer
        renderer(writer, request, error)

    @staticmethod
    def _run_route(writer: ResponseWriter, request: Request, route: _Route) -> None:
        if not route.middlewares:
            route.handler(writer, request)
            return
        caught: list[Exception] = []

        def final(inner_writer: Any, inner_request: Request) -> None:
            try:
                route.handler(inner_writer, inner_request)
            except Exception as exc:  # re-raised once the chain unwinds
                caught.append(exc)

        handler: Handler = final
        for middleware in reversed(route.middlewares):
            handler = middleware(handler)
        handler(writer, request)
        if caught:
            raise caught[0]

    def _serve_route(
        self,
        writer: Any,
        request: Request,
        route: _Route,
        params: list[tuple[str, str]],
    ) -> None:
        response = ResponseWriter(writer)
        state = RequestState(app=self, writer=response, params=params)
        request = dataclasses.replace(
            request, context={**request.context, STATE_KEY: state}
        )

        stages: list[tuple[str, list[Handler]]] = [
            ("app.before", self._before),
            ("route.before", route.before),
        ]
        for where, handlers in stages:
            for handler in handlers:
                try:
                    handler(response, request)
                except Exception as exc:
                    self._render_error(response, request, exc, where)
                    return

        try:
            self._run_route(response, request, route)
        except Exception as exc:
            self._render_error(response, request, exc, "route.handler")
            return

        for where, handlers in (("route.after", route.after), ("app.after", self._after)):
            for handler in handlers:
                try:
                    handler(response, request)
                except Exception as exc:
                    self._render_error(response, request, exc, where)
                    return


class Group:
    """Routes sharing a prefix, before/after handlers and middleware."""

    def __init__(
        self,
        app: App,
        prefix: str,
        before: list[Handler] | None = None,
        after: list[Handler] | None = None,
        middlewares: list[Middleware] | None = None,
        skip: list[str] | None = None,
    ) -> None:
        self._app = app
        self._prefix = prefix
        self._before = list(before or ())
        self._after = list(after or ())
        self._middlewares = list(middlewares or ())
        self._skip = list(skip or ())

    @property
    def prefix(self) -> str:
        """The full path prefix of the group."""
        return self._prefix

    def group(self, prefix: str) -> Group:
        """A nested group inheriting handlers, middleware and skip patterns."""
        return Group(
            self._app,
            self._prefix + prefix,
            self._before,
            self._after,
            self._middlewares,
            self._skip,
        )

    def before(self, handler: Handler) -> Group:
        """Add a handler that runs before this group's route handlers."""
        self._before.append(handler)
        return self

    def after(self, handler: Handler) -> Group:
        """Add a handler that runs after this group's route handlers."""
        self._after.append(handler)
        return self

    def use(self, *args: Middleware) -> Group:
        """Add middleware applied to every route in the group."""
        self._middlewares.extend(args)
        return self

    def skip(self, *args: str) -> Group:
        """Exclude full route patterns from the group's handlers and middleware.

        A pattern ending in ``*`` matches by prefix. Call before registering
        the affected routes.
        """
        self._skip.extend(args)
        return self

    def _add_route(
        self, method: str, pattern: str, handler: Handler, middlewares: tuple[Middleware, ...]
    ) -> None:
        full_pattern = self._prefix + pattern
        if match_any_glob(full_pattern, self._skip):
            self._app._register(method, full_pattern, handler, middlewares=list(middlewares))
        else:
            self._app._register(
                method,
                full_pattern,
                handler,
                before=self._before,
                after=self._after,
                middlewares=[*self._middlewares, *middlewares],
            )

    def get(self, pattern: str, handler: Handler, *args: Middleware) -> None:
        """Register a GET route in the group."""
        self._add_route("GET", pattern, handler, args)

    def post(self, pattern: str, handler: Handler, *args: Middleware) -> None:
        """Register a POST route in the group."""
        self._add_route("POST", pattern, handler, args)

    def put(self, pattern: str, handler: Handler, *args: Middleware) -> None:
        """Register a PUT route in the group."""
        self._add_route("PUT", pattern, handler, args)

    def delete(self, pattern: str, handler: Handler, *args: Middleware) -> None:
        """Register a DELETE route in the group."""
        self._add_route("DELETE", pattern, handler, args)

    def patch(self, pattern: str, handler: Handler, *args: Middleware) -> None:
        """Register a PATCH route in the group."""
        self._add_route("PATCH", pattern, handler, args)

    def head(self, pattern: str, handler: Handler, *args: Middleware) -> None:
        """Register a HEAD route in the group."""
        self._add_route("HEAD", pattern, handler, args)

    def options(self, pattern: str, handler: Handler, *args: Middleware) -> None:
        """Register an OPTIONS route in the group."""
        self._add_route("OPTIONS", pattern, handler, args)