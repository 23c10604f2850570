# surf

`surf` is a compact HTTP routing toolkit with no third-party dependencies. It
provides:

- a radix-tree router with static segments, `:name` parameters and a trailing
  `*` wildcard, where static routes win over parameters and parameters over
  the wildcard (`surf.radix.RadixTree`);
- an `App` with app-level and group-level `before` / `after` hooks, wrapping
  middleware, per-route middleware and `skip` patterns for groups
  (`surf.app`);
- JSON helpers that write `{"data": ...}`, `{"data": [...], "total": n}` and
  `{"error": ..., "status": ...}` envelopes (`surf.render`);
- a response writer that tracks status, size and per-request custom data, and
  an in-memory `Recorder` (`surf.response`);
- a minimal WebSocket connection with an origin check on by default
  (`surf.websocket`);
- single-page-application serving with index fallback and immutable caching
  for fingerprinted assets (`surf.spa`);
- colour settings for a `key=value` terminal log handler (`surf.reef.options`).

## Requests and writers

A request is a `surf.state.Request` (method, path, query, `Headers`, body,
host, remote address). A query string in `path` is split off into
`raw_query`; `request.query_param(name)` reads one value. `Headers` is a
case-insensitive multi-valued map with `get`, `set`, `add` and `get_all`.

A writer is any object with `headers`, `write_header(status)` and
`write(data)`. `surf.response.Recorder` is such a writer that keeps the
response in memory:

```python
from surf.app import App, param
from surf.response import Recorder
from surf.state import Request

app = App()
app.get("/users/:id", lambda writer, request: writer.write_string("user:" + param(request, "id")))

recorder = Recorder()
app.serve(recorder, Request("GET", "/users/42"))
assert recorder.code == 200
assert recorder.text == "user:42"
```

## Routing

```python
from surf.app import App, param
from surf.render import HTTPError, json_data

app = App()

def get_user(writer, request):
    user_id = param(request, "id")
    if user_id == "0":
        raise HTTPError(404, "no such user")
    json_data(writer, {"id": user_id})

app.get("/users/:id", get_user)
app.get("/static/*", lambda writer, request: writer.write_string(param(request, "*")))
```

Routes are registered with `get`, `post`, `put`, `delete`, `patch`, `head` and
`options`; extra arguments are middleware for that route only. Registering the
same method and pattern again logs a warning and replaces the route.

Handlers are called as `handler(writer, request)`. Raising `HTTPError` sets
the response status and message; any other exception becomes a generic 500
whose body never reveals the detail. Raising `Abort` ends the request quietly.
Once the response is committed, a later error is logged but the response is
left as it is.

An unknown path answers 404; a known path with the wrong method answers 405
with an `Allow` header.

`App` takes keyword options: `error_handler(writer, request, error)`,
`not_found_handler`, `method_not_allowed_handler`, `redirect_trailing_slash`
(answers 308 to the path with its trailing slash toggled when that one exists)
and `logger`.

### Middleware and groups

Middleware takes the next handler and returns a new one; `app.use_func(fn)`
accepts `fn(writer, request, next)` instead.

```python
api = app.group("/api")
api.before(require_login)
api.skip("/api/health")          # exact pattern, or a prefix ending in "*"
api.get("/health", health)       # no login check
api.get("/users", list_users)    # login check applied

v2 = api.group("/v2")            # inherits hooks, middleware and skips
v2.get("/users", list_users_v2)
```

For a request the order is: app `use` middleware, app `before`, group
`before`, group then per-route middleware around the handler, group `after`,
app `after`.

`app.routes()` returns a snapshot of `surf.routes.RouteInfo` records (method,
pattern, parameter names and `RouteStyle`) in registration order.

`surf.paths` offers the pattern helpers `extract_params`, `match_path`,
`toggle_trailing_slash` and `match_any_glob`.

### Services

`app.set_service(key, value)` stores a value in the application's container
and `app.get_service(key)` returns it, or `None`.

## Responses

`surf.render` provides `json_response`, `json_data`, `json_data_status`,
`json_list`, `json_error` and `default_error_renderer`. JSON responses use
`application/json; charset=utf-8`.

Inside a handler the writer is a `surf.response.ResponseWriter` with
`status`, `size`, `written`, `committed`, `latency()` (after you set
`start_time` to `time.monotonic()`), and `set` / `get` / `get_string` /
`custom_data` for per-request values. `get_response_writer(request)`,
`response_status(request)` and `response_size(request)` read the same data
from the request.

## Single-page applications

```python
from surf.spa import SPAConfig, spa, spa_with_config

spa(app, "/", {"index.html": "<html>spa</html>", "assets/app.js": "console.log(1)"})
spa_with_config(app, SPAConfig(prefix="/", files="dist", exclude_prefixes=["api"]))
```

`files` is a mapping of names to contents or a directory. Unknown paths fall
back to `index.html`; files under `assets/` are served with
`Cache-Control: public, max-age=31536000, immutable`, everything else with
`no-cache`; path traversal is neutralised; excluded prefixes answer 404.
Files from a directory also get `Last-Modified` and honour
`If-Modified-Since`; single byte ranges are supported.

## WebSockets

```python
from surf.websocket import UpgradeConfig, WebSocketClosed, allow_origins, upgrade

def echo(writer, request):
    conn = upgrade(writer, request, UpgradeConfig(check_origin=allow_origins("https://app.example.com")))
    with conn:
        try:
            while True:
                kind, data = conn.read_message()
                conn.write_message(kind, data)
        except WebSocketClosed:
            pass
```

A request that is not an upgrade fails with a 400 `HTTPError`, a rejected
origin with a 403. The writer must offer `hijack()` returning the connection,
a reader and a writer stream; otherwise `upgrade` raises `RuntimeError`.
Pings are answered automatically and fragmented messages are reassembled;
messages over 8 MiB raise `ValueError` unless the limit is changed with
`set_max_message_size`. `compute_accept_key`, `is_websocket_upgrade` and
`same_origin_check` are available on their own.

## Log colour settings

`surf.reef.options` holds `Options`, `ColorConfig`, `HandlerType`,
`default_color_config()`, `parse_color_value()` (colour names such as `"red"`
or raw escape sequences) and option functions such as `with_colors`,
`without_colors`, `with_key_color`, `with_key_colors`,
`with_level_line_coloring`, `with_level`, `with_timestamp_format`,
`without_timestamp` and `with_forked_outfile`. Each option is a function that
updates an `Options` object.

## What it does not do

- It has no network server: `App.serve` handles one request given a writer
  and a `Request`, and connecting it to sockets is up to you.
- `surf.reef` contains only the colour and output settings; it has no
  logging handler that renders records with them.
- It has no type-keyed service helpers; use `App.set_service` and
  `App.get_service` with keys of your choice.