import email.utils
import time

import pytest

from surf.app import App
from surf.response import Recorder
from surf.spa import SPAConfig, spa, spa_with_config
from surf.state import Request


def spa_files():
    return {
        "index.html": b"<html>spa</html>",
        "assets/app.js": b"console.log(1)",
        "robots.txt": b"User-agent: *",
    }


def _get(app, path, headers=None):
    recorder = Recorder()
    app.serve(recorder, Request(method="GET", path=path, headers=headers or {}))
    return recorder


def _app(**config):
    app = App()
    if config:
        spa_with_config(app, SPAConfig(**config))
    else:
        spa(app, "/", spa_files())
    return app


def test_serves_index_at_root():
    rec = _get(_app(), "/")
    assert rec.code == 200
    assert rec.text == "<html>spa</html>"
    assert rec.headers.get("Cache-Control") == "no-cache"
    assert rec.headers.get("Content-Type") == "text/html; charset=utf-8"


def test_serves_asset_with_immutable_cache():
    rec = _get(_app(), "/assets/app.js")
    assert rec.code == 200
    assert rec.text == "console.log(1)"
    assert rec.headers.get("Cache-Control") == "public, max-age=31536000, immutable"


def test_fallback_to_index():
    rec = _get(_app(), "/some/client/route")
    assert rec.code == 200
    assert rec.text == "<html>spa</html>"


def test_non_immutable_asset():
    rec = _get(_app(), "/robots.txt")
    assert rec.code == 200
    assert rec.text == "User-agent: *"
    assert rec.headers.get("Cache-Control") == "no-cache"
    assert rec.headers.get("Content-Type") == "text/plain; charset=utf-8"


def test_exclude_prefixes():
    app = _app(prefix="/", files=spa_files(), exclude_prefixes=["api"])
    rec = _get(app, "/api/unknown")
    assert rec.code == 404


def test_traversal_blocked():
    rec = _get(_app(), "/../../etc/passwd")
    assert rec.code == 200
    assert rec.text == "<html>spa</html>"


def test_directory_falls_back_to_index(tmp_path):
    (tmp_path / "index.html").write_text("<html>dir</html>")
    (tmp_path / "assets").mkdir()
    app = App()
    spa(app, "/", tmp_path)
    rec = _get(app, "/assets")
    assert rec.code == 200
    assert rec.text == "<html>dir</html>"


def test_missing_index_is_500():
    app = App()
    spa(app, "/", {"robots.txt": b"x"})
    rec = _get(app, "/")
    assert rec.code == 500
    assert rec.text == "SPA index document not found\n"


def test_requires_files():
    with pytest.raises(ValueError):
        spa_with_config(App(), SPAConfig(prefix="/"))


def test_prefix_mount_with_directory(tmp_path):
    (tmp_path / "index.html").write_text("<html>app</html>")
    (tmp_path / "robots.txt").write_text("User-agent: *")
    app = App()
    spa(app, "/app/", tmp_path)

    root = _get(app, "/app")
    assert root.code == 200
    assert root.text == "<html>app</html>"

    asset = _get(app, "/app/robots.txt")
    assert asset.code == 200
    assert asset.text == "User-agent: *"
    assert asset.headers.get("Last-Modified") != ""
    assert asset.headers.get("Content-Length") == "13"


def test_if_modified_since_returns_304(tmp_path):
    (tmp_path / "index.html").write_text("<html></html>")
    (tmp_path / "robots.txt").write_text("User-agent: *")
    app = App()
    spa(app, "/", tmp_path)
    future = email.utils.formatdate(time.time() + 3600, usegmt=True)
    rec = _get(app, "/robots.txt", {"If-Modified-Since": future})
    assert rec.code == 304
    assert rec.body == bytearray()


def test_range_request():
    rec = _get(_app(), "/assets/app.js", {"Range": "bytes=0-6"})
    assert rec.code == 206
    assert rec.text == "console"
    assert rec.headers.get("Content-Range") == "bytes 0-6/14"


def test_unsatisfiable_range():
    rec = _get(_app(), "/assets/app.js", {"Range": "bytes=100-200"})
    assert rec.code == 416
    assert rec.headers.get("Content-Range") == "bytes */14"


def test_custom_immutable_prefixes():
    app = _app(prefix="/", files=spa_files(), immutable_prefixes=["static"])
    rec = _get(app, "/assets/app.js")
    assert rec.headers.get("Cache-Control") == "no-cache"