import json

import pytest

from surf.render import (
    JSON_CONTENT_TYPE,
    HTTPError,
    default_error_renderer,
    json_data,
    json_data_status,
    json_error,
    json_list,
    json_response,
)
from surf.state import Headers, Request


class _Writer:
    def __init__(self):
        self.headers = Headers()
        self.status = None
        self.body = bytearray()

    def write_header(self, status):
        if self.status is None:
            self.status = status

    def write(self, data):
        if self.status is None:
            self.status = 200
        self.body.extend(data)
        return len(data)

    @property
    def text(self):
        return self.body.decode("utf-8")


_EXAMPLE = RuntimeError("example")


def test_json_data():
    writer = _Writer()
    json_data(writer, {"n": 1})
    assert writer.headers.get("Content-Type") == JSON_CONTENT_TYPE
    assert writer.status == 200
    assert json.loads(writer.text)["data"]["n"] == 1


def test_json_list():
    writer = _Writer()
    json_list(writer, ["a", "b"], 42)
    got = json.loads(writer.text)
    assert got["total"] == 42
    assert len(got["data"]) == 2


def test_json_error():
    writer = _Writer()
    json_error(writer, 404, "missing")
    assert writer.status == 404
    got = json.loads(writer.text)
    assert got == {"error": "missing", "status": 404}


def test_json_data_status():
    writer = _Writer()
    json_data_status(writer, 201, [1, 2])
    assert writer.status == 201
    assert json.loads(writer.text) == {"data": [1, 2]}


def test_json_response_is_compact_with_newline():
    writer = _Writer()
    json_response(writer, 200, {"error": "forbidden"})
    assert writer.text == '{"error":"forbidden"}\n'


def test_json_response_escapes_html():
    writer = _Writer()
    json_response(writer, 200, "<b>&")
    assert "<" not in writer.text and "&" not in writer.text
    assert json.loads(writer.text) == "<b>&"


def test_json_response_unserializable_raises():
    with pytest.raises(TypeError):
        json_response(_Writer(), 200, object())


def test_default_error_renderer_http_error():
    writer = _Writer()
    default_error_renderer(writer, Request("GET", "/"), HTTPError(403, "forbidden", _EXAMPLE))
    assert writer.status == 403
    assert '"error":"forbidden"' in writer.text
    assert "example" not in writer.text


def test_default_error_renderer_generic():
    writer = _Writer()
    default_error_renderer(writer, Request("GET", "/"), _EXAMPLE)
    assert writer.status == 500
    assert '"error":"Internal Server Error"' in writer.text
    assert "example" not in writer.text


def test_default_error_renderer_finds_wrapped_http_error():
    writer = _Writer()
    try:
        try:
            raise HTTPError(404, "no such widget")
        except HTTPError as inner:
            raise ValueError("lookup failed") from inner
    except ValueError as outer:
        default_error_renderer(writer, Request("GET", "/"), outer)
    assert writer.status == 404
    assert '"error":"no such widget"' in writer.text


def test_http_error_keeps_cause():
    error = HTTPError(403, "forbidden", _EXAMPLE)
    assert error.code == 403
    assert error.message == "forbidden"
    assert error.__cause__ is _EXAMPLE
    assert str(error) == "forbidden: example"
    assert str(HTTPError(400, "bad")) == "bad"