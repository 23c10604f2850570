import pytest

from surf.paths import extract_params, match_any_glob, match_path, toggle_trailing_slash


@pytest.mark.parametrize(
    "pattern, path, expected",
    [
        ("/users", "/users", {}),
        ("/users", "/posts", None),
        ("/users/:id", "/users/123", {"id": "123"}),
        ("/users/:id/posts/:postId", "/users/1/posts/2", {"id": "1", "postId": "2"}),
        ("/static/*", "/static/css/style.css", {"*": "css/style.css"}),
        ("/users/:id", "/users", None),
        ("/users", "/users/", None),
    ],
)
def test_match_path(pattern, path, expected):
    assert match_path(pattern, path) == expected


def test_match_path_wildcard_with_param():
    assert match_path("/files/:type/*", "/files/img/a/b.png") == {
        "type": "img",
        "*": "a/b.png",
    }


def test_match_path_wildcard_static_mismatch():
    assert match_path("/static/*", "/public/app.js") is None


def test_match_path_wildcard_too_short():
    assert match_path("/a/b/*", "/a") is None


@pytest.mark.parametrize(
    "pattern, expected",
    [
        ("/users", []),
        ("/users/:id", ["id"]),
        ("/users/:id/posts/:postId", ["id", "postId"]),
        ("/:a/:b/:c", ["a", "b", "c"]),
    ],
)
def test_extract_params(pattern, expected):
    assert extract_params(pattern) == expected


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/", None),
        ("", None),
        ("/users", "/users/"),
        ("/users/", "/users"),
    ],
)
def test_toggle_trailing_slash(path, expected):
    assert toggle_trailing_slash(path) == expected


@pytest.mark.parametrize(
    "path, patterns, expected",
    [
        ("/api/health", ["/api/health"], True),
        ("/api/health/live", ["/api/health"], False),
        ("/health/live", ["/health/*"], True),
        ("/users", ["/health/*"], False),
        ("/anything", ["*"], True),
        ("/x", [], False),
        ("/b", ["/a", "/b"], True),
    ],
)
def test_match_any_glob(path, patterns, expected):
    assert match_any_glob(path, patterns) is expected