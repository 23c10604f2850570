import pytest

from surf.radix import RadixTree, longest_common_prefix


def _tree(*patterns):
    tree = RadixTree()
    for pattern in patterns:
        tree.insert(pattern, pattern)
    return tree


def test_basic_static_routes():
    routes = ["/", "/users", "/users/list", "/posts", "/posts/new"]
    tree = _tree(*routes)
    for pattern in routes:
        handler, params = tree.search(pattern)
        assert handler == pattern
        assert params == {}


@pytest.mark.parametrize(
    "path, want, params",
    [
        ("/users/123", "/users/:id", {"id": "123"}),
        ("/users/abc", "/users/:id", {"id": "abc"}),
        ("/users/42/posts/99", "/users/:id/posts/:postId", {"id": "42", "postId": "99"}),
        ("/files/images/cat.jpg", "/files/:type/:name", {"type": "images", "name": "cat.jpg"}),
    ],
)
def test_parameters(path, want, params):
    tree = _tree("/users/:id", "/users/:id/posts/:postId", "/files/:type/:name")
    handler, got = tree.search(path)
    assert handler == want
    for key, value in params.items():
        assert got[key] == value


@pytest.mark.parametrize(
    "path, want, params",
    [
        ("/static/css/style.css", "/static/*", {"*": "css/style.css"}),
        ("/static/js/app.js", "/static/*", {"*": "js/app.js"}),
        ("/static/deep/nested/path/file.txt", "/static/*", {"*": "deep/nested/path/file.txt"}),
        ("/files/images/photos/cat.jpg", "/files/:type/*", {"type": "images", "*": "photos/cat.jpg"}),
    ],
)
def test_wildcard(path, want, params):
    tree = _tree("/static/*", "/files/:type/*")
    handler, got = tree.search(path)
    assert handler == want
    for key, value in params.items():
        assert got[key] == value


@pytest.mark.parametrize("path", ["/posts", "/user", "/userss", "/users/123/extra"])
def test_not_found(path):
    tree = _tree("/users", "/users/:id")
    handler, params = tree.search(path)
    assert handler is None
    assert params == {}


def test_static_beats_parameter():
    tree = _tree("/users/new", "/users/:id")

    handler, params = tree.search("/users/new")
    assert handler == "/users/new"
    assert params == {}

    handler, params = tree.search("/users/123")
    assert handler == "/users/:id"
    assert params["id"] == "123"


@pytest.mark.parametrize(
    "path", ["/api/users", "/api/posts", "/api/users/list", "/app/settings"]
)
def test_common_prefix(path):
    tree = _tree("/api/users", "/api/posts", "/api/users/list", "/app/settings")
    handler, _ = tree.search(path)
    assert handler == path


@pytest.mark.parametrize(
    "a, b, want",
    [
        ("abc", "abd", 2),
        ("abc", "abc", 3),
        ("abc", "xyz", 0),
        ("", "abc", 0),
        ("abc", "", 0),
        ("/users", "/users/list", 6),
        ("/api:id", "/api/v1", 4),
    ],
)
def test_longest_common_prefix(a, b, want):
    assert longest_common_prefix(a, b) == want


def test_empty_pattern_and_path_mean_root():
    tree = RadixTree()
    tree.insert("", "root")
    assert tree.search("/") == ("root", {})
    assert tree.search("") == ("root", {})


def test_split_keeps_existing_handler():
    tree = _tree("/users/list")
    tree.insert("/users/lookup", "/users/lookup")
    assert tree.search("/users/list")[0] == "/users/list"
    assert tree.search("/users/lookup")[0] == "/users/lookup"
    assert tree.search("/users/l")[0] is None


def test_first_parameter_name_is_kept():
    tree = _tree("/u/:id", "/u/:name/x")
    handler, params = tree.search("/u/7/x")
    assert handler == "/u/:name/x"
    assert params == {"id": "7"}


def test_empty_parameter_value_does_not_match():
    tree = _tree("/users/:id/posts")
    assert tree.search("/users//posts") == (None, {})


def test_failed_parameter_branch_falls_back_to_wildcard():
    tree = _tree("/a/:id/b", "/a/*")
    handler, params = tree.search("/a/1/c")
    assert handler == "/a/*"
    assert params == {"*": "1/c"}


def test_reinsert_replaces_handler():
    tree = RadixTree()
    tree.insert("/x", "first")
    tree.insert("/x", "second")
    assert tree.search("/x")[0] == "second"