import dataclasses

import pytest

from surf.routes import RouteInfo, RouteStyle


def test_route_style_string():
    standard = RouteInfo(method="GET", pattern="/a")
    context = RouteInfo(method="GET", pattern="/b", style=RouteStyle.CONTEXT)
    assert f"{standard.style}" == "standard"
    assert f"{context.style}" == "context"


def test_route_info_defaults():
    info = RouteInfo(method="GET", pattern="/users")
    assert info.style is RouteStyle.STANDARD
    assert info.params == ()
    assert info.req_type is None
    assert info.resp_type is None


def test_route_info_is_immutable():
    info = RouteInfo(method="GET", pattern="/x")
    with pytest.raises(dataclasses.FrozenInstanceError):
        info.pattern = "/mutated"
    assert info.pattern == "/x"


def test_route_info_replace_leaves_original():
    info = RouteInfo(method="POST", pattern="/users/:id", params=("id",))
    typed = dataclasses.replace(info, req_type=dict, resp_type=list)
    assert info.req_type is None
    assert typed.req_type is dict
    assert typed.resp_type is list
    assert typed.params == ("id",)


def test_route_info_equality():
    a = RouteInfo("GET", "/healthz", (), RouteStyle.CONTEXT)
    b = RouteInfo("GET", "/healthz", (), RouteStyle.CONTEXT)
    assert a == b
    assert a != RouteInfo("GET", "/healthz")