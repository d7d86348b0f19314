import pytest

from slimlocal.routing import (
    DomainRouter,
    PathRoute,
    cors_headers,
    local_domain_from_host,
    normalize_host,
)


@pytest.fixture
def router():
    return DomainRouter(
        3000,
        [
            PathRoute("/api", 8080),
            PathRoute("/api/v2", 9090),
            PathRoute("/ws", 9000),
        ],
    )


@pytest.mark.parametrize(
    "path, port",
    [
        ("/", 3000),
        ("/about", 3000),
        ("/api", 8080),
        ("/api/users", 8080),
        ("/api/v2", 9090),
        ("/api/v2/items", 9090),
        ("/apikeys", 3000),
        ("/ws", 9000),
        ("/ws/chat", 9000),
        ("/other", 3000),
    ],
)
def test_domain_router_match(router, path, port):
    assert router.match(path) == port


def test_routes_sorted_longest_first(router):
    assert [r.prefix for r in router.routes] == ["/api/v2", "/api", "/ws"]


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/api/v1/health", "/v1/health"),
        ("/api/users/123", "/users/123"),
        ("/api", "/"),
    ],
)
def test_strip_prefix(path, expected):
    router = DomainRouter(3000, [PathRoute("/api", 8080)])
    assert router.strip_prefix(path) == expected


def test_strip_prefix_default_route_keeps_path(router):
    assert router.strip_prefix("/about/us") == "/about/us"


def test_prefix_with_trailing_slash():
    router = DomainRouter(3000, [PathRoute("/static/", 7000)])
    assert router.match("/static/app.js") == 7000
    assert router.strip_prefix("/static/app.js") == "/app.js"
    assert router.match("/staticfile") == 3000


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("MyApp.Local:443", "myapp.local"),
        ("myapp.local.", "myapp.local"),
        ("  myapp.local  ", "myapp.local"),
        ("[::1]:8080", "::1"),
        ("[::1]", "::1"),
        ("myapp.local.:443", "myapp.local"),
    ],
)
def test_normalize_host(raw, expected):
    assert normalize_host(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("myapp.local", "myapp"),
        ("MYAPP.LOCAL:443", "myapp"),
        ("example.com", None),
        (".local", None),
    ],
)
def test_local_domain_from_host(raw, expected):
    assert local_domain_from_host(raw) == expected


def test_cors_headers():
    headers = cors_headers("https://app.example.com")
    assert headers["Access-Control-Allow-Origin"] == "https://app.example.com"
    assert headers["Access-Control-Allow-Credentials"] == "true"
    assert headers["Access-Control-Max-Age"] == "86400"
    assert headers["Access-Control-Allow-Methods"] == "GET, POST, PUT, PATCH, DELETE, OPTIONS, HEAD"