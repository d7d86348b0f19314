"""Host name handling and path-prefix routing for proxied domains."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

_LOCAL_SUFFIX = ".local"

_CORS_METHODS = "GET, POST, PUT, PATCH, DELETE, OPTIONS, HEAD"
_CORS_HEADERS = "Accept, Authorization, Content-Type, X-Requested-With"


@dataclass(frozen=True)
class PathRoute:
    """Send requests under prefix to a different upstream port."""

    prefix: str
    port: int

    def matches(self, path: str) -> bool:
        if path == self.prefix:
            return True
        if not path.startswith(self.prefix):
            return False
        if self.prefix.endswith("/"):
            return True
        return path[len(self.prefix):len(self.prefix) + 1] == "/"


class DomainRouter:
    """Picks the upstream port for a request path; the longest matching prefix wins."""

    def __init__(self, default_port: int, routes: Iterable[PathRoute] = ()):
        self.default_port = default_port
        self.routes = sorted(routes, key=lambda r: len(r.prefix), reverse=True)

    def _find(self, path: str) -> PathRoute | None:
        return next((route for route in self.routes if route.matches(path)), None)

    def match(self, path: str) -> int:
        """Return the upstream port that serves path."""
        route = self._find(path)
        return route.port if route is not None else self.default_port

    def strip_prefix(self, path: str) -> str:
        """Return the path the upstream sees, with any matched route prefix removed."""
        route = self._find(path)
        if route is None:
            return path
        stripped = path[len(route.prefix):]
        if not stripped.startswith("/"):
            stripped = "/" + stripped
        return stripped


def _split_host_port(host: str) -> str | None:
    """Return the host part of "host:port" or "[v6]:port", or None if there is no port."""
    if host.startswith("["):
        end = host.find("]")
        if end == -1 or host[end + 1:end + 2] != ":" or ":" in host[end + 2:]:
            return None
        return host[1:end]
    if host.count(":") == 1:
        return host.partition(":")[0]
    return None


def normalize_host(host: str) -> str:
    """Lower-case host, dropping any port, brackets and trailing dot."""
    host = host.strip().lower().removesuffix(".")
    parsed = _split_host_port(host)
    if parsed is not None:
        host = parsed
    return host.strip("[]").removesuffix(".")


def local_domain_from_host(host: str) -> str | None:
    """Return "name" for a "name.local" host, or None for any other host."""
    host = normalize_host(host)
    if not host.endswith(_LOCAL_SUFFIX):
        return None
    name = host[: -len(_LOCAL_SUFFIX)]
    return name or None


def cors_headers(origin: str) -> dict[str, str]:
    """Headers that allow the given origin to make credentialed requests."""
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": _CORS_METHODS,
        "Access-Control-Allow-Headers": _CORS_HEADERS,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Max-Age": "86400",
    }