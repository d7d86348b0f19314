"""Reachability checks for upstream development servers."""

from __future__ import annotations

import socket
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

_POLL_INTERVAL = 0.2
_DIAL_TIMEOUT = 1.0
_MAX_PARALLEL = 16


class UpstreamTimeoutError(TimeoutError):
    """Raised when an upstream does not start accepting connections in time."""


def check_upstream(port: int) -> bool:
    """True if something accepts TCP connections on localhost:port."""
    try:
        conn = socket.create_connection(("localhost", port), timeout=_DIAL_TIMEOUT)
    except OSError:
        return False
    conn.close()
    return True


def check_upstreams(ports: Iterable[int]) -> list[bool]:
    """Check many ports concurrently; results follow the order of ports."""
    ports = list(ports)
    if not ports:
        return []
    with ThreadPoolExecutor(max_workers=_MAX_PARALLEL) as pool:
        return list(pool.map(check_upstream, ports))


def wait_for_upstream(port: int, timeout: float) -> None:
    """Block until localhost:port is reachable, polling; raise after timeout seconds."""
    if timeout <= 0:
        raise ValueError("timeout must be greater than 0")

    if check_upstream(port):
        return

    deadline = time.monotonic() + timeout
    next_tick = time.monotonic() + _POLL_INTERVAL
    while True:
        if next_tick >= deadline:
            time.sleep(max(0.0, deadline - time.monotonic()))
            raise UpstreamTimeoutError(
                f"upstream localhost:{port} did not become reachable within {timeout:g}s"
            )
        time.sleep(max(0.0, next_tick - time.monotonic()))
        if check_upstream(port):
            return
        next_tick = max(next_tick + _POLL_INTERVAL, time.monotonic())