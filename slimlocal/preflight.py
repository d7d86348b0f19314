"""Checks and one-time setup run before the proxy starts."""

from __future__ import annotations

import socket

from .portfwd import PortForwarder
from .term import Step, run_steps


class PortUnavailableError(Exception):
    """Raised when a proxy listener port is already taken."""


def _split_addr(addr: str) -> tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address: {addr!r}")
    return host.strip("[]"), int(port)


def ensure_port_available(addr: str) -> None:
    """Raise PortUnavailableError if nothing can listen on addr ("host:port" or ":port")."""
    host, port = _split_addr(addr)
    try:
        if not host and socket.has_dualstack_ipv6():
            server = socket.create_server(("", port), family=socket.AF_INET6, dualstack_ipv6=True)
        else:
            family = socket.AF_INET6 if ":" in host else socket.AF_INET
            server = socket.create_server((host, port), family=family)
    except OSError as err:
        raise PortUnavailableError(
            f"proxy listener port {addr} is unavailable: {err} "
            "(another local proxy/old daemon may already be running)"
        ) from err
    server.close()


def ensure_proxy_ports_available(http_port: int, https_port: int) -> None:
    for port in (http_port, https_port):
        ensure_port_available(f":{port}")


def ensure_port_forwarding(forwarder: PortForwarder, http_port: int, https_port: int) -> bool:
    """Enable forwarding if it is off; a failure is reported as skipped, not raised.

    Returns whether forwarding is active afterwards.
    """
    if forwarder.is_enabled():
        return True

    enabled = False

    def enable() -> str:
        nonlocal enabled
        try:
            forwarder.enable()
        except Exception as err:
            return f"skipped ({err})"
        enabled = True
        return "done"

    run_steps(
        [
            Step(
                name=f"Setting up port forwarding (80→{http_port}, 443→{https_port})",
                run=enable,
            )
        ]
    )
    return enabled