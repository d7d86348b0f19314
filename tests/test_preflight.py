import socket

import pytest

from slimlocal.portfwd import PortForwarder
from slimlocal.preflight import (
    PortUnavailableError,
    ensure_port_available,
    ensure_port_forwarding,
    ensure_proxy_ports_available,
)


class FakeForwarder(PortForwarder):
    def __init__(self, enabled=False, failure=None):
        self.enabled = enabled
        self.failure = failure
        self.enable_calls = 0

    def enable(self):
        self.enable_calls += 1
        if self.failure is not None:
            raise self.failure
        self.enabled = True

    def disable(self):
        self.enabled = False

    def is_enabled(self):
        return self.enabled


def _listening_socket():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen()
    return sock


def test_ensure_port_available_fails_when_in_use():
    with _listening_socket() as sock:
        host, port = sock.getsockname()
        with pytest.raises(PortUnavailableError, match="unavailable"):
            ensure_port_available(f"{host}:{port}")


def test_ensure_port_available_success():
    sock = _listening_socket()
    host, port = sock.getsockname()
    sock.close()
    assert ensure_port_available(f"{host}:{port}") is None


def test_ensure_proxy_ports_available_fails_when_in_use():
    with _listening_socket() as sock:
        _, port = sock.getsockname()
        with pytest.raises(PortUnavailableError, match=f":{port} is unavailable"):
            ensure_proxy_ports_available(port, port)


def test_ensure_port_available_rejects_bad_address():
    with pytest.raises(ValueError):
        ensure_port_available("not-an-address")


def test_ensure_port_forwarding_already_enabled(capsys):
    forwarder = FakeForwarder(enabled=True)
    assert ensure_port_forwarding(forwarder, 8080, 8443) is True
    assert forwarder.enable_calls == 0
    assert capsys.readouterr().out == ""


def test_ensure_port_forwarding_enables(capsys):
    forwarder = FakeForwarder()
    assert ensure_port_forwarding(forwarder, 8080, 8443) is True
    assert forwarder.enable_calls == 1
    out = capsys.readouterr().out
    assert "Setting up port forwarding (80→8080, 443→8443)" in out
    assert "✓" in out


def test_ensure_port_forwarding_failure_is_skipped(capsys):
    forwarder = FakeForwarder(failure=RuntimeError("iptables not found"))
    assert ensure_port_forwarding(forwarder, 8080, 8443) is False
    out = capsys.readouterr().out
    assert "skipped (iptables not found)" in out
    assert forwarder.is_enabled() is False