"""Health checks for the local setup: certificates, trust, forwarding, hosts and daemon."""

from __future__ import annotations

import base64
import binascii
import os
import re
import subprocess
import sys
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import IntEnum
from pathlib import Path
from typing import Callable, Iterable

from cryptography import x509

from .hostfile import HOSTS_PATH, has_marked_entry
from .ipc import IPCError, MessageType, Request, is_running, send_ipc
from .portfwd import PortForwarder

_EXPIRY_WARNING = timedelta(days=30)

PROXY_HTTP_PORT = 10080
PROXY_HTTPS_PORT = 10443

CA_DIRS = (
    "/usr/local/share/ca-certificates",
    "/etc/pki/ca-trust/source/anchors",
    "/etc/ca-certificates/trust-source/anchors",
)

_PEM_BLOCK = re.compile(rb"-----BEGIN ([^\r\n-]+)-----\r?\n(.*?)-----END \1-----", re.S)


class Status(IntEnum):
    PASS = 0
    WARN = 1
    FAIL = 2


@dataclass
class CheckResult:
    name: str
    status: Status
    message: str


@dataclass
class Report:
    results: list[CheckResult] = field(default_factory=list)


def _first_pem_block(data: bytes) -> bytes | None:
    match = _PEM_BLOCK.search(data)
    if match is None:
        return None
    try:
        return base64.b64decode(b"".join(match.group(2).split()), validate=True)
    except (binascii.Error, ValueError):
        return None


def _not_after(cert: x509.Certificate) -> datetime:
    value = getattr(cert, "not_valid_after_utc", None)
    if value is None:
        value = cert.not_valid_after.replace(tzinfo=timezone.utc)
    return value


def _check_cert(name: str, path: str, detailed_errors: bool) -> CheckResult:
    try:
        data = Path(path).read_bytes()
    except OSError:
        return CheckResult(name, Status.FAIL, "not found")

    der = _first_pem_block(data)
    if der is None:
        return CheckResult(name, Status.FAIL, "invalid PEM")

    try:
        cert = x509.load_der_x509_certificate(der)
    except (ValueError, TypeError) as err:
        message = f"cannot parse: {err}" if detailed_errors else "cannot parse"
        return CheckResult(name, Status.FAIL, message)

    expires = _not_after(cert)
    remaining = expires - datetime.now(timezone.utc)
    date = expires.strftime("%Y-%m-%d")
    if remaining <= timedelta(0):
        return CheckResult(name, Status.FAIL, "expired")
    if remaining < _EXPIRY_WARNING:
        return CheckResult(name, Status.WARN, f"expires soon ({date})")
    return CheckResult(name, Status.PASS, f"valid, expires {date}")


def check_ca_cert(path: str) -> CheckResult:
    """Check that the root CA certificate exists, parses and is not near expiry."""
    return _check_cert("CA certificate", path, detailed_errors=True)


def check_leaf_cert(domain: str, path: str) -> CheckResult:
    """Check the certificate issued for domain.local."""
    return _check_cert(f"Cert: {domain}.local", path, detailed_errors=False)


def check_ca_trust(ca_cert_path: str) -> CheckResult:
    """Check whether the operating system trusts the root CA."""
    name = "CA trust"
    if sys.platform == "darwin":
        try:
            proc = subprocess.run(
                ["security", "verify-cert", "-c", ca_cert_path],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False,
            )
        except OSError:
            return CheckResult(name, Status.FAIL, "not trusted by OS")
        if proc.returncode != 0:
            return CheckResult(name, Status.FAIL, "not trusted by OS")
        return CheckResult(name, Status.PASS, "trusted by OS")

    if sys.platform.startswith("linux"):
        base = os.path.basename(ca_cert_path)
        for directory in CA_DIRS:
            if os.path.exists(os.path.join(directory, base)):
                return CheckResult(name, Status.PASS, f"trusted by OS (found in {directory})")
        return CheckResult(name, Status.FAIL, "not found in system CA directories")

    return CheckResult(name, Status.WARN, "trust verification not supported on this platform")


def check_port_forwarding(forwarder: PortForwarder, http_port: int, https_port: int) -> CheckResult:
    name = "Port forwarding"
    if forwarder.is_enabled():
        return CheckResult(name, Status.PASS, f"active (80→{http_port}, 443→{https_port})")
    return CheckResult(name, Status.WARN, "not active")


def check_hosts_file(domain: str, hosts_path: str = HOSTS_PATH) -> CheckResult:
    hostname = f"{domain}.local"
    name = f"Hosts: {hostname}"
    try:
        content = Path(hosts_path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return CheckResult(name, Status.FAIL, f"cannot read {hosts_path}")
    if has_marked_entry(content, hostname):
        return CheckResult(name, Status.PASS, f"present in {hosts_path}")
    return CheckResult(name, Status.FAIL, f"missing from {hosts_path}")


def check_daemon(socket_path: str) -> CheckResult:
    name = "Daemon"
    if not is_running(socket_path):
        return CheckResult(name, Status.WARN, "not running")
    try:
        response = send_ipc(socket_path, Request(type=MessageType.STATUS))
    except IPCError:
        return CheckResult(name, Status.FAIL, "running but IPC failed")
    if not response.ok:
        return CheckResult(name, Status.FAIL, "running but IPC failed")
    return CheckResult(name, Status.PASS, "running")


def run(
    domains: Iterable[str],
    ca_cert_path: str,
    leaf_cert_path: Callable[[str], str],
    forwarder: PortForwarder,
    socket_path: str,
    hosts_path: str = HOSTS_PATH,
) -> Report:
    """Run every check; leaf_cert_path maps a domain name to its certificate file."""
    names = list(domains)
    results = [
        check_ca_cert(ca_cert_path),
        check_ca_trust(ca_cert_path),
        check_port_forwarding(forwarder, PROXY_HTTP_PORT, PROXY_HTTPS_PORT),
    ]
    results.extend(check_hosts_file(d, hosts_path) for d in names)
    results.append(check_daemon(socket_path))
    results.extend(check_leaf_cert(d, leaf_cert_path(d)) for d in names)
    return Report(results=results)