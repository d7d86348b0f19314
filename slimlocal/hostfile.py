"""Marked entries in the hosts file, written with elevated rights when needed."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

HOSTS_PATH = "/etc/hosts"
MARKER = "# slim"

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def write_file_elevated(path: str, content: str) -> None:
    """Write content to path, retrying through `sudo tee` on a permission error."""
    try:
        Path(path).write_text(content, encoding=_ENCODING, errors=_ERRORS)
        return
    except PermissionError:
        pass
    subprocess.run(
        ["sudo", "tee", path],
        input=content.encode(_ENCODING, _ERRORS),
        stdout=subprocess.DEVNULL,
        stderr=sys.stderr,
        check=True,
    )


def _read_hosts(hosts_path: str) -> str:
    try:
        return Path(hosts_path).read_text(encoding=_ENCODING, errors=_ERRORS)
    except OSError as err:
        raise OSError(f"reading hosts file: {err}") from err


def line_has_host(line: str, hostname: str) -> bool:
    """True if hostname is one of the whitespace-separated fields of line."""
    return hostname in line.split()


def has_marked_entry(content: str, hostname: str) -> bool:
    """True if some line names hostname and carries the marker."""
    return any(
        line_has_host(line, hostname) and MARKER in line for line in content.split("\n")
    )


def add_host(name: str, hosts_path: str = HOSTS_PATH) -> None:
    """Point name.local at 127.0.0.1 unless a marked entry already exists."""
    hostname = f"{name}.local"
    entry = f"127.0.0.1 {hostname} {MARKER}"
    content = _read_hosts(hosts_path)
    if has_marked_entry(content, hostname):
        return
    write_file_elevated(hosts_path, content.rstrip("\n") + "\n" + entry + "\n")


def remove_host(name: str, hosts_path: str = HOSTS_PATH) -> None:
    """Drop the marked entries for name.local, leaving other lines alone."""
    hostname = f"{name}.local"
    content = _read_hosts(hosts_path)
    kept = [
        line
        for line in content.split("\n")
        if not (line_has_host(line, hostname) and MARKER in line)
    ]
    write_file_elevated(hosts_path, "\n".join(kept))


def remove_all_hosts(hosts_path: str = HOSTS_PATH) -> None:
    """Drop every line that carries the marker."""
    content = _read_hosts(hosts_path)
    kept = [line for line in content.split("\n") if MARKER not in line]
    write_file_elevated(hosts_path, "\n".join(kept))