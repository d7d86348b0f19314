"""Redirect ports 80 and 443 on loopback to the proxy's own ports."""

from __future__ import annotations

import os
import subprocess
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable

from .hostfile import write_file_elevated
from .osutil import command_exists as _command_exists
from .osutil import run_privileged as _run_privileged

ANCHOR_NAME = "com.slim"
ANCHOR_FILE = "/etc/pf.anchors/com.slim"
PF_CONF = "/etc/pf.conf"
LINUX_CHAIN_NAME = "SLIM"

_ANCHOR_LOAD = f'rdr-anchor "{ANCHOR_NAME}"'
_ANCHOR_RULE = f'load anchor "{ANCHOR_NAME}" from "{ANCHOR_FILE}"'
_OUTPUT_JUMP = ("-o", "lo", "-p", "tcp", "-j", LINUX_CHAIN_NAME)


class PortForwardError(Exception):
    """Raised when port forwarding cannot be changed."""


class PortForwarder(ABC):
    """Turns loopback port forwarding on and off."""

    @abstractmethod
    def enable(self) -> None: ...

    @abstractmethod
    def disable(self) -> None: ...

    @abstractmethod
    def is_enabled(self) -> bool: ...


def _text(output: bytes | str | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        output = output.decode("utf-8", "replace")
    return output.strip()


def _combined(argv: list[str]) -> tuple[int, str]:
    try:
        proc = subprocess.run(argv, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=False)
    except OSError as err:
        return 127, str(err)
    return proc.returncode, _text(proc.stdout)


def is_pf_already_enabled_output(out: str) -> bool:
    return "pf already enabled" in out.lower()


def _with_anchor(conf: str) -> tuple[str, bool]:
    """Return pf.conf text with the anchor hooked in, and whether it changed."""
    changed = False
    if _ANCHOR_LOAD not in conf:
        updated: list[str] = []
        inserted = False
        for line in conf.split("\n"):
            updated.append(line)
            if not inserted and line.startswith("rdr-anchor"):
                updated.append(_ANCHOR_LOAD)
                inserted = True
        if not inserted:
            updated.insert(0, _ANCHOR_LOAD)
        conf = "\n".join(updated)
        changed = True
    if _ANCHOR_RULE not in conf:
        conf = conf.rstrip("\n") + "\n" + _ANCHOR_RULE + "\n"
        changed = True
    return conf, changed


def _without_anchor(conf: str) -> str:
    return conf.replace(_ANCHOR_LOAD + "\n", "").replace(_ANCHOR_RULE + "\n", "")


class DarwinPortForwarder(PortForwarder):
    """pf anchor based forwarding for macOS."""

    def __init__(self, http_port: int, https_port: int):
        self.http_port = http_port
        self.https_port = https_port
        self.rules = (
            f"rdr pass on lo0 inet proto tcp from any to 127.0.0.1 port 80 -> 127.0.0.1 port {http_port}\n"
            f"rdr pass on lo0 inet proto tcp from any to 127.0.0.1 port 443 -> 127.0.0.1 port {https_port}\n"
        )

    def enable(self) -> None:
        try:
            write_file_elevated(ANCHOR_FILE, self.rules)
        except (OSError, subprocess.CalledProcessError) as err:
            raise PortForwardError(f"writing pf anchor: {err}") from err

        try:
            conf = Path(PF_CONF).read_text(encoding="utf-8")
        except OSError as err:
            raise PortForwardError(f"reading pf.conf: {err}") from err

        conf, needs_update = _with_anchor(conf)
        if needs_update:
            try:
                write_file_elevated(PF_CONF, conf)
            except (OSError, subprocess.CalledProcessError) as err:
                raise PortForwardError(f"writing pf.conf: {err}") from err

        code, out = _combined(["sudo", "pfctl", "-e"])
        if code != 0 and not is_pf_already_enabled_output(out):
            raise PortForwardError(f"enabling pfctl: {out}: exit status {code}")

        code, out = _combined(["sudo", "pfctl", "-f", PF_CONF])
        if code != 0:
            raise PortForwardError(f"loading pfctl rules: {out}: exit status {code}")

    def disable(self) -> None:
        code, out = _combined(["sudo", "rm", "-f", ANCHOR_FILE])
        if code != 0:
            raise PortForwardError(f"removing pf anchor: {out}: exit status {code}")

        try:
            conf = Path(PF_CONF).read_text(encoding="utf-8")
        except OSError:
            return

        try:
            write_file_elevated(PF_CONF, _without_anchor(conf))
        except (OSError, subprocess.CalledProcessError) as err:
            raise PortForwardError(f"writing pf.conf: {err}") from err

        code, out = _combined(["sudo", "pfctl", "-f", PF_CONF])
        if code != 0:
            raise PortForwardError(f"reloading pfctl: {out}: exit status {code}")

    def is_enabled(self) -> bool:
        return os.path.exists(ANCHOR_FILE)


def iptables_chain_already_exists(output: bytes | str | None) -> bool:
    msg = _text(output).lower()
    return "chain already exists" in msg or "file exists" in msg


def iptables_chain_missing(output: bytes | str | None) -> bool:
    msg = _text(output).lower()
    return (
        "no chain/target/match by that name" in msg
        or "does a matching rule exist" in msg
        or "not found" in msg
    )


def _default_run_check(name: str, *args: str) -> bool:
    try:
        proc = subprocess.run(
            [name, *args], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, check=False
        )
    except OSError:
        return False
    return proc.returncode == 0


class LinuxPortForwarder(PortForwarder):
    """iptables nat chain based forwarding for Linux."""

    def __init__(
        self,
        http_port: int,
        https_port: int,
        run_privileged: Callable[..., bytes] = _run_privileged,
        command_exists: Callable[[str], bool] = _command_exists,
        run_check: Callable[..., bool] = _default_run_check,
    ):
        self.http_port = http_port
        self.https_port = https_port
        self._run_privileged = run_privileged
        self._command_exists = command_exists
        self._run_check = run_check

    def _iptables(self, *args: str) -> tuple[str, Exception | None]:
        """Run iptables in the nat table; return its output and any failure."""
        try:
            return _text(self._run_privileged("iptables", "-t", "nat", *args)), None
        except subprocess.CalledProcessError as err:
            return _text(err.output), err
        except OSError as err:
            return "", err

    def enable(self) -> None:
        if not self._command_exists("iptables"):
            raise PortForwardError("iptables not found (install iptables)")

        self._ensure_chain()
        self._ensure_redirect_rule(80, self.http_port)
        self._ensure_redirect_rule(443, self.https_port)

        if not self._rule_exists("OUTPUT", *_OUTPUT_JUMP):
            out, err = self._iptables("-I", "OUTPUT", "1", *_OUTPUT_JUMP)
            if err is not None:
                raise PortForwardError(f"installing OUTPUT jump rule: {out}: {err}") from err

    def disable(self) -> None:
        if not self._command_exists("iptables"):
            return

        while self._rule_exists("OUTPUT", *_OUTPUT_JUMP):
            out, err = self._iptables("-D", "OUTPUT", *_OUTPUT_JUMP)
            if err is not None:
                raise PortForwardError(f"removing OUTPUT jump rule: {out}: {err}") from err

        out, err = self._iptables("-F", LINUX_CHAIN_NAME)
        if err is not None and not iptables_chain_missing(out):
            raise PortForwardError(f"flushing chain {LINUX_CHAIN_NAME}: {out}: {err}") from err
        out, err = self._iptables("-X", LINUX_CHAIN_NAME)
        if err is not None and not iptables_chain_missing(out):
            raise PortForwardError(f"deleting chain {LINUX_CHAIN_NAME}: {out}: {err}") from err

    def is_enabled(self) -> bool:
        if not self._command_exists("iptables"):
            return False
        return bool(self._run_check("iptables", "-t", "nat", "-C", "OUTPUT", *_OUTPUT_JUMP))

    def _ensure_chain(self) -> None:
        out, err = self._iptables("-N", LINUX_CHAIN_NAME)
        if err is not None and not iptables_chain_already_exists(out):
            raise PortForwardError(f"creating chain {LINUX_CHAIN_NAME}: {out}: {err}") from err
        out, err = self._iptables("-F", LINUX_CHAIN_NAME)
        if err is not None:
            raise PortForwardError(f"flushing chain {LINUX_CHAIN_NAME}: {out}: {err}") from err

    def _ensure_redirect_rule(self, from_port: int, to_port: int) -> None:
        out, err = self._iptables(
            "-A", LINUX_CHAIN_NAME,
            "-p", "tcp",
            "-d", "127.0.0.1/32",
            "--dport", str(from_port),
            "-j", "REDIRECT",
            "--to-ports", str(to_port),
        )
        if err is not None:
            raise PortForwardError(
                f"adding redirect rule {from_port}->{to_port}: {out}: {err}"
            ) from err

    def _rule_exists(self, chain: str, *rule_args: str) -> bool:
        out, err = self._iptables("-C", chain, *rule_args)
        if err is None:
            return True
        msg = out.lower()
        if (
            "bad rule" in msg
            or "no chain/target/match by that name" in msg
            or "does a matching rule exist" in msg
            or "not found" in msg
        ):
            return False
        raise PortForwardError(f"checking iptables rule: {out}: {err}") from err


def new_port_forwarder(http_port: int, https_port: int) -> PortForwarder:
    """Return the forwarder for the running platform."""
    if sys.platform == "darwin":
        return DarwinPortForwarder(http_port, https_port)
    if sys.platform.startswith("linux"):
        return LinuxPortForwarder(http_port, https_port)
    raise PortForwardError(f"port forwarding is not supported on {sys.platform}")