"""Control channel between the command line and the daemon over a Unix socket."""

from __future__ import annotations

import json
import os
import socket
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from .httperr import wrap

_TIMEOUT = 30.0
_CONNECT_TIMEOUT = 5.0


class IPCError(Exception):
    """Raised when talking to the daemon fails."""


class MessageType(str, Enum):
    SHUTDOWN = "shutdown"
    STATUS = "status"
    RELOAD = "reload"


@dataclass
class Request:
    type: str
    data: Any = None

    def to_json(self) -> str:
        payload = {"type": str(getattr(self.type, "value", self.type))}
        if self.data is not None:
            payload["data"] = self.data
        return json.dumps(payload, separators=(",", ":"))

    @classmethod
    def from_json(cls, text: str | bytes) -> "Request":
        obj = json.loads(text)
        if not isinstance(obj, dict):
            raise ValueError("request must be a JSON object")
        kind = obj.get("type", "")
        try:
            kind = MessageType(kind)
        except ValueError:
            pass
        return cls(type=kind, data=obj.get("data"))


@dataclass
class Response:
    ok: bool
    error: str = ""
    data: Any = None

    def to_json(self) -> str:
        payload: dict[str, Any] = {"ok": self.ok}
        if self.error:
            payload["error"] = self.error
        if self.data is not None:
            payload["data"] = self.data
        return json.dumps(payload, separators=(",", ":"))

    @classmethod
    def from_json(cls, text: str | bytes) -> "Response":
        obj = json.loads(text)
        if not isinstance(obj, dict):
            raise ValueError("response must be a JSON object")
        return cls(ok=bool(obj.get("ok", False)), error=obj.get("error", ""), data=obj.get("data"))


@dataclass
class RouteInfo:
    path: str
    port: int
    healthy: bool = False


@dataclass
class DomainInfo:
    name: str
    port: int
    healthy: bool = False
    routes: list[RouteInfo] = field(default_factory=list)

    def _to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "port": self.port, "healthy": self.healthy}
        if self.routes:
            out["routes"] = [{"path": r.path, "port": r.port, "healthy": r.healthy} for r in self.routes]
        return out


@dataclass
class StatusData:
    running: bool
    pid: int
    domains: list[DomainInfo] = field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps(
            {"running": self.running, "pid": self.pid, "domains": [d._to_dict() for d in self.domains]}
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> "StatusData":
        obj = json.loads(text)
        domains = [
            DomainInfo(
                name=d.get("name", ""),
                port=d.get("port", 0),
                healthy=d.get("healthy", False),
                routes=[RouteInfo(r.get("path", ""), r.get("port", 0), r.get("healthy", False)) for r in d.get("routes") or []],
            )
            for d in obj.get("domains") or []
        ]
        return cls(running=obj.get("running", False), pid=obj.get("pid", 0), domains=domains)


class IPCServer:
    """Accepts one JSON request per connection and answers with one JSON response."""

    def __init__(self, socket_path: str, handler: Callable[[Request], Response]):
        self.socket_path = socket_path
        self._handler = handler
        self._closed = threading.Event()
        try:
            os.remove(socket_path)
        except FileNotFoundError:
            pass
        os.makedirs(os.path.dirname(socket_path) or ".", exist_ok=True)
        listener = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            listener.bind(socket_path)
            listener.listen()
        except OSError as err:
            listener.close()
            raise IPCError(f"listening on socket: {err}") from err
        listener.settimeout(0.2)
        self._listener = listener

    def serve(self) -> None:
        while not self._closed.is_set():
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            threading.Thread(target=self._handle_conn, args=(conn,), daemon=True).start()

    def _handle_conn(self, conn: socket.socket) -> None:
        with conn:
            conn.settimeout(_TIMEOUT)
            try:
                with conn.makefile("rb") as reader:
                    line = reader.readline()
                req = Request.from_json(line)
            except (ValueError, OSError) as err:
                resp = Response(ok=False, error=str(err) or "invalid request")
            else:
                resp = self._handler(req)
            try:
                conn.sendall((resp.to_json() + "\n").encode("utf-8"))
            except OSError:
                pass

    def close(self) -> None:
        self._closed.set()
        self._listener.close()
        try:
            os.remove(self.socket_path)
        except FileNotFoundError:
            pass


def send_ipc(socket_path: str, request: Request) -> Response:
    """Send a request to the daemon and return its response."""
    conn = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    with conn:
        conn.settimeout(_CONNECT_TIMEOUT)
        try:
            conn.connect(socket_path)
        except OSError as err:
            raise IPCError(str(wrap("connecting to daemon (is slim running?)", err))) from err
        conn.settimeout(_TIMEOUT)
        try:
            conn.sendall((request.to_json() + "\n").encode("utf-8"))
        except OSError as err:
            raise IPCError(f"sending request: {err}") from err
        try:
            with conn.makefile("rb") as reader:
                line = reader.readline()
            return Response.from_json(line)
        except (ValueError, OSError) as err:
            raise IPCError(f"reading response: {err}") from err


def is_running(socket_path: str) -> bool:
    """True if a daemon answers a status request on socket_path."""
    if not os.path.exists(socket_path):
        return False
    try:
        return send_ipc(socket_path, Request(type=MessageType.STATUS)).ok
    except IPCError:
        return False