"""Tunnel wire protocol: registration messages, frames and HTTP message encoding."""

from __future__ import annotations

import json
import struct
from dataclasses import dataclass, field
from http import HTTPStatus
from urllib.parse import urlsplit

_FRAME_HEADER = struct.Struct(">I")


class FrameError(ValueError):
    """Raised when a frame or an HTTP message cannot be decoded."""


@dataclass
class RegistrationRequest:
    token: str
    subdomain: str
    password: str = ""
    ttl: str = ""

    def to_json(self) -> str:
        payload = {"token": self.token, "subdomain": self.subdomain}
        if self.password:
            payload["password"] = self.password
        if self.ttl:
            payload["ttl"] = self.ttl
        return json.dumps(payload)

    @classmethod
    def from_json(cls, text: str | bytes) -> "RegistrationRequest":
        obj = json.loads(text)
        return cls(
            token=obj.get("token", ""),
            subdomain=obj.get("subdomain", ""),
            password=obj.get("password", ""),
            ttl=obj.get("ttl", ""),
        )


@dataclass
class RegistrationResponse:
    ok: bool
    url: str = ""
    subdomain: str = ""
    error: str = ""

    def to_json(self) -> str:
        payload = {"ok": self.ok, "url": self.url, "subdomain": self.subdomain}
        if self.error:
            payload["error"] = self.error
        return json.dumps(payload)

    @classmethod
    def from_json(cls, text: str | bytes) -> "RegistrationResponse":
        obj = json.loads(text)
        return cls(
            ok=bool(obj.get("ok", False)),
            url=obj.get("url", ""),
            subdomain=obj.get("subdomain", ""),
            error=obj.get("error", ""),
        )


def _find_header(headers: list[tuple[str, str]], name: str) -> str:
    wanted = name.lower()
    return next((value for key, value in headers if key.lower() == wanted), "")


@dataclass
class HttpRequest:
    method: str
    target: str
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""
    version: str = "HTTP/1.1"

    def path(self) -> str:
        return urlsplit(self.target).path

    def query(self) -> str:
        return urlsplit(self.target).query

    def header(self, name: str) -> str:
        return _find_header(self.headers, name)


@dataclass
class HttpResponse:
    status_code: int
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""
    reason: str = ""
    version: str = "HTTP/1.1"

    def header(self, name: str) -> str:
        return _find_header(self.headers, name)


def encode_frame(request_id: int, data: bytes | None) -> bytes:
    """Prefix data with a big-endian 32-bit request id."""
    return _FRAME_HEADER.pack(request_id) + (data or b"")


def decode_frame(frame: bytes) -> tuple[int, bytes]:
    """Split a frame into its request id and payload."""
    if len(frame) < _FRAME_HEADER.size:
        raise FrameError(f"frame too short: {len(frame)} bytes")
    (request_id,) = _FRAME_HEADER.unpack_from(frame)
    return request_id, bytes(frame[_FRAME_HEADER.size:])


def _dump(start_line: str, headers: list[tuple[str, str]], body: bytes) -> bytes:
    lines = [start_line]
    lines.extend(f"{key}: {value}" for key, value in headers)
    if not _find_header(headers, "Content-Length") and not _find_header(headers, "Transfer-Encoding"):
        lines.append(f"Content-Length: {len(body)}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1") + body


def _parse(data: bytes) -> tuple[str, list[tuple[str, str]], bytes]:
    head, sep, rest = data.partition(b"\r\n\r\n")
    if not sep:
        raise FrameError("malformed HTTP message: missing header terminator")
    lines = head.decode("latin-1").split("\r\n")
    headers = []
    for line in lines[1:]:
        key, colon, value = line.partition(":")
        if not colon or not key.strip():
            raise FrameError(f"malformed header line: {line!r}")
        headers.append((key.strip(), value.strip()))
    length = _find_header(headers, "Content-Length")
    if length:
        try:
            size = int(length)
        except ValueError:
            raise FrameError(f"invalid Content-Length: {length!r}") from None
        if size > len(rest):
            raise FrameError("unexpected end of body")
        rest = rest[:size]
    return lines[0], headers, rest


def serialize_request(request: HttpRequest) -> bytes:
    return _dump(f"{request.method} {request.target} {request.version}", request.headers, request.body)


def deserialize_request(data: bytes) -> HttpRequest:
    start, headers, body = _parse(data)
    parts = start.split(" ")
    if len(parts) != 3 or not parts[0] or not parts[2].startswith("HTTP/"):
        raise FrameError(f"malformed request line: {start!r}")
    method, target, version = parts
    return HttpRequest(method=method, target=target, headers=headers, body=body, version=version)


def serialize_response(response: HttpResponse) -> bytes:
    reason = response.reason
    if not reason:
        try:
            reason = HTTPStatus(response.status_code).phrase
        except ValueError:
            reason = "status code"
    return _dump(f"{response.version} {response.status_code} {reason}", response.headers, response.body)


def deserialize_response(data: bytes) -> HttpResponse:
    start, headers, body = _parse(data)
    version, _, remainder = start.partition(" ")
    code, _, reason = remainder.partition(" ")
    if not version.startswith("HTTP/") or not code.isdigit() or len(code) != 3:
        raise FrameError(f"malformed status line: {start!r}")
    return HttpResponse(status_code=int(code), headers=headers, body=body, reason=reason, version=version)