"""Friendly error messages for network failures and HTTP error responses."""

from __future__ import annotations

import json
import socket

_NETWORK_ERRORS = (socket.gaierror, socket.herror, TimeoutError, ConnectionError)


class ServerError(Exception):
    """An error reported by a remote server."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


def _chain(err: BaseException):
    seen = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        err = err.__cause__ or err.__context__


def network_hint(err: BaseException | None) -> str:
    """Describe a network error in words a user can act on."""
    if err is None:
        return ""
    chain = list(_chain(err))
    if any(isinstance(e, (socket.gaierror, socket.herror)) for e in chain):
        return "could not resolve host — check your internet connection"
    if any(isinstance(e, TimeoutError) for e in chain):
        return "connection timed out — check your internet connection"

    msg = str(err)
    lowered = msg.lower()
    if "connection refused" in lowered:
        return "connection refused — the server may be down"
    if "no such host" in lowered:
        return "could not resolve host — check your internet connection"
    if "network is unreachable" in lowered or "no route to host" in lowered:
        return "network is unreachable — check your internet connection"
    return msg


def wrap(context: str, err: BaseException | None) -> Exception | None:
    """Return a new error carrying context, with a hint for network errors."""
    if err is None:
        return None
    if any(isinstance(e, _NETWORK_ERRORS) for e in _chain(err)):
        wrapped = RuntimeError(f"{context}: {network_hint(err)}")
    else:
        wrapped = RuntimeError(f"{context}: {err}")
    wrapped.__cause__ = err
    return wrapped


def from_response(status_code: int, body: bytes) -> ServerError:
    """Build an error from an HTTP error response."""
    try:
        payload = json.loads(body[:1024])
    except (ValueError, UnicodeDecodeError):
        payload = None
    if isinstance(payload, dict):
        for key in ("error", "message"):
            msg = payload.get(key)
            if isinstance(msg, str) and msg:
                return ServerError(f"server error: {msg} (HTTP {status_code})", status_code)

    hint = status_hint(status_code)
    if hint:
        return ServerError(f"server returned HTTP {status_code} — {hint}", status_code)
    return ServerError(f"server returned HTTP {status_code}", status_code)


def status_hint(code: int) -> str:
    if code == 401:
        return "unauthorized, please try logging in again"
    if code == 403:
        return "access denied"
    if code == 404:
        return "endpoint not found, you may need to update slim"
    if code == 429:
        return "too many requests, please wait a moment and try again"
    if code == 500:
        return "internal server error, please try again later"
    if code in (502, 503, 521, 522, 523):
        return "the server is temporarily unavailable, please try again later"
    if code in (504, 524):
        return "the server took too long to respond, please try again later"
    if code >= 500:
        return "server error, please try again later"
    return ""