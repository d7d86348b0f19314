import json
import os
import socket
import tempfile
import threading

import pytest

from slimlocal.ipc import (
    DomainInfo,
    IPCError,
    IPCServer,
    MessageType,
    Request,
    Response,
    StatusData,
    is_running,
    send_ipc,
)


@pytest.fixture
def sock_path():
    base = "/tmp" if os.path.isdir("/tmp") else None
    with tempfile.TemporaryDirectory(prefix="slim-", dir=base) as home:
        yield os.path.join(home, "slim.sock")


def _start(path, handler):
    srv = IPCServer(path, handler)
    threading.Thread(target=srv.serve, daemon=True).start()
    return srv


def test_protocol_round_trip_json():
    req = Request(type=MessageType.RELOAD, data={"log_mode": "minimal"})
    got = Request.from_json(req.to_json())
    assert got.type == MessageType.RELOAD
    assert got.data == {"log_mode": "minimal"}


def test_status_data_json_keys():
    status = StatusData(running=True, pid=1234, domains=[DomainInfo(name="myapp", port=3000, healthy=True)])
    decoded = json.loads(status.to_json())
    assert {"running", "pid", "domains"} <= decoded.keys()
    assert "routes" not in decoded["domains"][0]
    assert StatusData.from_json(status.to_json()) == status


def test_ipc_server_round_trip(sock_path):
    def handler(req):
        if req.type != MessageType.STATUS:
            return Response(ok=False, error="unexpected request")
        return Response(ok=True, data={"ok": True})

    srv = _start(sock_path, handler)
    try:
        resp = send_ipc(sock_path, Request(type=MessageType.STATUS))
    finally:
        srv.close()
    assert resp.ok is True
    assert resp.data == {"ok": True}


def test_ipc_server_returns_error_on_invalid_json(sock_path):
    srv = _start(sock_path, lambda req: Response(ok=True))
    try:
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as conn:
            conn.settimeout(2)
            conn.connect(sock_path)
            conn.sendall(b"not json\n")
            with conn.makefile("rb") as reader:
                resp = Response.from_json(reader.readline())
    finally:
        srv.close()
    assert resp.ok is False
    assert resp.error


def test_send_ipc_when_daemon_not_running(sock_path):
    with pytest.raises(IPCError, match=r"is slim running\?"):
        send_ipc(sock_path, Request(type=MessageType.STATUS))


def test_ipc_server_close_removes_socket(sock_path):
    srv = IPCServer(sock_path, lambda req: Response(ok=True))
    assert os.path.exists(sock_path)
    srv.close()
    assert not os.path.exists(sock_path)
    with pytest.raises(IPCError, match=r"is slim running\?"):
        send_ipc(sock_path, Request(type=MessageType.STATUS))


def test_is_running_false_for_stale_socket_path(sock_path):
    with open(sock_path, "w") as fh:
        fh.write("not-a-socket")
    assert is_running(sock_path) is False


def test_is_running_true_with_server(sock_path):
    srv = _start(sock_path, lambda req: Response(ok=True))
    try:
        assert is_running(sock_path) is True
    finally:
        srv.close()