"""Access log writer and console messages."""

from __future__ import annotations

import os
import queue
import threading
import time

from .term import CYAN, RED

MAX_LOG_SIZE = 10 << 20
_BUFFER_SIZE = 4096
_FLUSH_PERIOD = 0.25

_MODES = ("full", "minimal", "off")

_lock = threading.Lock()
_mode = "full"
_queue: queue.Queue | None = None
_stop: threading.Event | None = None
_thread: threading.Thread | None = None


def _normalize_mode(mode: str) -> str:
    return mode if mode in _MODES else "full"


def _writer(handle, entries: queue.Queue, stop: threading.Event) -> None:
    with handle:
        while True:
            try:
                line = entries.get(timeout=_FLUSH_PERIOD)
            except queue.Empty:
                handle.flush()
                if stop.is_set():
                    return
                continue
            if line is not None:
                handle.write(line)
            if stop.is_set():
                while True:
                    try:
                        line = entries.get_nowait()
                    except queue.Empty:
                        return
                    if line is not None:
                        handle.write(line)


def _shutdown_locked() -> None:
    global _queue, _stop, _thread
    if _stop is not None and _thread is not None:
        _stop.set()
        try:
            _queue.put_nowait(None)
        except queue.Full:
            pass
        _thread.join()
    _queue = _stop = _thread = None


def set_output(path: str, mode: str) -> None:
    """Direct request logs to path in the given mode (full, minimal or off)."""
    global _mode, _queue, _stop, _thread
    with _lock:
        _shutdown_locked()
        _mode = _normalize_mode(mode)
        if _mode == "off":
            return
        try:
            if os.path.getsize(path) > MAX_LOG_SIZE:
                os.truncate(path, 0)
        except OSError:
            pass
        handle = open(path, "a", encoding="utf-8", buffering=64 * 1024)
        _queue = queue.Queue(maxsize=_BUFFER_SIZE)
        _stop = threading.Event()
        _thread = threading.Thread(target=_writer, args=(handle, _queue, _stop), daemon=True)
        _thread.start()


def close() -> None:
    """Flush pending entries and close the log file."""
    with _lock:
        _shutdown_locked()


def request(domain: str, method: str, path: str, upstream: int, status: int, duration: float) -> None:
    """Record one proxied request; drops the entry if the buffer is full."""
    with _lock:
        mode, entries = _mode, _queue
    if mode == "off" or entries is None:
        return
    ts = time.strftime("%H:%M:%S")
    dur = format_duration(duration)
    if mode == "minimal":
        line = f"{ts}\t{domain}\t{status}\t{dur}\n"
    else:
        line = f"{ts}\t{domain}\t{method}\t{path}\t{upstream}\t{status}\t{dur}\n"
    try:
        entries.put_nowait(line)
    except queue.Full:
        pass


def info(message: str) -> None:
    print(f"{CYAN.render('[slim]')} {message}")


def error(message: str) -> None:
    print(f"{RED.render('[slim]')} {message}")


def format_duration(seconds: float) -> str:
    micros = round(seconds * 1_000_000)
    if micros < 1000:
        return f"{micros}µs"
    if micros < 1_000_000:
        return f"{micros // 1000}ms"
    return f"{micros / 1_000_000:.1f}s"