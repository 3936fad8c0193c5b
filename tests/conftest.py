# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures for markdeploy tests."""

import logging
import socket
import threading

import pytest


MARKDEPLOY_ENV_VARS = [
    "LOGSTASH_HOST",
    "LOGSTASH_PORT",
    "LOGSTASH_TIMEOUT",
    "MARKDEPLOY_APPLICATION",
    "MARKDEPLOY_APPVERSION",
    "MARKDEPLOY_ENV",
    "MARKDEPLOY_SILENT",
    "MARKDEPLOY_CONFIG",
]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the user's environment and ~/.markdeploy.yaml out of tests."""
    for name in MARKDEPLOY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(
        "markdeploy.config.DEFAULT_CONFIG_PATH", str(tmp_path / "no-such-config.yaml")
    )


@pytest.fixture(autouse=True)
def restore_log_level():
    """--verbose lowers the markdeploy logger level; put it back."""
    package_logger = logging.getLogger("markdeploy")
    level = package_logger.level
    yield
    package_logger.setLevel(level)


class LineServer:
    """Loopback tcp listener that accepts one client and records its bytes.

    With read=False the client is accepted but never read from, so its
    writes eventually block.
    """

    def __init__(self, lines: int = 1, read: bool = True):
        self._lines = lines
        self._read = read
        self._lock = threading.Lock()
        self._data = b""
        self.conn = None
        self.accepted = threading.Event()
        self.done = threading.Event()

        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen(5)
        self.host, self.port = self.sock.getsockname()

        self.thread = threading.Thread(target=self._serve, daemon=True)
        self.thread.start()

    @property
    def data(self) -> bytes:
        with self._lock:
            return self._data

    def _serve(self):
        try:
            self.conn, _ = self.sock.accept()
        except OSError:
            return
        self.accepted.set()
        if not self._read:
            return

        self.conn.settimeout(5)
        while True:
            try:
                chunk = self.conn.recv(4096)
            except OSError:
                break
            if not chunk:
                break
            with self._lock:
                self._data += chunk
                if self._data.count(b"\n") >= self._lines:
                    self.done.set()
        self.done.set()

    def close(self):
        # shutdown() wakes a thread blocked in accept()/recv(); close() alone does not
        for sock in (self.conn, self.sock):
            if sock is None:
                continue
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            sock.close()
        self.thread.join(5)


@pytest.fixture
def line_server():
    """Factory for LineServer instances, closed after the test."""
    servers = []

    def _make(lines: int = 1, read: bool = True) -> LineServer:
        server = LineServer(lines=lines, read=read)
        servers.append(server)
        return server

    yield _make

    for server in servers:
        server.close()


@pytest.fixture
def closed_port():
    """A loopback port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
