# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Logstash tcp input client.

Owns a single lazily-opened tcp connection to a logstash tcp input and
writes newline-terminated frames to it. A failed write always closes and
drops the connection; the caller decides whether to connect() again.

Deadlines are absolute: one Timeout after connect, pushed forward after
every successful write. Sockets only take relative timeouts, so each write
is given whatever is left until the deadline.
"""

import logging
import socket
import struct
import time
from typing import Any, Dict, Optional

from markdeploy import errors

KEEPALIVE_PERIOD_S = 5


class LogstashClient:
    """Sends line-framed events to a logstash tcp input."""

    def __init__(self, host: str, port: int, timeout: int):
        """
        Initialize the client. Nothing is opened until connect().

        Args:
            host: IP or hostname of the logstash server
            port: Port of the logstash tcp input
            timeout: Connect/read/write timeout in milliseconds
        """
        self._host = host
        self._port = port
        self._timeout = timeout
        self.connection: Optional[socket.socket] = None
        self._deadline: Optional[float] = None
        self.logger = logging.getLogger(__name__)

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def timeout(self) -> int:
        return self._timeout

    @property
    def connected(self) -> bool:
        return self.connection is not None

    def __enter__(self) -> "LogstashClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def describe(self) -> Dict[str, Any]:
        """Return endpoint, timeout and connection state for display."""
        return {
            "host": self._host,
            "port": self._port,
            "timeout": self._timeout,
            "connected": self.connected,
            "remaining": self.remaining(),
        }

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline, or None when disconnected."""
        if self.connection is None or self._deadline is None:
            return None
        return self._deadline - time.monotonic()

    def apply_deadline(self) -> None:
        """
        Set the deadline to now + timeout for reads, writes and idling.

        Called after connect and after every successful write.
        """
        if self.connection is None:
            return
        self._deadline = time.monotonic() + self._timeout / 1000.0
        self.connection.settimeout(self._timeout / 1000.0)
        self.logger.debug(f"Deadline set {self._timeout}ms ahead for {self._host}:{self._port}")

    def connect(self) -> socket.socket:
        """
        Resolve the endpoint and open a tcp connection to it.

        Returns:
            The connected socket, which the client keeps ownership of

        Raises:
            ResolutionError: host/port could not be resolved
            ConnectError: no resolved address accepted the connection
        """
        addresses = self._resolve()

        sock = None
        last_error: Optional[OSError] = None
        for family, socktype, proto, _, sockaddr in addresses:
            candidate = None
            try:
                candidate = socket.socket(family, socktype, proto)
                candidate.settimeout(self._timeout / 1000.0)
                candidate.connect(sockaddr)
            except OSError as e:
                if candidate is not None:
                    candidate.close()
                self.logger.debug(f"Connect to {sockaddr} failed: {e}")
                last_error = e
                continue
            sock = candidate
            break

        if sock is None:
            raise errors.ConnectError(
                f"can't connect to {self._host}:{self._port}: {last_error}",
                self._host,
                self._port,
            ) from last_error

        try:
            self._configure(sock)
        except OSError as e:
            sock.close()
            raise errors.ConnectError(
                f"can't configure connection to {self._host}:{self._port}: {e}",
                self._host,
                self._port,
            ) from e

        if self.connection is not None:
            self.logger.warning("Replacing an existing logstash connection")
            self.connection.close()
        self.connection = sock
        self.apply_deadline()
        self.logger.info(f"Connected to logstash at {self._host}:{self._port}")
        return sock

    def send_line(self, payload: bytes) -> None:
        """
        Write payload followed by a single newline.

        Never connects on its own. On any failure the connection is closed
        and dropped before the error is raised.

        Args:
            payload: Serialized event, sent as-is

        Raises:
            NotConnectedError: connect() has not succeeded
            TimeoutError: the deadline passed before the frame was written
            WriteError: any other I/O error during the write
        """
        if self.connection is None:
            raise errors.NotConnectedError("tcp connection is nil", self._host, self._port)

        frame = bytes(payload) + b"\n"

        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            self._discard("deadline passed")
            raise errors.TimeoutError(
                f"write to {self._host}:{self._port} timed out",
                self._host,
                self._port,
            )

        try:
            self.connection.settimeout(remaining)
            self.connection.sendall(frame)
        except socket.timeout as e:
            self._discard(str(e) or "timed out")
            raise errors.TimeoutError(
                f"write to {self._host}:{self._port} timed out",
                self._host,
                self._port,
            ) from e
        except OSError as e:
            self._discard(str(e))
            raise errors.WriteError(
                f"write to {self._host}:{self._port} failed: {e}",
                self._host,
                self._port,
            ) from e

        self.logger.debug(f"Wrote {len(frame)} bytes to {self._host}:{self._port}")
        self.apply_deadline()

    def close(self) -> None:
        """Close and drop the connection if one is held."""
        if self.connection is None:
            return
        try:
            self.connection.close()
        finally:
            self.connection = None
            self._deadline = None

    def _resolve(self):
        if not isinstance(self._port, int) or not 0 <= self._port <= 65535:
            raise errors.ResolutionError(
                f"invalid port {self._port!r}", self._host, self._port
            )
        try:
            return socket.getaddrinfo(self._host, self._port, type=socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError) as e:
            raise errors.ResolutionError(
                f"can't resolve {self._host}:{self._port}: {e}",
                self._host,
                self._port,
            ) from e

    def _configure(self, sock: socket.socket) -> None:
        # Abortive close: unsent data is dropped, no lingering
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
        if hasattr(socket, "TCP_KEEPIDLE"):
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, KEEPALIVE_PERIOD_S)
        elif hasattr(socket, "TCP_KEEPALIVE"):
            # macOS
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPALIVE, KEEPALIVE_PERIOD_S)
        if hasattr(socket, "TCP_KEEPINTVL"):
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, KEEPALIVE_PERIOD_S)

    def _discard(self, reason: str) -> None:
        self.logger.warning(f"Dropping connection to {self._host}:{self._port}: {reason}")
        try:
            self.close()
        except OSError as e:
            self.logger.debug(f"Error closing broken connection: {e}")
