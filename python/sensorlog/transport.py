"""Transport adapters for SensorLog streams."""

from __future__ import annotations

import errno
import select
import socket
from typing import Protocol

# connect_ex() results that mean "still in progress" on a non-blocking socket
_CONNECT_PENDING = {0, errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EALREADY,
                    errno.EISCONN}


class Transport(Protocol):
    """Abstract transport interface used by the connection manager."""

    def connect(self) -> int: ...
    def poll_writable(self, timeout: float) -> bool: ...
    def connect_error(self) -> int: ...
    def set_blocking(self, blocking: bool, timeout: float | None = None) -> None: ...
    def read(self, n: int) -> bytes: ...
    def close(self) -> None: ...


def connect_pending(code: int) -> bool:
    """True if a ``connect()`` result means the attempt may still complete."""
    return code in _CONNECT_PENDING


class TCPTransport:
    """Non-blocking TCP stream transport (client mode)."""

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setblocking(False)

    def connect(self) -> int:
        """Issue a non-blocking connect, return the errno (0 on success)."""
        return self._sock.connect_ex((self.host, self.port))

    def poll_writable(self, timeout: float) -> bool:
        _, writable, _ = select.select([], [self._sock], [], timeout)
        return bool(writable)

    def connect_error(self) -> int:
        """Return the pending socket error left by an asynchronous connect."""
        return self._sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)

    def set_blocking(self, blocking: bool, timeout: float | None = None) -> None:
        if blocking:
            self._sock.settimeout(timeout)
        else:
            self._sock.setblocking(False)

    def read(self, n: int) -> bytes:
        return self._sock.recv(n)

    def close(self) -> None:
        self._sock.close()


class FileTransport:
    """Replay a captured SensorLog CSV file, one line per read.

    Connects instantly, so a tracker driven by this transport goes through
    the same header-discard and decode path as a live session.
    """

    def __init__(self, path: str):
        self.path = path
        self._f = open(path, "rb")

    def connect(self) -> int:
        return 0

    def poll_writable(self, timeout: float) -> bool:
        return True

    def connect_error(self) -> int:
        return 0

    def set_blocking(self, blocking: bool, timeout: float | None = None) -> None:
        pass

    def read(self, n: int) -> bytes:
        return self._f.readline(n) or b""

    def close(self) -> None:
        self._f.close()
