"""Connection state machine for the SensorLog TCP client.

Drives a non-blocking connect to completion or to a well-defined give-up,
one bounded step per tick:

    DISABLED --enable()--> CONNECTING --writable--> CONNECTED
                               |
                               +--max_retries / fatal error--> FAILED

disable() returns to DISABLED from any state and always closes the socket.
FAILED performs no further socket operations until the next enable().
"""

from __future__ import annotations

import enum
import logging
import os
from typing import Callable

from .config import TrackerConfig
from .transport import TCPTransport, Transport, connect_pending

logger = logging.getLogger(__name__)

TransportFactory = Callable[[str, int], Transport]


class ConnectionState(enum.Enum):
    DISABLED = "disabled"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class ConnectionManager:
    """Owns the transport and the ConnectionState.

    poll_or_advance() is called at most once per tick; it never waits longer
    than ``config.poll_timeout`` while connecting.
    """

    def __init__(self, config: TrackerConfig,
                 transport_factory: TransportFactory = TCPTransport):
        self.config = config
        self.endpoint = config.endpoint
        self._factory = transport_factory
        self._transport: Transport | None = None
        self._state = ConnectionState.DISABLED
        self.retry_count: int = 0
        self.header: bytes = b""

    @property
    def state(self) -> ConnectionState:
        return self._state

    # -- lifecycle ---------------------------------------------------------

    def enable(self) -> None:
        """Begin connection attempts."""
        if self._state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            return

        self.retry_count = 0
        self.header = b""
        try:
            self.endpoint.validate()
        except ValueError as e:
            logger.error("invalid SensorLog endpoint %s: %s", self.endpoint, e)
            self._fail()
            return

        self._state = ConnectionState.CONNECTING
        try:
            self._open(first=True)
        except Exception:
            logger.exception("connect to %s failed", self.endpoint)
            self._fail()

    def disable(self) -> None:
        """Release the socket.  Safe to call in any state."""
        self._close()
        self._state = ConnectionState.DISABLED
        logger.warning("connection to %s has been disabled", self.endpoint)

    # -- per-tick ----------------------------------------------------------

    def poll_or_advance(self) -> ConnectionState:
        """Advance the state machine by at most one poll."""
        state = self._state
        if state is ConnectionState.CONNECTING:
            self._advance_connecting()
        elif state in (ConnectionState.CONNECTED, ConnectionState.DISABLED,
                       ConnectionState.FAILED):
            # connected reads go through read(); the rest touch no socket
            pass
        else:
            raise AssertionError(f"unhandled connection state: {state}")
        return self._state

    def read(self, n: int) -> bytes:
        """One read from the connected transport.  Raises OSError on failure."""
        if self._state is not ConnectionState.CONNECTED or self._transport is None:
            raise ConnectionError(f"not connected to {self.endpoint}")
        return self._transport.read(n)

    # -- internals ---------------------------------------------------------

    def _advance_connecting(self) -> None:
        try:
            if self._transport is None:
                self._open()
            ready = False
            if self._transport is not None:
                ready = self._transport.poll_writable(self.config.poll_timeout)
                if ready:
                    err = self._transport.connect_error()
                    if err:
                        logger.debug("connect to %s did not complete: %s",
                                      self.endpoint, os.strerror(err))
                        self._close()
                        ready = False

            if ready:
                self._finish_connect()
            else:
                self._count_failed_poll()
        except Exception:
            logger.exception("polling connection to %s failed", self.endpoint)
            self._fail()

    def _open(self, first: bool = False) -> None:
        """Create a transport and issue a non-blocking connect.

        A synchronous failure is normal (peer not listening yet): the
        transport is dropped and re-opened on the next tick.
        """
        transport = self._factory(self.endpoint.host, self.endpoint.port)
        code = transport.connect()
        if connect_pending(code):
            self._transport = transport
            return
        level = logging.INFO if first else logging.DEBUG
        logger.log(level, "connect to %s did not complete (this is normal): %s",
                   self.endpoint, os.strerror(code))
        transport.close()
        self._transport = None

    def _finish_connect(self) -> None:
        if self._transport is None:
            raise ConnectionError(f"no pending connect to {self.endpoint}")
        self._transport.set_blocking(True, self.config.read_timeout)
        self._state = ConnectionState.CONNECTED
        logger.info("connected to SensorLog at %s", self.endpoint)
        # A header line may precede the first record
        self.header = self._transport.read(self.config.buffer_size)

    def _count_failed_poll(self) -> None:
        self.retry_count += 1
        if self.retry_count % self.config.retry_log_interval == 0:
            logger.info("connection to %s did not complete after %d tries",
                        self.endpoint, self.retry_count)
        if self.retry_count >= self.config.max_retries:
            logger.warning("giving up on %s after %d tries",
                           self.endpoint, self.retry_count)
            self._fail()

    def _fail(self) -> None:
        self._close()
        self._state = ConnectionState.FAILED

    def _close(self) -> None:
        if self._transport is None:
            return
        try:
            self._transport.close()
        except OSError as e:
            logger.debug("error closing transport: %s", e)
        self._transport = None
