"""Tracker configuration."""

from __future__ import annotations

import argparse
import ipaddress
from dataclasses import dataclass

DEFAULT_HOST = "192.168.1.2"
DEFAULT_PORT = 49482

DEFAULT_POLL_TIMEOUT = 0.2      # seconds, write-readiness poll while connecting
DEFAULT_BUFFER_SIZE = 1024      # bytes per read
DEFAULT_RETRY_LOG_INTERVAL = 250
DEFAULT_MAX_RETRIES = 1000

FRAMING_READ = "read"   # one read is one record
FRAMING_LINE = "line"   # buffered newline framing
FRAMINGS = (FRAMING_READ, FRAMING_LINE)


@dataclass(frozen=True)
class Endpoint:
    host: str
    port: int

    def validate(self) -> None:
        """Raise ValueError unless host is an IPv4 literal and port is valid."""
        ipaddress.IPv4Address(self.host)
        if not 0 < self.port < 65536:
            raise ValueError(f"port out of range: {self.port}")

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class TrackerConfig:
    """Everything the tracker needs before enable().

    The endpoint is only validated on enable(), so a misconfigured address
    is reported through the connection state rather than at construction.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    poll_timeout: float = DEFAULT_POLL_TIMEOUT
    buffer_size: int = DEFAULT_BUFFER_SIZE
    retry_log_interval: int = DEFAULT_RETRY_LOG_INTERVAL
    max_retries: int = DEFAULT_MAX_RETRIES
    read_timeout: float | None = None
    framing: str = FRAMING_READ

    def __post_init__(self):
        if self.poll_timeout < 0:
            raise ValueError(f"poll_timeout must be >= 0, got {self.poll_timeout}")
        if self.buffer_size <= 0:
            raise ValueError(f"buffer_size must be > 0, got {self.buffer_size}")
        if self.retry_log_interval <= 0:
            raise ValueError(
                f"retry_log_interval must be > 0, got {self.retry_log_interval}")
        if self.max_retries <= 0:
            raise ValueError(f"max_retries must be > 0, got {self.max_retries}")
        if self.read_timeout is not None and self.read_timeout <= 0:
            raise ValueError(f"read_timeout must be > 0, got {self.read_timeout}")
        if self.framing not in FRAMINGS:
            raise ValueError(
                f"framing must be one of {FRAMINGS}, got {self.framing!r}")

    @property
    def endpoint(self) -> Endpoint:
        return Endpoint(self.host, self.port)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> TrackerConfig:
        return cls(
            host=args.host,
            port=args.port,
            poll_timeout=args.poll_timeout,
            buffer_size=args.buffer_size,
            max_retries=args.max_retries,
            read_timeout=args.read_timeout,
            framing=args.framing,
        )


def add_tracker_arguments(parser: argparse.ArgumentParser) -> None:
    """Register the TrackerConfig options on an argparse parser."""
    parser.add_argument("--host", default=DEFAULT_HOST,
                        help="SensorLog server IPv4 address")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT,
                        help="SensorLog server port")
    parser.add_argument("--poll-timeout", type=float,
                        default=DEFAULT_POLL_TIMEOUT,
                        help="Connect poll timeout in seconds")
    parser.add_argument("--buffer-size", type=int, default=DEFAULT_BUFFER_SIZE,
                        help="Bytes per read")
    parser.add_argument("--max-retries", type=int, default=DEFAULT_MAX_RETRIES,
                        help="Failed connect polls before giving up")
    parser.add_argument("--read-timeout", type=float, default=None,
                        help="Socket read timeout once connected (default: block)")
    parser.add_argument("--framing", choices=FRAMINGS, default=FRAMING_READ,
                        help="'read': one read is one record; "
                             "'line': buffer and split on newlines")
