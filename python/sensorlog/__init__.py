"""sensorlog - resilient orientation client for SensorLog TCP streams."""

from .config import Endpoint, TrackerConfig
from .connection import ConnectionManager, ConnectionState
from .record import (
    DecodeResult, LineDecoder, OrientationSample, RecordDecoder, RecordError,
    decode_line, format_record, parse_orientation, split_record,
)
from .tracker import OrientationTarget, OrientationTracker, TickStats
from .transport import FileTransport, TCPTransport, Transport

__all__ = [
    "Endpoint", "TrackerConfig",
    "ConnectionManager", "ConnectionState",
    "DecodeResult", "LineDecoder", "OrientationSample", "RecordDecoder",
    "RecordError", "decode_line", "format_record", "parse_orientation",
    "split_record",
    "OrientationTarget", "OrientationTracker", "TickStats",
    "FileTransport", "TCPTransport", "Transport",
]
