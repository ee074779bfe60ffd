"""SensorLog DM record parsing and orientation decoding.

A SensorLog stream in "DM" (device motion) mode is plain text: one record
per line, comma separated, no fill.  Each well-formed record carries exactly
24 fields; fields 3, 4 and 5 hold the device attitude in radians.

Anything else on the wire (header lines, partial reads straddling a line
boundary) is dropped without raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

# Wire format constants (fixed by the SensorLog DM record layout)
FIELD_COUNT = 24
DELIMITER = ","
ORIENTATION_FIELDS = (3, 4, 5)

DEFAULT_MAX_LINE_LENGTH = 4096


class RecordError(ValueError):
    """A record has the right shape but an unusable orientation field."""


@dataclass(frozen=True)
class OrientationSample:
    """Orientation in degrees, one component per axis."""

    x: float
    y: float
    z: float

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def radians(self) -> tuple[float, float, float]:
        r = np.radians(self.as_array())
        return float(r[0]), float(r[1]), float(r[2])


@dataclass
class DecodeResult:
    """Outcome of decoding one chunk of text."""

    line: str
    fields_in_record: int
    sample: OrientationSample | None = None
    error: str | None = None


def split_record(line: str) -> list[str]:
    """Split a line of text into its comma-delimited fields."""
    return line.split(DELIMITER)


def parse_orientation(fields: list[str]) -> OrientationSample:
    """Extract the orientation from a 24-field record.

    Raises RecordError if the field count is wrong or a component does not
    parse as a float.
    """
    if len(fields) != FIELD_COUNT:
        raise RecordError(
            f"expected {FIELD_COUNT} fields, got {len(fields)}")
    try:
        radians = np.array([float(fields[i]) for i in ORIENTATION_FIELDS],
                           dtype=np.float64)
    except ValueError as e:
        raise RecordError(str(e)) from e
    degrees = np.degrees(radians)
    return OrientationSample(float(degrees[0]), float(degrees[1]),
                             float(degrees[2]))


def format_record(radians: tuple[float, float, float],
                  timestamp: float = 0.0) -> str:
    """Build a 24-field DM line with *radians* at fields 3..5.

    The other fields are zero-filled, except field 0 which carries the
    timestamp. Used by the example source and by tests.
    """
    values = [0.0] * FIELD_COUNT
    values[0] = timestamp
    for i, r in zip(ORIENTATION_FIELDS, radians):
        values[i] = r
    return DELIMITER.join(repr(float(v)) for v in values)


class RecordDecoder:
    """Decode one read worth of bytes into at most one orientation sample.

    The decoder trusts that one read holds exactly one record.  SensorLog
    sends short lines at a fixed 31 Hz, so this holds in practice; a read
    that straddles two records simply fails the field-count check and is
    dropped.  Use LineDecoder when that is not acceptable.
    """

    def __init__(self, encoding: str = "ascii"):
        self.encoding = encoding

    def decode(self, data: bytes) -> DecodeResult:
        line = data.decode(self.encoding, errors="replace")
        return decode_line(line)


def decode_line(line: str) -> DecodeResult:
    """Decode one line of text.  Never raises."""
    fields = split_record(line)
    result = DecodeResult(line=line, fields_in_record=len(fields))

    if len(fields) != FIELD_COUNT:
        logger.debug("skipping record with %d fields", len(fields))
        return result

    try:
        result.sample = parse_orientation(fields)
    except RecordError as e:
        logger.warning("unable to parse tracker input line: %r (%s)", line, e)
        result.error = str(e)
    return result


class LineDecoder:
    """Newline-framed decoder that keeps partial lines between reads.

    Each complete line is decoded with decode_line(); lines longer than
    *max_line_length* are discarded along with the buffer.
    """

    def __init__(self, encoding: str = "ascii",
                 max_line_length: int = DEFAULT_MAX_LINE_LENGTH):
        self.encoding = encoding
        self.max_line_length = max_line_length
        self._buf = bytearray()

    def feed(self, data: bytes) -> list[DecodeResult]:
        """Feed raw bytes, return a result for every complete line."""
        self._buf.extend(data)
        results: list[DecodeResult] = []

        while True:
            end = self._buf.find(b"\n")
            if end < 0:
                if len(self._buf) > self.max_line_length:
                    logger.warning(
                        "line length %d exceeds max_line_length %d, "
                        "clearing buffer", len(self._buf), self.max_line_length)
                    self._buf.clear()
                break

            raw = bytes(self._buf[:end])
            del self._buf[:end + 1]
            line = raw.decode(self.encoding, errors="replace").rstrip("\r")
            if line:
                results.append(decode_line(line))

        return results

    def flush(self) -> list[DecodeResult]:
        """Decode whatever is left in the buffer as a final line."""
        raw = bytes(self._buf)
        self._buf.clear()
        line = raw.decode(self.encoding, errors="replace").rstrip("\r")
        if not line:
            return []
        return [decode_line(line)]

    def reset(self):
        """Clear internal buffer."""
        self._buf.clear()
