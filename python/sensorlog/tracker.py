"""Per-tick orientation tracker driven by a host render loop.

The host calls enable() once, tick() once per frame and disable() on
shutdown.  Every tick returns a TickStats snapshot; nothing is raised past
the tick boundary for socket or record errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable

import numpy as np

from .config import FRAMING_LINE, TrackerConfig
from .connection import ConnectionManager, ConnectionState, TransportFactory
from .record import DecodeResult, LineDecoder, OrientationSample, RecordDecoder
from .transport import TCPTransport

logger = logging.getLogger(__name__)

SampleConsumer = Callable[[OrientationSample], None]


@dataclass(frozen=True)
class TickStats:
    """Observability snapshot taken at the end of a tick."""

    state: ConnectionState
    retry_count: int = 0
    frame_count: int = 0
    bytes_received: int = 0
    fields_in_record: int = 0
    line: str = ""
    sample: OrientationSample | None = None
    read_error: str | None = None


class OrientationTarget:
    """Host-owned orientation holder, updated in place.

    Keeps its previous value on ticks that produce no sample.
    """

    def __init__(self):
        self.euler_angles = np.zeros(3, dtype=np.float64)
        self.updates: int = 0

    def apply(self, sample: OrientationSample) -> None:
        self.euler_angles = sample.as_array()
        self.updates += 1


class OrientationTracker:
    """Connects to SensorLog and turns its stream into orientation samples."""

    def __init__(self, config: TrackerConfig | None = None,
                 on_sample: SampleConsumer | None = None,
                 transport_factory: TransportFactory = TCPTransport):
        self.config = config or TrackerConfig()
        self.on_sample = on_sample
        self.connection = ConnectionManager(self.config, transport_factory)
        self.decoder = RecordDecoder()
        self.line_decoder = LineDecoder()
        self._frame_count = 0
        self._stats = TickStats(state=ConnectionState.DISABLED)

    @property
    def state(self) -> ConnectionState:
        return self.connection.state

    @property
    def stats(self) -> TickStats:
        return self._stats

    def enable(self) -> None:
        self._frame_count = 0
        self.line_decoder.reset()
        self.connection.enable()
        self._stats = TickStats(state=self.connection.state)

    def disable(self) -> None:
        self.connection.disable()
        self._stats = replace(self._stats, state=self.connection.state,
                              sample=None, read_error=None)

    def tick(self) -> TickStats:
        """Advance the connection and decode at most one read."""
        was_connected = self.connection.state is ConnectionState.CONNECTED
        state = self.connection.poll_or_advance()
        stats = TickStats(
            state=state,
            retry_count=self.connection.retry_count,
            frame_count=self._frame_count,
        )
        # the tick that completes the connect only consumes the header
        if was_connected and state is ConnectionState.CONNECTED:
            stats = self._read_and_decode(stats)
        self._stats = stats
        return stats

    def _read_and_decode(self, stats: TickStats) -> TickStats:
        try:
            data = self.connection.read(self.config.buffer_size)
        except OSError as e:
            logger.exception("unable to read from SensorLog at %s",
                             self.connection.endpoint)
            return replace(stats, read_error=str(e))

        self._frame_count += 1
        results = self._decode(data)
        result = results[-1] if results else DecodeResult(line="", fields_in_record=0)
        sample = None
        for r in results:
            if r.sample is not None:
                sample = r.sample
                self._deliver(sample)

        return replace(
            stats,
            frame_count=self._frame_count,
            bytes_received=len(data),
            fields_in_record=result.fields_in_record,
            line=result.line,
            sample=sample,
        )

    def _decode(self, data: bytes) -> list[DecodeResult]:
        if self.config.framing == FRAMING_LINE:
            return self.line_decoder.feed(data)
        return [self.decoder.decode(data)]

    def _deliver(self, sample: OrientationSample) -> None:
        if self.on_sample is None:
            return
        try:
            self.on_sample(sample)
        except Exception:
            logger.exception("orientation consumer failed for %s", sample)

    def __enter__(self):
        self.enable()
        return self

    def __exit__(self, *exc):
        self.disable()
