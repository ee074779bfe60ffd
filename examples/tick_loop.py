#!/usr/bin/env python3
"""Drive an OrientationTracker from a fixed-rate loop, like a render loop.

Run the example source first:
    python examples/sensorlog_source.py

Then in another terminal:
    python examples/tick_loop.py
"""

import logging
import time

from sensorlog.config import TrackerConfig
from sensorlog.connection import ConnectionState
from sensorlog.tracker import OrientationTarget, OrientationTracker

logging.basicConfig(level=logging.INFO)

target = OrientationTarget()
tracker = OrientationTracker(TrackerConfig(host="127.0.0.1"),
                             on_sample=target.apply)
tracker.enable()

try:
    while tracker.state is not ConnectionState.FAILED:
        stats = tracker.tick()
        if stats.sample is not None:
            x, y, z = target.euler_angles
            print(f"euler=({x:8.2f}, {y:8.2f}, {z:8.2f})  frames={stats.frame_count}")
        time.sleep(1 / 60)
except KeyboardInterrupt:
    pass
finally:
    tracker.disable()
