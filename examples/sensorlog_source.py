#!/usr/bin/env python3
"""Imitate the SensorLog app in socket mode for tracker testing.

Streams DM records (24 comma-separated fields, attitude in radians at fields
3..5) on localhost:49482 at 31 Hz, preceded by a header line.

Usage:
    python examples/sensorlog_source.py

Then in another terminal:
    sensorlog -v live --host 127.0.0.1
"""

import math
import random
import socket
import time

from sensorlog.record import FIELD_COUNT, format_record

HEADER = ",".join(f"field{i}" for i in range(FIELD_COUNT))


def make_attitude(t: float) -> tuple[float, float, float]:
    """Slow roll/pitch/yaw oscillation with a little noise, in radians."""
    roll = 0.6 * math.sin(2 * math.pi * t / 6.0) + random.gauss(0, 0.005)
    pitch = 0.3 * math.cos(2 * math.pi * t / 8.0) + random.gauss(0, 0.005)
    yaw = math.fmod(2 * math.pi * t / 20.0, 2 * math.pi) - math.pi
    return roll, pitch, yaw


def serve(host: str = "0.0.0.0", port: int = 49482, rate_hz: float = 31.0):
    """Accept TCP connections and stream DM records."""
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    srv.bind((host, port))
    srv.listen(1)
    print(f"Listening on {host}:{port} at {rate_hz} Hz  (Ctrl-C to stop)")

    while True:
        print("Waiting for connection...")
        conn, addr = srv.accept()
        print(f"Client connected: {addr}")
        t0 = time.monotonic()
        seq = 0
        try:
            conn.sendall((HEADER + "\n").encode("ascii"))
            while True:
                t = time.monotonic() - t0
                line = format_record(make_attitude(t), timestamp=time.time())
                conn.sendall((line + "\n").encode("ascii"))

                seq += 1
                if seq % int(rate_hz) == 0:
                    print(f"  sent {seq} records ({t:.1f}s)")

                time.sleep(1.0 / rate_hz)
        except (BrokenPipeError, ConnectionResetError):
            print("Client disconnected.")
        except KeyboardInterrupt:
            print("\nShutting down.")
            conn.close()
            srv.close()
            return


if __name__ == "__main__":
    serve()
