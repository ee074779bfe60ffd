"""sensorlog command-line tool."""

from __future__ import annotations

import argparse
import logging
import sys
import time

from .config import FRAMING_READ, FRAMINGS, TrackerConfig, add_tracker_arguments
from .connection import ConnectionState
from .record import LineDecoder, OrientationSample
from .tracker import OrientationTracker, TickStats
from .transport import FileTransport


def _format_sample(stats: TickStats, sample: OrientationSample) -> str:
    return (f"[{stats.frame_count:8d}] x={sample.x:9.3f} "
            f"y={sample.y:9.3f} z={sample.z:9.3f}")


def _print_sample(stats: TickStats) -> None:
    if stats.sample is not None:
        print(_format_sample(stats, stats.sample))


def cmd_live(args: argparse.Namespace) -> None:
    """Connect to a SensorLog server and print orientation samples."""
    config = TrackerConfig.from_args(args)
    tracker = OrientationTracker(config)
    period = 1.0 / args.rate

    tracker.enable()
    try:
        while True:
            t0 = time.monotonic()
            stats = tracker.tick()
            if stats.state in (ConnectionState.FAILED, ConnectionState.DISABLED):
                print(f"Error: could not connect to {config.endpoint}",
                      file=sys.stderr)
                sys.exit(1)
            _print_sample(stats)
            remaining = period - (time.monotonic() - t0)
            if remaining > 0:
                time.sleep(remaining)
    except KeyboardInterrupt:
        pass
    finally:
        tracker.disable()


def cmd_replay(args: argparse.Namespace) -> None:
    """Run a captured SensorLog file through the tracker."""
    config = TrackerConfig(framing=args.framing)
    tracker = OrientationTracker(
        config, transport_factory=lambda host, port: FileTransport(args.file))

    with tracker:
        tracker.tick()  # connects and discards the header line
        while tracker.state is ConnectionState.CONNECTED:
            stats = tracker.tick()
            if stats.bytes_received == 0:
                break
            _print_sample(stats)


def cmd_info(args: argparse.Namespace) -> None:
    """Print summary info about a captured SensorLog file."""
    decoder = LineDecoder()
    lines = 0
    samples = 0
    bad_values = 0
    field_counts: dict[int, int] = {}

    with open(args.file, "rb") as f:
        results = []
        while True:
            chunk = f.read(65536)
            if not chunk:
                break
            results.extend(decoder.feed(chunk))
        # last record may lack a trailing newline
        results.extend(decoder.flush())

    for result in results:
        lines += 1
        field_counts[result.fields_in_record] = (
            field_counts.get(result.fields_in_record, 0) + 1)
        if result.sample is not None:
            samples += 1
        elif result.error is not None:
            bad_values += 1

    print(f"File:       {args.file}")
    print(f"Lines:      {lines:,}")
    print(f"Samples:    {samples:,}")
    print(f"Unparsable: {bad_values:,}")
    print(f"Skipped:    {lines - samples - bad_values:,}")
    print("\nFields per line:")
    for count in sorted(field_counts):
        print(f"  {count:4d}  {field_counts[count]:8,}")


def main() -> None:
    parser = argparse.ArgumentParser(prog="sensorlog",
                                     description="SensorLog orientation client")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="More log output (-vv for debug)")
    sub = parser.add_subparsers(dest="command")

    # live
    p_live = sub.add_parser("live", help="Track orientation from a live server")
    add_tracker_arguments(p_live)
    p_live.add_argument("--rate", type=float, default=60.0,
                        help="Tick rate in Hz")

    # replay
    p_replay = sub.add_parser("replay", help="Replay a captured SensorLog file")
    p_replay.add_argument("file", help="Path to a SensorLog CSV capture")
    p_replay.add_argument("--framing", choices=FRAMINGS, default=FRAMING_READ)

    # info
    p_info = sub.add_parser("info", help="Show summary info about a capture")
    p_info.add_argument("file", help="Path to a SensorLog CSV capture")

    args = parser.parse_args()

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level,
                        format="%(asctime)s %(levelname)s [%(name)s]: %(message)s")

    if args.command == "live":
        cmd_live(args)
    elif args.command == "replay":
        cmd_replay(args)
    elif args.command == "info":
        cmd_info(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
