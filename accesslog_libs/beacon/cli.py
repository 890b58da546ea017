"""
beacon-generator command line tool.

Examples:
    beacon-generator --app-id 1 --url /home --count 5
    beacon-generator --app-id 2 --session-id test123 --interval 1 --count 10
    beacon-generator --app-id 1 --output csv --count 100 > beacons.csv
    beacon-generator --javascript --endpoint https://collector.example.com/v1/track --minify
    beacon-generator --javascript --respect-dnt --session-timeout 900
    beacon-generator --gif pixel.gif
"""

from __future__ import annotations

import argparse
import csv
import json
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from accesslog_libs import __version__
from accesslog_libs.beacon.generator import (
    CSV_HEADER,
    DEFAULT_SESSION_TIMEOUT,
    Beacon,
    BeaconConfig,
    BeaconConfigError,
    BeaconGenerator,
)
from accesslog_libs.config import get_config
from accesslog_libs.logger import LEVELS, configure_logging, get_logger

OUTPUT_FORMATS = ("console", "json", "csv")

EXIT_OK = 0
EXIT_USAGE = 2


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value}")
    return number


def _non_negative_float(value: str) -> float:
    number = float(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    config = get_config()
    parser = argparse.ArgumentParser(
        prog="beacon-generator",
        description="Beacon Generator - Access Log Tracker",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    beacon = parser.add_argument_group("beacons")
    beacon.add_argument("--app-id", type=int, default=1, help="Application ID")
    beacon.add_argument(
        "--session-id", default="", help="Session ID (auto-generated if empty)"
    )
    beacon.add_argument("--url", default="/", help="URL to track")
    beacon.add_argument("--referrer", default="", help="Referrer URL")
    beacon.add_argument(
        "--user-agent", default="BeaconGenerator/1.0", help="User agent"
    )
    beacon.add_argument("--ip", default="127.0.0.1", help="IP address")
    beacon.add_argument(
        "--count", type=_positive_int, default=1, help="Number of beacons"
    )
    beacon.add_argument(
        "--interval",
        type=_non_negative_float,
        default=0.0,
        help="Seconds to wait between beacons",
    )
    beacon.add_argument(
        "--output", choices=OUTPUT_FORMATS, default="console", help="Output format"
    )

    script = parser.add_argument_group("tracker script")
    script.add_argument(
        "--javascript", action="store_true", help="Print the tracker script and exit"
    )
    script.add_argument(
        "--endpoint", default=config.BEACON_ENDPOINT, help="Collector endpoint"
    )
    script.add_argument(
        "--version", default=config.BEACON_VERSION, help="Tracker script version"
    )
    script.add_argument("--debug", action="store_true", help="Enable script logging")
    script.add_argument("--minify", action="store_true", help="Minify the script")
    script.add_argument(
        "--respect-dnt",
        action="store_true",
        help="Skip tracking when the browser sends Do Not Track",
    )
    script.add_argument(
        "--session-timeout",
        type=_positive_int,
        default=DEFAULT_SESSION_TIMEOUT,
        help="Seconds of inactivity before a new session starts",
    )

    parser.add_argument(
        "--gif", type=Path, metavar="PATH", help="Write the 1x1 GIF pixel and exit"
    )
    parser.add_argument(
        "--log-level",
        choices=sorted(LEVELS),
        default=config.LOG_LEVEL.lower(),
        help="Log level",
    )
    return parser


def print_beacon(beacon: Beacon, index: int, output: str, writer) -> None:
    if output == "json":
        print(json.dumps(beacon.to_dict()))
    elif output == "csv":
        writer.writerow(beacon.csv_row())
    else:
        print(f"Generated Beacon {index}:")
        print(f"  App ID: {beacon.app_id}")
        print(f"  Session ID: {beacon.session_id}")
        print(f"  URL: {beacon.url}")
        print(f"  Referrer: {beacon.referrer}")
        print(f"  User Agent: {beacon.user_agent}")
        print(f"  IP Address: {beacon.ip_address}")
        print(f"  Timestamp: {beacon.timestamp.isoformat()}")
        print()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.log_level not in LEVELS:
        parser.error(f"invalid log level: {args.log_level}")

    configure_logging(level=args.log_level, fmt=get_config().LOG_FORMAT)
    log = get_logger(__name__, tool="beacon-generator")
    log.with_field("version", __version__).info("Starting Beacon Generator")

    generator = BeaconGenerator()

    if args.javascript:
        config = BeaconConfig(
            endpoint=args.endpoint,
            version=args.version,
            debug=args.debug,
            minify=args.minify,
            respect_dnt=args.respect_dnt,
            session_timeout=args.session_timeout,
        )
        try:
            print(generator.generate_javascript(config))
        except BeaconConfigError as e:
            log.with_error(e).error("Invalid tracker script configuration")
            return EXIT_USAGE
        log.info("Tracker script generated")
        return EXIT_OK

    if args.gif is not None:
        try:
            args.gif.write_bytes(generator.generate_gif_beacon())
        except OSError as e:
            log.with_error(e).with_field("path", str(args.gif)).error(
                "Failed to write GIF beacon"
            )
            return EXIT_USAGE
        log.with_field("path", str(args.gif)).info("GIF beacon written")
        return EXIT_OK

    writer = csv.writer(sys.stdout, lineterminator="\n")
    if args.output == "csv":
        writer.writerow(CSV_HEADER)

    for i in range(args.count):
        beacon = generator.generate_beacon(
            args.app_id,
            args.session_id,
            args.url,
            args.referrer,
            args.user_agent,
            args.ip,
        )
        print_beacon(beacon, i + 1, args.output, writer)

        if args.interval > 0 and i < args.count - 1:
            time.sleep(args.interval)

    log.with_field("count", args.count).info("Beacon generation completed")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
