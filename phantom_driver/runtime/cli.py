from __future__ import annotations

import argparse
import logging
import time
from typing import Sequence

from phantom_driver.service.driver import PhantomJsDriver
from phantom_driver.service.errors import DriverError
from phantom_driver.service.schema import LOG_LEVELS, DriverConfig


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a PhantomJS WebDriver server until interrupted")
    parser.add_argument("path", help="Path to the phantomjs binary")
    parser.add_argument("--port", type=int, help="Listening port (0 picks a free one)")
    parser.add_argument("--host")
    parser.add_argument("--base-url")
    parser.add_argument("--log-path", help="Driver-native log file")
    parser.add_argument("--log-file", help="File for driver stdout/stderr, '-' for the console")
    parser.add_argument("--log-level", choices=LOG_LEVELS)
    parser.add_argument("--start-timeout", type=float)
    parser.add_argument("--verbose", action="store_true")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def build_config(args: argparse.Namespace) -> DriverConfig:
    """Environment defaults, overridden by whatever was given on the command line."""
    config = DriverConfig.from_env()
    for name in ("port", "host", "base_url", "log_path", "log_level", "start_timeout"):
        value = getattr(args, name)
        if value is not None:
            setattr(config, name, value)
    if args.log_file is not None:
        config.log_file = None if args.log_file == "-" else args.log_file
    return config


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    driver = PhantomJsDriver(args.path, build_config(args))
    try:
        driver.start()
    except DriverError as exc:
        print(f"ERROR: {exc}")
        return 1

    print(f"WebDriver endpoint: {driver.url}")
    print("Press Ctrl+C to stop...")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass

    try:
        driver.stop()
    except DriverError as exc:
        print(f"ERROR: {exc}")
        return 1

    print("Goodbye!")
    return 0
