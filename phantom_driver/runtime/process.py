from __future__ import annotations

import logging
import socket
import time

from phantom_driver.service.errors import NetworkResourceError, StartupTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_PROBE_INTERVAL = 0.05


def find_free_port() -> int:
    """Ask the OS for a loopback TCP port that is free right now."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            return int(sock.getsockname()[1])
    except OSError as e:
        raise NetworkResourceError(f"Unable to allocate a free port: {e}") from e


def wait_for_server(
    port: int,
    timeout: float,
    host: str = "127.0.0.1",
    interval: float = DEFAULT_PROBE_INTERVAL,
) -> None:
    """Block until host:port accepts TCP connections or raise StartupTimeoutError."""
    start = time.monotonic()
    attempts = 0
    while True:
        attempts += 1
        try:
            with socket.create_connection((host, port), timeout=interval):
                logger.debug(f"{host}:{port} reachable after {attempts} attempt(s)")
                return
        except OSError:
            pass

        remaining = timeout - (time.monotonic() - start)
        if remaining <= 0:
            raise StartupTimeoutError(
                f"driver start failed: {host}:{port} not reachable within {timeout}s"
            )
        time.sleep(min(interval, remaining))
