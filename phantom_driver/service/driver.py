from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from phantom_driver.client.webdriver_client import WebDriverClient
from phantom_driver.runtime.process import find_free_port, wait_for_server
from phantom_driver.runtime.supervisor import ProcessSupervisor
from phantom_driver.service.errors import (
    AlreadyRunningError,
    DriverError,
    LogPathError,
    NotRunningError,
    StartupTimeoutError,
)
from phantom_driver.service.schema import DriverConfig, DriverState, Session, SessionSummary

logger = logging.getLogger(__name__)


class PhantomJsDriver:
    """
    Lifecycle handle for a PhantomJS WebDriver server.

    `path` is the driver binary, or a command prefix list such as
    [sys.executable, "driver.py"]. The config may be mutated freely while the
    driver is idle; host and port are fixed from start() until stop().
    Start/stop on one handle must not be called concurrently.
    """

    def __init__(
        self,
        path: Union[str, Sequence[str]],
        config: Optional[DriverConfig] = None,
        supervisor: Optional[ProcessSupervisor] = None,
        client_factory: Optional[Callable[[str], WebDriverClient]] = None,
    ):
        self.command: List[str] = [path] if isinstance(path, str) else list(path)
        self.config = config or DriverConfig.defaults()
        self.supervisor = supervisor or ProcessSupervisor(self.config.stop_policy)
        self.client_factory = client_factory or WebDriverClient
        self.state = DriverState.IDLE
        self.url: Optional[str] = None
        self.port: Optional[int] = None

    def build_switches(self, port: int) -> List[str]:
        cfg = self.config
        return [
            f"--webdriver={cfg.host}:{port}",
            f"--webdriver-logfile={cfg.log_path}",
            f"--webdriver-loglevel={cfg.log_level}",
        ]

    def _check_log_path(self) -> None:
        log_path = self.config.log_path
        if not log_path:
            return
        try:
            with open(log_path, "a"):
                pass
        except (OSError, ValueError) as e:
            raise LogPathError(f"driver start failed: unable to write in log path: {e}") from e

    def start(self) -> None:
        if self.state is not DriverState.IDLE or self.supervisor.running:
            raise AlreadyRunningError("driver start failed: driver already running")

        self.state = DriverState.STARTING
        try:
            cfg = self.config
            port = cfg.port or find_free_port()
            self._check_log_path()

            self.port = port
            self.url = f"http://{cfg.host}:{port}{cfg.base_url}"
            cmd = self.command + self.build_switches(port)

            # Stop policy may have been replaced on the config since construction
            self.supervisor.stop_policy = cfg.stop_policy
            self.supervisor.start(cmd, log_file=cfg.log_file)
        except BaseException:
            self.state = DriverState.IDLE
            raise

        try:
            wait_for_server(port, cfg.start_timeout, host=cfg.host, interval=cfg.probe_interval)
        except StartupTimeoutError:
            if cfg.stop_on_start_failure:
                logger.warning(f"Driver did not open {cfg.host}:{port}, stopping it")
                try:
                    self.supervisor.stop()
                except DriverError as stop_error:
                    logger.warning(f"Cleanup after failed start did not complete: {stop_error}")
            raise
        finally:
            # With stop_on_start_failure off a timed-out process stays up; the caller must stop() it
            self.state = DriverState.RUNNING if self.supervisor.running else DriverState.IDLE

        logger.info(f"Driver ready at {self.url}")

    def stop(self) -> None:
        if not self.supervisor.running:
            self.state = DriverState.IDLE
            raise NotRunningError("stop failed: driver not running")
        self.state = DriverState.STOPPING
        try:
            self.supervisor.stop()
        finally:
            self.state = DriverState.IDLE

    def _client(self) -> WebDriverClient:
        if self.url is None or self.state is not DriverState.RUNNING:
            raise NotRunningError("driver not running")
        return self.client_factory(self.url)

    def new_session(self, desired: Dict[str, Any], required: Optional[Dict[str, Any]] = None) -> Session:
        session = self._client().new_session(desired, required)
        session.driver = self
        return session

    def sessions(self) -> List[SessionSummary]:
        sessions = self._client().sessions()
        for session in sessions:
            session.driver = self
        return sessions

    def __enter__(self) -> "PhantomJsDriver":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        if self.supervisor.running:
            self.stop()
