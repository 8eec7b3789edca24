import os
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

LOG_LEVELS = ("ERROR", "WARN", "INFO", "DEBUG")


class DriverState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class StopPolicy(BaseModel):
    """
    How stop() treats the driver after sending the interrupt.

    The default only signals the process and returns. With wait_timeout set,
    stop() waits up to that many seconds for the exit and, if kill_on_timeout
    is True, kills the process when it is still alive afterwards.
    """
    wait_timeout: Optional[float] = Field(default=None, gt=0)
    kill_on_timeout: bool = False


class DriverConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    # 0 means "ask the OS for a free port at start"
    port: int = Field(default=0, ge=0, le=65535)
    host: str = "127.0.0.1"
    # URL path prefix for every WebDriver REST request
    base_url: str = ""
    threads: int = Field(default=4, ge=1)
    # Driver-native log, checked for writability before launch
    log_path: str = "phantomjsdriver.log"
    # Captured stdout/stderr of the driver; None sends it to the console
    log_file: Optional[str] = "phantomjsoutput.log"
    start_timeout: float = Field(default=20.0, gt=0)
    log_level: str = "DEBUG"
    probe_interval: float = Field(default=0.05, gt=0)
    stop_policy: StopPolicy = Field(default_factory=StopPolicy)
    stop_on_start_failure: bool = True

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return level

    @field_validator("log_file")
    @classmethod
    def _blank_log_file(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @classmethod
    def defaults(cls) -> "DriverConfig":
        return cls()

    @classmethod
    def from_env(cls, prefix: str = "PHANTOM_DRIVER_", environ: Optional[Mapping[str, str]] = None) -> "DriverConfig":
        """Build a config from the defaults overlaid with PHANTOM_DRIVER_* variables."""
        env = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}
        for name in ("port", "host", "base_url", "threads", "log_path", "log_file", "start_timeout", "log_level"):
            raw = env.get(prefix + name.upper())
            if raw is not None:
                overrides[name] = raw.strip()
        return cls(**overrides)


class Session(BaseModel):
    session_id: str
    capabilities: Dict[str, Any] = {}
    # Back-reference to the PhantomJsDriver that owns the endpoint
    driver: Optional[Any] = Field(default=None, exclude=True, repr=False)


class SessionSummary(BaseModel):
    id: str
    capabilities: Dict[str, Any] = {}
    driver: Optional[Any] = Field(default=None, exclude=True, repr=False)
