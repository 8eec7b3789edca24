import sys
from pathlib import Path

import pytest

from phantom_driver.service.schema import DriverConfig

STUB_DRIVER = Path(__file__).resolve().parent / "stub_driver.py"


@pytest.fixture
def stub_command():
    """Command prefix that launches the FastAPI stub in place of phantomjs."""
    return [sys.executable, str(STUB_DRIVER)]


@pytest.fixture
def sleeper_command():
    """A child that runs but never listens on its port."""
    return [sys.executable, "-c", "import time; time.sleep(30)"]


@pytest.fixture
def driver_config(tmp_path):
    return DriverConfig(
        log_path=str(tmp_path / "phantomjsdriver.log"),
        log_file=str(tmp_path / "phantomjsoutput.log"),
    )
