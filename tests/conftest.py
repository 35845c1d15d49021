"""
deltatx test configuration and fixtures

Provides a virtual-time scheduler, a fixed clock and isolated config so
transaction tests are deterministic.
"""

import logging

import pytest
from datetime import datetime, timedelta, timezone

from deltatx.bootstrap.config import TransactionConfig, reset_config
from deltatx.transactions import ManualScheduler


class SteppingClock:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime = datetime(2018, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        now = self.current
        self.current += timedelta(seconds=1)
        return now


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Every test starts from default, environment-free configuration."""
    for name in (
        "DELTATX_LOG_WRITES",
        "DELTATX_STRICT_ROLLBACK",
        "DELTATX_DEFAULT_TIMEOUT_MS",
        "DELTATX_DAEMON_TIMERS",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def clock():
    return SteppingClock()


@pytest.fixture
def tx_config():
    return TransactionConfig()


@pytest.fixture
def tx_kwargs(scheduler, clock, tx_config):
    """Keyword arguments wiring a transaction to the manual scheduler and clock."""
    return {"scheduler": scheduler, "clock": clock, "config": tx_config}


@pytest.fixture
def person():
    return {"name": "Marcus Aurelius", "born": 121}


@pytest.fixture
def restore_package_logger():
    """Put the deltatx logger back the way the test found it."""
    package_logger = logging.getLogger("deltatx")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    yield package_logger
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        package_logger.addHandler(handler)
    package_logger.setLevel(level)
