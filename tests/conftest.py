"""
Test configuration and fixtures for the dig tracker.
This centralizes all test setup, making individual tests clean.
"""

import io

import pytest

from tracker_app.config import Settings
from tracker_app.dedup.factory import DedupFactory
from tracker_app.dedup.strategies import InMemoryDedup
from tracker_app.log_setup import build_logger
from tracker_app.sink.factory import SinkFactory
from tracker_app.sink.strategies import InMemorySink


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture(autouse=True)
def clear_factories():
    """Factories cache singletons; every test starts without one"""
    DedupFactory.clear_instance()
    SinkFactory.clear_instance()
    yield
    DedupFactory.clear_instance()
    SinkFactory.clear_instance()


@pytest.fixture
def log_stream():
    return io.StringIO()


@pytest.fixture
def logger(log_stream):
    """Logger writing to an in-memory stream"""
    return build_logger(level="DEBUG", stream=log_stream)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_dedup(clock):
    return InMemoryDedup(clock=clock)


@pytest.fixture
def memory_sink():
    return InMemorySink(granularities=["day", "hour"])


@pytest.fixture
def log_file(tmp_path):
    """Empty access log"""
    path = tmp_path / "dig.log"
    path.write_text("")
    return path


@pytest.fixture
def test_settings(log_file):
    """Fast settings: two workers, tiny poll intervals, in-memory backends"""
    return Settings(
        _env_file=None,
        log_file_path=str(log_file),
        worker_count=2,
        tail_poll_interval=0.01,
        tail_open_retries=2,
        tail_open_backoff=0.01,
        dedup_backend="memory",
        sink_backend="memory",
        dedup_ping_interval=0.05,
        shutdown_timeout=2.0,
        log_level="WARNING",
    )
