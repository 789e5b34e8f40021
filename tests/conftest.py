"""Pytest configuration for micropromise tests."""

import signal
import sys

import pytest

from micropromise import EventLoop, set_event_loop

DEFAULT_TEST_SECONDS = 5
LOOP_TASK_LIMIT = 100_000


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "timeout(seconds): wall-clock budget for a test that drives its own loop"
    )


def _out_of_time(signum, frame):
    pytest.fail("Test exceeded its wall-clock budget")


@pytest.fixture(autouse=True)
def wall_clock_guard(request):
    """Fail a test that keeps running after its budget.

    The default loop's task limit stops runaway promise chains; this guards
    tests that build their own EventLoop without one (for example the
    time-limit tests). Budget is DEFAULT_TEST_SECONDS unless the test is
    marked with @pytest.mark.timeout(n). SIGALRM is unavailable on Windows,
    where no budget is enforced.
    """
    if sys.platform == "win32":
        yield
        return

    marker = request.node.get_closest_marker("timeout")
    seconds = marker.args[0] if marker else DEFAULT_TEST_SECONDS
    previous = signal.signal(signal.SIGALRM, _out_of_time)
    signal.alarm(seconds)
    try:
        yield
    finally:
        signal.alarm(0)
        signal.signal(signal.SIGALRM, previous)


@pytest.fixture(autouse=True)
def loop():
    """Install a fresh default event loop for each test."""
    event_loop = EventLoop(task_limit=LOOP_TASK_LIMIT)
    set_event_loop(event_loop)
    yield event_loop
    set_event_loop(None)
