"""
Shared fixtures
"""

import time

import pytest


@pytest.fixture
def india_local_time(monkeypatch):
    """Run with the process local time zone fixed at UTC+05:30."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", "IST-05:30")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
