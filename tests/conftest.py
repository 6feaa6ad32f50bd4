"""Shared fixtures for medterm tests."""

import pytest

from medterm.core.engine import TerminologyEngine, set_engine


class FakeClock:
    """Manually advanced time source for cache tests."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_global_state():
    """Each test starts without a global engine."""
    set_engine(None)
    yield
    set_engine(None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    """Engine whose caches run on the fake clock."""
    return TerminologyEngine(clock=clock)


@pytest.fixture
def dictionary(engine):
    return engine.dictionary
