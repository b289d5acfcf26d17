"""Pytest configuration and shared fixtures for linkroute tests."""

import pytest

from linkroute import LinkRouter, MemoryStore, Point, Rect, RoutingDebugRecorder


@pytest.fixture
def source_rect():
    """Source card at the origin."""
    return Rect(0, 0, 200, 120)


@pytest.fixture
def target_rect():
    """Target card level with the source, 200 units to its right."""
    return Rect(400, 0, 200, 120)


@pytest.fixture
def blocking_obstacle():
    """Card sitting squarely between source_rect and target_rect."""
    return Rect(250, 0, 100, 120)


@pytest.fixture
def start_point():
    """Right-middle anchor of source_rect."""
    return Point(200, 60)


@pytest.fixture
def end_point():
    """Left-middle anchor of target_rect."""
    return Point(400, 60)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def fixed_clock():
    """Clock frozen at a known instant."""
    return lambda: 1_700_000_000.0


@pytest.fixture
def recorder(store, fixed_clock):
    """Enabled recorder backed by an in-memory store."""
    rec = RoutingDebugRecorder(store, clock=fixed_clock)
    rec.enable()
    return rec


@pytest.fixture
def router():
    """Router without a recorder."""
    return LinkRouter()


@pytest.fixture
def recording_router(recorder):
    """Router reporting to the enabled recorder."""
    return LinkRouter(recorder=recorder)
