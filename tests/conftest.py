"""Pytest fixtures for location analytics tests."""

from datetime import datetime, timedelta, timezone

import pytest

from core.models import LocationObservation, LocationSource
from core.tracker import LocationTracker
from store.memory import InMemoryLocationStore

NOW = datetime(2025, 1, 31, 12, 0, 0, tzinfo=timezone.utc)
HOME = (21.3069, -157.8583)
# 80 miles due north of HOME (one degree of latitude is ~69.1 miles at R = 3959)
FAR_80_MILES = (HOME[0] + 80 / 69.0975, HOME[1])


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_obs():
    """Factory: make_obs(lat, lng, ts, source="check_in", verified=True, client_id="c1")."""
    counter = {"n": 0}

    def _make(lat, lng, ts, source="check_in", verified=True, client_id="c1", address=None):
        counter["n"] += 1
        return LocationObservation(
            id=f"obs-{counter['n']:03d}",
            client_id=client_id,
            latitude=lat,
            longitude=lng,
            timestamp=ts,
            accuracy=10.0,
            source=LocationSource(source),
            verified=verified,
            address=address,
        )

    return _make


@pytest.fixture
def home_history(make_obs):
    """20 verified check-ins at HOME (jitter under 0.05 mi), one per day ending at NOW."""
    return [
        make_obs(HOME[0] + (i % 5) * 0.0001, HOME[1], NOW - timedelta(days=i), address="12 Home St")
        for i in range(20)
    ]


@pytest.fixture
def far_trip(make_obs):
    """5 check-ins 80 miles from HOME over the last week."""
    return [
        make_obs(FAR_80_MILES[0], FAR_80_MILES[1], NOW - timedelta(days=i, hours=6))
        for i in range(1, 6)
    ]


@pytest.fixture
def store():
    return InMemoryLocationStore()


@pytest.fixture
def tracker(store):
    """Tracker over an in-memory store with the clock pinned at NOW; no background analysis."""
    return LocationTracker(store, clock=lambda: NOW)


@pytest.fixture
def app_client(tracker):
    """FastAPI TestClient around the fixture tracker."""
    from fastapi.testclient import TestClient
    from api.main import create_app
    from core.config import Settings
    return TestClient(create_app(tracker, Settings(store_backend="memory")))
