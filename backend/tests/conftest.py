"""
Pytest configuration and fixtures
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.main import app
from app.services.job_queue import JobQueue
from app.services.job_store import JobStore
from app.services.rate_limiter import render_rate_limiter
from app.services.service_factory import reset_services


class FakeClock:
    """Controllable UTC clock for queue timing tests."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0, milliseconds: float = 0) -> datetime:
        self.now += timedelta(seconds=seconds, milliseconds=milliseconds)
        return self.now


@pytest.fixture
def client():
    """FastAPI test client fixture"""
    return TestClient(app)


@pytest.fixture
def storage_path(tmp_path, monkeypatch):
    """Point STORAGE_PATH at a temp dir and rebuild service singletons."""
    monkeypatch.setattr(settings, "STORAGE_PATH", str(tmp_path))
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "local")
    reset_services()
    render_rate_limiter.reset()
    yield tmp_path
    reset_services()
    render_rate_limiter.reset()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def job_store(tmp_path):
    return JobStore(str(tmp_path))


@pytest.fixture
def job_queue(job_store, fake_clock):
    """Queue with the production retry policy and a fake clock."""
    return JobQueue(
        job_store,
        attempts=3,
        backoff_delay_ms=2000,
        lock_duration=120,
        max_stalled_count=1,
        clock=fake_clock,
    )


@pytest.fixture
def layer_settings_payload():
    """Complete settings document in wire format."""
    return {
        "flowField": {
            "enabled": True,
            "baseFrequency": 0.02,
            "amplitude": 1.0,
            "octaves": 1,
            "color1": "#4ade80",
            "color2": "#22d3ee",
            "rotation": 0.5,
            "direction": 1,
        },
        "flowFields": {
            "enabled": True,
            "baseFrequency": 0.01,
            "amplitude": 1.0,
            "octaves": 1,
            "lineLength": 20.0,
            "lineDensity": 0.1,
            "rotation": 0.3,
            "direction": 1,
        },
        "contour": {
            "enabled": True,
            "baseFrequency": 0.01,
            "amplitude": 1.0,
            "octaves": 4,
            "levels": 5,
            "smoothness": 0.3,
        },
        "contourAffectsFlow": True,
    }


@pytest.fixture
def flow_field_only_payload():
    """Background layer only, as in the reference example render."""
    return {
        "flowField": {
            "enabled": True,
            "baseFrequency": 0.02,
            "amplitude": 1.0,
            "octaves": 1,
            "color1": "#4ade80",
            "color2": "#22d3ee",
            "rotation": 0.0,
            "direction": 1,
        },
        "flowFields": {
            "enabled": False,
            "baseFrequency": 0.01,
            "amplitude": 1.0,
            "octaves": 1,
            "lineLength": 20.0,
            "lineDensity": 0.1,
            "rotation": 0.3,
            "direction": 1,
        },
        "contour": {
            "enabled": False,
            "baseFrequency": 0.01,
            "amplitude": 1.0,
            "octaves": 4,
            "levels": 5,
            "smoothness": 0.3,
        },
        "contourAffectsFlow": True,
    }
