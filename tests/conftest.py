# tests/conftest.py
"""
Shared fixtures for Pagecast tests.

Provides isolated registries with a controllable clock and an HTTP client
bound to a fresh application per test.
"""

import os

# Keep test runs from writing log files
os.environ["LOG_DIR"] = ""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from pagecast.core.config import Settings
from pagecast.core.session_registry import SessionRegistry
from pagecast.main import create_app
from pagecast.services.validation_service import ValidationPolicy


class FakeClock:
    """Manually advanced UTC clock"""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    """Registry with default validation policy and a fake clock"""
    return SessionRegistry(clock=clock)


@pytest.fixture
def test_settings():
    return Settings(
        SESSION_TTL_SECONDS=24 * 60 * 60,
        SWEEP_INTERVAL_SECONDS=3600,
        RATE_LIMIT_ENABLED=False,
    )


@pytest.fixture
def app(test_settings, registry):
    return create_app(config=test_settings, registry=registry)


@pytest.fixture
def client(app):
    """TestClient running the application lifespan"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def permissive_registry(clock):
    """Registry with validation switched off"""
    return SessionRegistry(policy=ValidationPolicy(enabled=False), clock=clock)


def pytest_configure(config):
    """Configure custom pytest markers"""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, no server)"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests going through the HTTP application"
    )
