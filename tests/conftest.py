"""Shared fixtures for Behavior Insights tests."""

import json
import os
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Keep test sessions out of the filesystem
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("PATTERN_ANALYSIS_INTERVAL", "3600")

from behavior.session_manager import SessionManager
from behavior.session_store import InMemorySessionStore

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)

    def set(self, moment: datetime):
        self.current = moment


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 10, 25, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def session_manager(store, clock):
    return SessionManager(store=store, clock=clock)


@pytest.fixture
def client():
    """Create a FastAPI test client (runs the app lifespan)."""
    from api.main import app
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def client_id():
    """Unique tracking client per test."""
    return f"test-{uuid.uuid4().hex[:12]}"


@pytest.fixture
def sample_leads():
    """Lead records from data/sample_leads.json."""
    with open(DATA_DIR / "sample_leads.json", "r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def enterprise_fintech_lead(sample_leads):
    """Enterprise fintech lead with a recent WhatsApp contact."""
    return sample_leads[0]
