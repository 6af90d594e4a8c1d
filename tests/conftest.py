import os
import sys

import mongomock
import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so the top-level modules import when running from anywhere
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import settings  # noqa: E402


@pytest.fixture
def db():
    return mongomock.MongoClient()["portfolio_test"]


@pytest.fixture
def app(db, tmp_path):
    from main import create_app

    return create_app(database=db, upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def client(app):
    # context manager runs the lifespan: indexes + seeded admin
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_client(client):
    r = client.post(
        "/api/auth/login",
        json={"email": settings.ADMIN_EMAIL, "password": settings.ADMIN_PASSWORD},
    )
    assert r.status_code == 200
    return client


@pytest.fixture
def repository(db):
    from content import ContentRepository

    return ContentRepository(db)


@pytest.fixture
def recorder(db):
    from tracking import EventRecorder

    return EventRecorder(db)


@pytest.fixture
def aggregator(db):
    from analytics import AnalyticsAggregator

    return AnalyticsAggregator(db)
