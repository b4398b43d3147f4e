"""
Shared fixtures: an in-memory SQLite database per test and a TestClient
wired to it through a get_db override.
"""

import json
import os

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["BULK_SYNC_ON_STARTUP"] = "false"

from fastapi.testclient import TestClient  # noqa: E402

from app.db.init_db import init_db  # noqa: E402
from app.db.session import build_engine, get_db  # noqa: E402
from app.main import app  # noqa: E402


@pytest.fixture
def engine():
    test_engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Create an account and return Bearer headers for it."""

    def _signup(username, password=None):
        body = {"username": username}
        if password:
            body["password"] = password
        response = client.post("/api/v1/auth/signup", json=body)
        assert response.status_code == 200, response.text
        # Keep requests explicit: each test passes the headers it wants
        client.cookies.clear()
        return {"Authorization": f"Bearer {response.json()['accessToken']}"}

    return _signup


def make_record(track, artist="Artist", ms_played=60000, ts="2023-01-01T12:00:00Z", **extra):
    record = {
        "ts": ts,
        "master_metadata_track_name": track,
        "master_metadata_album_artist_name": artist,
        "master_metadata_album_album_name": "Album",
        "ms_played": ms_played,
        "spotify_track_uri": f"spotify:track:{abs(hash(track)) % 10**8}",
        "platform": "ios",
    }
    record.update(extra)
    return record


def history_file(records):
    return json.dumps(records).encode("utf-8")
