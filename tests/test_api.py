"""
Tests for the HTTP routes
"""

import inspect

import pytest
from fastapi.testclient import TestClient
from google.api_core.exceptions import ServiceUnavailable
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from devevents.api import routes_bookings, routes_events
from devevents.api.dependencies import get_event_service, get_store_session
from devevents.core.config import settings
from devevents.core.db import Base
from devevents.services.asset_service import get_asset_uploader
from main import app

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_api.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

class FakeUploader:
    def __init__(self):
        self.uploads = []

    def upload(self, content, filename=None, content_type=None):
        self.uploads.append((content, filename, content_type))
        return f"https://assets.example.com/events/{filename}"

@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def uploader():
    return FakeUploader()

@pytest.fixture
def client(db_session, uploader):
    """Test client backed by the test database"""
    def override_session():
        yield db_session

    app.dependency_overrides[get_store_session] = override_session
    app.dependency_overrides[get_asset_uploader] = lambda: uploader
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

def event_form(**overrides):
    form = {
        "title": "Re: Launch Party!!",
        "description": "Celebrating the 1.0 release",
        "overview": "Drinks, demos and a short keynote",
        "venue": "The Loft",
        "location": "Austin, TX",
        "date": "2025-11-07",
        "time": "2:30 pm",
        "mode": "hybrid",
        "audience": "Early adopters",
        "agenda": ["Doors open", "Keynote"],
        "organizer": "Acme Dev Rel",
        "tags": ["launch", "community"],
    }
    form.update(overrides)
    return form

IMAGE = {"image": ("cover.png", b"\x89PNG\r\n\x1a\nfake", "image/png")}

def create_event(client, **overrides):
    return client.post("/api/events", data=event_form(**overrides), files=IMAGE)

def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

def test_create_event_uploads_image(client, uploader):
    """Test event creation substitutes the uploaded image URL"""
    response = create_event(client)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Event created successfully"
    event = body["event"]
    assert event["slug"] == "re-launch-party"
    assert event["time"] == "14:30"
    assert event["image"] == "https://assets.example.com/events/cover.png"
    assert event["agenda"] == ["Doors open", "Keynote"]
    assert len(uploader.uploads) == 1

def test_create_event_accepts_json_list_fields(client):
    response = create_event(client, agenda='["Intro", "Panel"]', tags="ai, web")

    assert response.status_code == 201
    event = response.json()["event"]
    assert event["agenda"] == ["Intro", "Panel"]
    assert event["tags"] == ["ai", "web"]

def test_create_event_with_image_url(client, uploader):
    response = client.post(
        "/api/events",
        data=event_form(image="https://cdn.example.com/launch.png"),
    )

    assert response.status_code == 201
    assert response.json()["event"]["image"] == "https://cdn.example.com/launch.png"
    assert uploader.uploads == []

def test_create_event_requires_image(client):
    response = client.post("/api/events", data=event_form())

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Image file is required"
    assert body["error_code"] == "validation_error"

def test_create_event_image_optional_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "REQUIRE_EVENT_IMAGE", False)
    response = client.post("/api/events", data=event_form())

    # image is still a required event field
    assert response.status_code == 400
    assert "image" in response.json()["error"]

def test_create_event_rejects_bad_time(client):
    response = create_event(client, time="25:00")

    assert response.status_code == 400
    assert "0-23" in response.json()["error"]

def test_create_event_rejects_missing_field(client):
    form = event_form()
    del form["venue"]
    response = client.post("/api/events", data=form, files=IMAGE)

    assert response.status_code == 400
    assert "venue" in response.json()["error"]

def test_duplicate_titles_get_distinct_slugs(client):
    first = create_event(client).json()["event"]
    second = create_event(client).json()["event"]

    assert first["slug"] == "re-launch-party"
    assert second["slug"].startswith("re-launch-party-")

def test_list_events_newest_first(client):
    create_event(client, title="First")
    create_event(client, title="Second")

    response = client.get("/api/events")
    assert response.status_code == 200
    titles = [e["title"] for e in response.json()["events"]]
    assert titles == ["Second", "First"]

def test_get_event_by_slug(client):
    create_event(client)

    response = client.get("/api/events/re-launch-party")
    assert response.status_code == 200
    assert response.json()["event"]["title"] == "Re: Launch Party!!"

    response = client.get("/api/events/nope")
    assert response.status_code == 404
    assert response.json()["error_code"] == "event_not_found"

def test_update_event(client):
    create_event(client)

    response = client.patch("/api/events/re-launch-party", json={"title": "Launch Night"})
    assert response.status_code == 200
    assert response.json()["event"]["slug"] == "launch-night"

    assert client.get("/api/events/re-launch-party").status_code == 404
    assert client.get("/api/events/launch-night").status_code == 200

def test_booking_flow(client):
    """Test one booking per event, with normalized email"""
    event = create_event(client).json()["event"]

    response = client.post("/api/bookings", json={"event_id": event["id"], "email": "A@Example.com "})
    assert response.status_code == 201
    assert response.json()["booking"]["email"] == "a@example.com"

    response = client.post("/api/bookings", json={"event_id": event["id"], "email": "other@example.com"})
    assert response.status_code == 409
    assert response.json()["error_code"] == "duplicate_booking"

    response = client.get(f"/api/events/{event['slug']}/booking")
    assert response.status_code == 200
    assert response.json()["booking"]["email"] == "a@example.com"

def test_booking_unknown_event(client):
    response = client.post("/api/bookings", json={"event_id": "missing", "email": "a@example.com"})

    assert response.status_code == 404
    assert response.json()["error_code"] == "event_not_found"

def test_booking_invalid_email(client):
    event = create_event(client).json()["event"]
    response = client.post("/api/bookings", json={"event_id": event["id"], "email": "nope"})

    assert response.status_code == 400

def test_booking_malformed_body(client):
    response = client.post("/api/bookings", json={"email": "a@example.com"})

    assert response.status_code == 400
    assert "event_id" in response.json()["error"]

def test_home_page_lists_events(client):
    create_event(client, title="Rust Meetup")

    response = client.get("/")
    assert response.status_code == 200
    assert "Rust Meetup" in response.text

class BrokenEventService:
    def __init__(self, error):
        self.error = error

    def list_events(self):
        raise self.error

def test_unexpected_error_uses_error_envelope():
    """Test an unhandled exception still returns the JSON error envelope"""
    app.dependency_overrides[get_event_service] = lambda: BrokenEventService(RuntimeError("boom"))
    try:
        response = TestClient(app, raise_server_exceptions=False).get("/api/events")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/json")
    body = response.json()
    assert body["error"] == "RuntimeError"
    assert body["error_code"] == "internal_error"

def test_firestore_error_uses_error_envelope():
    app.dependency_overrides[get_event_service] = lambda: BrokenEventService(ServiceUnavailable("firestore down"))
    try:
        response = TestClient(app, raise_server_exceptions=False).get("/api/events")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json()["error_code"] == "store_error"

def test_store_backed_routes_run_in_threadpool():
    """Test routes doing store round-trips are not coroutines on the event loop"""
    for route in [routes_events.list_events, routes_events.get_event, routes_events.update_event,
                  routes_bookings.create_booking, routes_bookings.get_event_booking]:
        assert not inspect.iscoroutinefunction(route)
