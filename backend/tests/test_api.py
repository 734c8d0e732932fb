"""Tests for the HTTP API."""
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from nudger.config import Settings
from nudger.main import create_app
from nudger.services.registry import UserRegistry

TOKEN = "ExponentPushToken[api]"


@pytest.fixture
def app(clock, dispatcher):
    return create_app(
        config=Settings(scheduler_enabled=False),
        registry=UserRegistry(clock=clock),
        dispatcher=dispatcher,
        clock=clock,
    )


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


def test_index_and_health(client):
    assert client.get("/").text == "Hello from nudger!"

    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_register_then_update_preferences(client, app, clock):
    body = {
        "token": TOKEN,
        "motivationEnabled": True,
        "screenTimeEnabled": True,
        "screenTime": 2,
        "nudgeEnabled": False,
    }
    response = client.post("/api/preferences", json=body)
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["message"] == "User registered successfully"

    state = app.state.registry.get(TOKEN)
    assert state.motivation_enabled is True
    assert state.screen_time == 2
    assert state.screen_time_start == clock.now

    clock.advance(minutes=30)
    body["screenTime"] = 3
    response = client.post("/api/preferences", json=body)
    assert response.json()["message"] == "Preferences updated successfully"
    state = app.state.registry.get(TOKEN)
    assert state.screen_time == 3
    assert state.screen_time_start == clock.now - timedelta(minutes=30)


def test_toggle_reset_over_http(client, app, clock):
    client.post("/api/preferences", json={"token": TOKEN, "screenTimeEnabled": True, "screenTime": 1})
    clock.advance(hours=2)
    client.post("/api/preferences", json={"token": TOKEN, "screenTimeEnabled": False})
    assert app.state.registry.get(TOKEN).screen_time_start is None

    reenabled_at = clock.advance(minutes=5)
    client.post("/api/preferences", json={"token": TOKEN, "screenTimeEnabled": True, "screenTime": 1})

    state = app.state.registry.get(TOKEN)
    assert state.screen_time_start == reenabled_at
    assert state.screen_time_count == 0


@pytest.mark.parametrize("body", [
    {"motivationEnabled": True},
    {"token": ""},
    {"token": TOKEN, "screenTimeEnabled": True},
    {"token": TOKEN, "screenTimeEnabled": True, "screenTime": -1},
    {"token": TOKEN, "nudgeEnabled": True, "nudgeTime": 0},
    {"token": TOKEN, "motivationEnabled": "definitely"},
])
def test_malformed_preferences_rejected(client, app, body):
    response = client.post("/api/preferences", json=body)

    assert response.status_code == 422
    assert response.json()["success"] is False
    assert response.json()["errors"]
    assert len(app.state.registry) == 0


def test_disabled_features_accept_zero_intervals(client, app):
    """A switched-off feature may carry a zero interval without losing the update."""
    response = client.post("/api/preferences", json={
        "token": TOKEN,
        "motivationEnabled": True,
        "screenTimeEnabled": False,
        "screenTime": 0,
        "nudgeEnabled": False,
        "nudgeTime": 0,
    })

    assert response.status_code == 200
    assert response.json()["success"] is True
    state = app.state.registry.get(TOKEN)
    assert state.motivation_enabled is True
    assert state.screen_time_enabled is False
    assert state.screen_time_start is None
    assert state.nudge_enabled is False


def test_invalid_json_rejected(client):
    response = client.post(
        "/api/preferences",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 422
    assert response.json()["success"] is False

    # Still serving afterwards
    assert client.get("/health").status_code == 200


def test_activity_for_unknown_token(client, app):
    response = client.post("/api/activity", json={
        "token": "missing",
        "lastActive": "2026-03-02T11:00:00",
        "appState": "background",
    })

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "User not found"}
    assert len(app.state.registry) == 0


def test_activity_updates_last_active(client, app):
    client.post("/api/preferences", json={"token": TOKEN, "nudgeEnabled": True, "nudgeTime": 1})

    response = client.post("/api/activity", json={
        "token": TOKEN,
        "lastActive": "2026-03-02T10:58:00",
        "appState": "background",
    })

    assert response.status_code == 200
    assert response.json()["success"] is True
    state = app.state.registry.get(TOKEN)
    assert state.last_active == datetime(2026, 3, 2, 10, 58)
    assert state.app_state == "background"


def test_user_count(client):
    client.post("/api/preferences", json={"token": "a", "motivationEnabled": True})
    client.post("/api/preferences", json={"token": "b", "nudgeEnabled": True, "nudgeTime": 2})

    response = client.get("/api/users/count")

    assert response.status_code == 200
    assert response.json() == {
        "total": 2,
        "motivationEnabled": 1,
        "screenTimeEnabled": 0,
        "nudgeEnabled": 1,
    }
