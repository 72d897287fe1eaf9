"""Integration tests for the HTTP API."""

from __future__ import annotations

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from moodlog.application.use_cases.notifications import NotificationDispatcher
from moodlog.application.use_cases.users import register_user
from moodlog.domain.entities import UserRole
from moodlog.interfaces.api import dependencies

CUTIE = {"username": "cutie", "email": "cutie@example.com", "password": "supersecret1"}


@pytest.fixture()
def channel(make_channel):
    return make_channel()


@pytest.fixture()
def client(session_factory, settings, channel):
    """Return a test client whose dispatcher delivers through a fake channel."""

    from main import create_app

    dependencies.reset_service_cache()
    app = create_app()
    app.dependency_overrides[dependencies.get_notification_dispatcher] = (
        lambda: NotificationDispatcher(
            session_factory, channel, settings, sleep=lambda _: None
        )
    )
    with TestClient(app) as test_client:
        yield test_client
    dependencies.reset_service_cache()


def _login(client: TestClient, username: str, password: str) -> dict[str, str]:
    response = client.post("/auth/token", data={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture()
def cutie_headers(client: TestClient) -> dict[str, str]:
    response = client.post("/auth/register", json=CUTIE)
    assert response.status_code == 201, response.text
    return _login(client, CUTIE["username"], CUTIE["password"])


@pytest.fixture()
def admin_headers(client: TestClient, db) -> dict[str, str]:
    register_user(
        db,
        username="admin",
        email="admin@example.com",
        password="adminsecret1",
        role=UserRole.ADMIN,
    )
    return _login(client, "admin", "adminsecret1")


def test_register_login_and_session(client: TestClient) -> None:
    response = client.post("/auth/register", json=CUTIE)
    assert response.status_code == 201
    body = response.json()
    assert body["username"] == "cutie"
    assert body["role"] == "user"
    assert "password_hash" not in body

    duplicate = client.post("/auth/register", json=CUTIE)
    assert duplicate.status_code == 400

    token_response = client.post(
        "/auth/token", data={"username": "cutie@example.com", "password": "supersecret1"}
    )
    assert token_response.status_code == 200
    token = token_response.json()["access_token"]
    assert token_response.cookies.get("moodlog_session") == token

    session_response = client.get("/auth/session")
    assert session_response.status_code == 200
    assert session_response.json()["user_id"] == body["id"]

    me = client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["last_login_at"] is not None


def test_wrong_password_is_rejected(client: TestClient) -> None:
    client.post("/auth/register", json=CUTIE)
    response = client.post("/auth/token", data={"username": "cutie", "password": "nope"})
    assert response.status_code == 401


def test_requests_without_session_are_rejected(client: TestClient) -> None:
    assert client.get("/users/me").status_code == 401
    assert client.get("/events", headers={"Authorization": "Bearer bogus"}).status_code == 401


def test_logout_invalidates_the_token(client: TestClient, cutie_headers) -> None:
    response = client.post("/auth/logout", headers=cutie_headers)
    assert response.status_code == 204

    client.cookies.clear()
    assert client.get("/users/me", headers=cutie_headers).status_code == 401


def test_checkin_round_trip(client: TestClient, cutie_headers, channel) -> None:
    response = client.post(
        "/events/checkins",
        json={"mood": 2, "intensity": 3, "notes": "Feeling cozy"},
        headers=cutie_headers,
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["alert"] is None
    assert body["event"]["sequence"] == 1
    assert body["event"]["payload"]["notes"] == "Feeling cozy"

    events = client.get("/events", headers=cutie_headers).json()
    assert [(e["sequence"], e["payload"]["mood"]) for e in events] == [(1, 2)]
    assert client.get("/events?since_seq=1", headers=cutie_headers).json() == []
    assert channel.calls == 0


def test_invalid_checkin_returns_422(client: TestClient, cutie_headers) -> None:
    response = client.post(
        "/events/checkins", json={"mood": 9, "intensity": 3}, headers=cutie_headers
    )
    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "mood"
    assert client.get("/events", headers=cutie_headers).json() == []


def test_panic_alerts_contacts_once(client: TestClient, cutie_headers, channel) -> None:
    settings_response = client.put(
        "/users/me/settings",
        json={"display_name": "Cutie", "alert_contacts": ["friend@example.com"]},
        headers=cutie_headers,
    )
    assert settings_response.status_code == 200
    assert settings_response.json()["alert_contacts"] == ["friend@example.com"]

    response = client.post("/events/panic", headers=cutie_headers)
    assert response.status_code == 201, response.text
    assert response.json()["alert"]["severity"] == "critical"

    assert len(channel.sent) == 1
    deliveries = client.get("/notifications/", headers=cutie_headers).json()
    assert [(d["event_sequence"], d["status"]) for d in deliveries] == [(1, "delivered")]


def test_settings_round_trip(client: TestClient, cutie_headers) -> None:
    initial = client.get("/users/me/settings", headers=cutie_headers).json()
    assert initial == {
        "display_name": "cutie",
        "alert_contacts": [],
        "notify_on_low_mood": True,
        "low_mood_threshold": None,
    }

    updated = client.put(
        "/users/me/settings", json={"low_mood_threshold": -1}, headers=cutie_headers
    ).json()
    assert updated["low_mood_threshold"] == -1
    assert updated["display_name"] == "cutie"

    rejected = client.put(
        "/users/me/settings", json={"low_mood_threshold": 7}, headers=cutie_headers
    )
    assert rejected.status_code == 422


def test_verify_chain_endpoints(client: TestClient, cutie_headers, admin_headers) -> None:
    for mood in (1, -1, 0):
        client.post(
            "/events/checkins", json={"mood": mood, "intensity": 1}, headers=cutie_headers
        )

    own = client.get("/events/verify", headers=cutie_headers).json()
    assert own["valid"] is True
    assert own["checked"] == 3

    user_id = client.get("/users/me", headers=cutie_headers).json()["id"]
    assert client.get(f"/users/{user_id}/events/verify", headers=cutie_headers).status_code == 403
    admin_view = client.get(f"/users/{user_id}/events/verify", headers=admin_headers)
    assert admin_view.status_code == 200
    assert admin_view.json()["valid"] is True


def test_admin_deletes_user_and_sessions(client: TestClient, cutie_headers, admin_headers) -> None:
    user_id = client.get("/users/me", headers=cutie_headers).json()["id"]

    assert client.delete(f"/users/{user_id}", headers=cutie_headers).status_code == 403
    assert client.delete(f"/users/{user_id}", headers=admin_headers).status_code == 204
    assert client.delete(f"/users/{user_id}", headers=admin_headers).status_code == 404

    client.cookies.clear()
    assert client.get("/users/me", headers=cutie_headers).status_code == 401


def test_websocket_requires_valid_session(client: TestClient, cutie_headers) -> None:
    token = cutie_headers["Authorization"].split(" ", 1)[1]
    with client.websocket_connect(f"/notifications/ws?token={token}") as websocket:
        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}


def test_event_stands_when_alert_evaluation_fails(
    client: TestClient, cutie_headers, channel, monkeypatch
) -> None:
    import importlib

    from moodlog.domain.errors import StorageError

    submission = importlib.import_module("moodlog.application.use_cases.events.submit_event")

    def unavailable(*_args, **_kwargs):
        raise StorageError("settings table unavailable")

    monkeypatch.setattr(submission, "load_policy", unavailable)

    response = client.post("/events/panic", headers=cutie_headers)

    assert response.status_code == 201, response.text
    assert response.json()["alert"] is None
    assert response.json()["event"]["sequence"] == 1
    assert len(client.get("/events", headers=cutie_headers).json()) == 1
    # The deferred alert is re-derived from the stored panic in the background.
    assert channel.calls == 1
    deliveries = client.get("/notifications/", headers=cutie_headers).json()
    assert [(d["event_sequence"], d["status"]) for d in deliveries] == [(1, "delivered")]


def test_test_alert_reaches_configured_contacts(
    client: TestClient, cutie_headers, channel
) -> None:
    client.put(
        "/users/me/settings",
        json={"display_name": "Cutie", "alert_contacts": ["friend@example.com"]},
        headers=cutie_headers,
    )

    response = client.post("/users/me/settings/test-alert", headers=cutie_headers)

    assert response.status_code == 200, response.text
    assert response.json()["contacts"] == ["friend@example.com"]
    assert "Cutie" in response.json()["message"]
    assert [critical for _, _, critical in channel.sent] == [False]
    assert client.get("/notifications/", headers=cutie_headers).json() == []


def test_test_alert_reports_channel_errors(
    client: TestClient, cutie_headers, channel
) -> None:
    from moodlog.domain.errors import ChannelError

    channel.failures.append(ChannelError("No alert contacts configured", transient=False))

    response = client.post("/users/me/settings/test-alert", headers=cutie_headers)

    assert response.status_code == 502
    assert response.json()["detail"] == "No alert contacts configured"
    assert channel.sent == []
    assert client.get("/notifications/", headers=cutie_headers).json() == []


def test_logout_all_revokes_every_session(client: TestClient, cutie_headers) -> None:
    other_headers = _login(client, CUTIE["username"], CUTIE["password"])
    client.cookies.clear()

    response = client.post("/auth/logout-all", headers=cutie_headers)
    assert response.status_code == 204

    client.cookies.clear()
    assert client.get("/users/me", headers=cutie_headers).status_code == 401
    assert client.get("/users/me", headers=other_headers).status_code == 401
