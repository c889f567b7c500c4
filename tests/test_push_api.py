"""Tests for the push subscription endpoints."""
from __future__ import annotations

from fastapi.testclient import TestClient

from mealtracker.config import settings
from mealtracker.core.notifications import DeliveryOutcome

ENDPOINT = "https://fcm.googleapis.com/fcm/send/device-token"


def subscribe(client: TestClient, **overrides) -> dict:
    payload = {
        "endpoint": ENDPOINT,
        "keys": {"p256dh": "p256", "auth": "secret"},
        "lastMealTime": 1_700_000_000_000,
        "quietHoursStart": 22,
        "quietHoursEnd": 8,
        "language": "de",
    }
    payload.update(overrides)
    return client.post("/api/v1/push/subscribe", json=payload)


def test_subscribe_then_resubscribe_keeps_one_record(client: TestClient, store) -> None:
    first = subscribe(client)
    second = subscribe(client, language="es", lastMealTime=1_700_000_360_000)

    assert first.status_code == 200
    assert first.json() == {"success": True, "message": "Subscribed successfully"}
    assert second.json() == {"success": True, "message": "Subscription updated"}

    records = store.get_all()
    assert len(records) == 1
    assert records[0].language == "es"
    assert records[0].last_meal_time == 1_700_000_360_000
    assert records[0].key_material() == {"p256dh": "p256", "auth": "secret"}


def test_subscribe_defaults_language_to_english(client: TestClient, store) -> None:
    response = client.post(
        "/api/v1/push/subscribe",
        json={"endpoint": ENDPOINT, "keys": {"p256dh": "p256", "auth": "secret"}},
    )

    assert response.status_code == 200
    record = store.get_by_endpoint(ENDPOINT)
    assert record.language == "en"
    assert record.quiet_hours_start is None
    assert record.last_meal_time is None


def test_subscribe_rejects_invalid_settings(client: TestClient, store) -> None:
    assert subscribe(client, language="fr").status_code == 422
    assert subscribe(client, quietHoursStart=22, quietHoursEnd=None).status_code == 422
    assert subscribe(client, quietHoursStart=5, quietHoursEnd=5).status_code == 422
    assert subscribe(client, quietHoursStart=24, quietHoursEnd=8).status_code == 422
    assert subscribe(client, targetHours=0).status_code == 422

    response = subscribe(client, quietHoursStart=7, quietHoursEnd=7)
    assert response.json()["message"] == "Validation failed"
    assert store.get_all() == []


def test_update_meal_changes_only_given_fields(client: TestClient, store) -> None:
    subscribe(client)

    response = client.post(
        "/api/v1/push/update-meal",
        json={"endpoint": ENDPOINT, "lastMealTime": 1_700_000_999_000, "targetHours": 5},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    store.db.expire_all()
    record = store.get_by_endpoint(ENDPOINT)
    assert record.last_meal_time == 1_700_000_999_000
    assert record.target_hours == 5
    assert record.language == "de"
    assert (record.quiet_hours_start, record.quiet_hours_end) == (22, 8)


def test_update_meal_quiet_hours_and_language(client: TestClient, store) -> None:
    subscribe(client)

    ok = client.post(
        "/api/v1/push/update-meal",
        json={"endpoint": ENDPOINT, "quietHoursStart": 1, "quietHoursEnd": 6, "language": "en"},
    )
    assert ok.status_code == 200

    only_start = client.post("/api/v1/push/update-meal", json={"endpoint": ENDPOINT, "quietHoursStart": 1})
    equal = client.post(
        "/api/v1/push/update-meal",
        json={"endpoint": ENDPOINT, "quietHoursStart": 3, "quietHoursEnd": 3},
    )
    bad_language = client.post("/api/v1/push/update-meal", json={"endpoint": ENDPOINT, "language": "it"})
    assert only_start.status_code == 422
    assert equal.status_code == 422
    assert bad_language.status_code == 422

    cleared = client.post(
        "/api/v1/push/update-meal",
        json={"endpoint": ENDPOINT, "quietHoursStart": None, "quietHoursEnd": None},
    )
    assert cleared.status_code == 200

    store.db.expire_all()
    record = store.get_by_endpoint(ENDPOINT)
    assert record.language == "en"
    assert record.quiet_hours_start is None
    assert record.quiet_hours_end is None


def test_update_meal_unknown_endpoint(client: TestClient) -> None:
    response = client.post(
        "/api/v1/push/update-meal",
        json={"endpoint": "https://push.example.com/unknown", "lastMealTime": 1},
    )

    assert response.status_code == 404


def test_unsubscribe_is_idempotent(client: TestClient, store) -> None:
    subscribe(client)

    first = client.request("DELETE", "/api/v1/push/unsubscribe", json={"endpoint": ENDPOINT})
    second = client.request("DELETE", "/api/v1/push/unsubscribe", json={"endpoint": ENDPOINT})

    assert first.status_code == 200
    assert second.status_code == 200
    assert store.get_all() == []


def test_reset_badge_sends_silent_zero(client: TestClient, sink) -> None:
    subscribe(client)

    response = client.post("/api/v1/push/reset-badge", json={"endpoint": ENDPOINT})

    assert response.status_code == 200
    [payload] = sink.payloads_for(ENDPOINT)
    assert payload.silent is True
    assert payload.badge_count == 0


def test_reset_badge_removes_expired_subscription(client: TestClient, sink, store) -> None:
    subscribe(client)
    sink.outcomes[ENDPOINT] = DeliveryOutcome.EXPIRED

    response = client.post("/api/v1/push/reset-badge", json={"endpoint": ENDPOINT})

    assert response.status_code == 200
    assert store.get_by_endpoint(ENDPOINT) is None


def test_reset_badge_unknown_endpoint(client: TestClient) -> None:
    response = client.post("/api/v1/push/reset-badge", json={"endpoint": ENDPOINT})

    assert response.status_code == 404


def test_vapid_public_key(client: TestClient, monkeypatch) -> None:
    monkeypatch.setattr(settings, "VAPID_PUBLIC_KEY", None)
    assert client.get("/api/v1/push/vapid-public-key").status_code == 503

    monkeypatch.setattr(settings, "VAPID_PUBLIC_KEY", "BPublicKey")
    response = client.get("/api/v1/push/vapid-public-key")
    assert response.status_code == 200
    assert response.json() == {"publicKey": "BPublicKey"}
