from types import SimpleNamespace

from fellowship.models.notification_preference import NotificationPreference
from fellowship.models.push_token import PushToken

PUSH_URL = "/API/v1/users/push-token"
PREFS_URL = "/API/v1/notifications/preferences"


# --- Auth ---


def test_requires_login(client):
    resp = client.get(PREFS_URL)
    assert resp.status_code == 401
    assert resp.json()["detail"] == "You must be logged in."


def test_rejects_bad_token(client):
    resp = client.get(PREFS_URL, headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_rejects_token_for_unknown_user(client, auth_headers):
    ghost = SimpleNamespace(id=9999)
    assert client.get(PREFS_URL, headers=auth_headers(ghost)).status_code == 401


# --- Push token registration ---


def test_register_push_token(client, db, make_user, auth_headers):
    bob = make_user()
    resp = client.post(
        PUSH_URL,
        json={"expoPushToken": "ExponentPushToken[abc]", "platform": "ios", "deviceId": "iphone-1"},
        headers=auth_headers(bob),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["platform"] == "ios"
    row = db.query(PushToken).one()
    assert (row.user_id, row.token, row.device_id) == (bob.id, "ExponentPushToken[abc]", "iphone-1")


def test_register_same_token_twice_keeps_one_row(client, db, make_user, auth_headers):
    bob = make_user()
    for _ in range(2):
        resp = client.post(PUSH_URL, json={"expoPushToken": "ExpoPushToken[abc]"}, headers=auth_headers(bob))
        assert resp.status_code == 200
    assert db.query(PushToken).count() == 1


def test_register_push_token_validation(client, make_user, auth_headers):
    bob = make_user()
    assert client.post(PUSH_URL, json={}, headers=auth_headers(bob)).status_code == 400
    resp = client.post(PUSH_URL, json={"expoPushToken": "apns-hex-token"}, headers=auth_headers(bob))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid Expo push token format"


# --- Preferences ---


def test_get_preferences_creates_defaults(client, db, make_user, auth_headers):
    bob = make_user()
    resp = client.get(PREFS_URL, headers=auth_headers(bob))
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "success"
    prefs = body["data"]["preferences"]
    assert prefs["notifications_enabled"] is True
    assert prefs["event_notifications"] is True
    assert prefs["prayer_notifications"] is True
    assert prefs["social_notifications"] is True
    assert db.query(NotificationPreference).count() == 1


def test_put_creates_row_with_201(client, make_user, auth_headers):
    bob = make_user()
    resp = client.put(PREFS_URL, json={"prayer_notifications": False}, headers=auth_headers(bob))
    assert resp.status_code == 201
    prefs = resp.json()["data"]["preferences"]
    assert prefs["prayer_notifications"] is False
    assert prefs["event_notifications"] is True

    resp = client.put(PREFS_URL, json={"social_notifications": False}, headers=auth_headers(bob))
    assert resp.status_code == 200
    prefs = resp.json()["data"]["preferences"]
    assert prefs["prayer_notifications"] is False
    assert prefs["social_notifications"] is False


def test_master_switch_off_turns_categories_off(client, make_user, auth_headers):
    bob = make_user()
    client.get(PREFS_URL, headers=auth_headers(bob))
    resp = client.put(PREFS_URL, json={"notifications_enabled": False}, headers=auth_headers(bob))
    prefs = resp.json()["data"]["preferences"]
    assert not any(
        prefs[k]
        for k in ("notifications_enabled", "event_notifications", "prayer_notifications", "social_notifications")
    )


def test_put_without_fields_is_rejected(client, make_user, auth_headers):
    bob = make_user()
    assert client.put(PREFS_URL, json={}, headers=auth_headers(bob)).status_code == 400


def test_reset_restores_defaults(client, make_user, auth_headers):
    bob = make_user()
    client.put(PREFS_URL, json={"notifications_enabled": False}, headers=auth_headers(bob))
    resp = client.post(f"{PREFS_URL}/reset", headers=auth_headers(bob))
    assert resp.status_code == 200
    prefs = resp.json()["data"]["preferences"]
    assert all(prefs[k] for k in ("notifications_enabled", "event_notifications", "prayer_notifications"))
