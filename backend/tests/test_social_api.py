from fellowship.models.user_follower import UserFollower
from fellowship.services.notifications import NotificationKind, ResourceType

EVENTS_URL = "/API/v1/events"
PRAYER_URL = "/API/v1/prayer-requests"


def _create_event(client, headers, **overrides):
    body = {
        "title": "Bible Study",
        "description": "Weekly study",
        "location": "Fellowship Hall",
        "date": "2026-05-01T18:00:00Z",
        "tags": ["study"],
    }
    body.update(overrides)
    return client.post(f"{EVENTS_URL}/create", json=body, headers=headers)


# --- Follows ---


def test_follow_flow(client, db, make_user, auth_headers):
    alice, bob = make_user("Alice"), make_user("Bob")
    resp = client.post(f"/API/v1/users/{alice.id}/follow", headers=auth_headers(bob))
    assert resp.status_code == 201
    assert resp.json()["data"]["message"] == "You are now following Alice"
    assert db.query(UserFollower).count() == 1

    status = client.get(f"/API/v1/users/{alice.id}/follow/status", headers=auth_headers(bob)).json()["data"]
    assert status["is_following"] is True

    stats = client.get(f"/API/v1/users/{alice.id}/follow/stats", headers=auth_headers(bob)).json()["data"]
    assert stats["stats"] == {"followers": 1, "following": 0}

    followers = client.get(f"/API/v1/users/{alice.id}/followers", headers=auth_headers(bob)).json()["data"]
    assert [f["user"]["id"] for f in followers["followers"]] == [bob.id]
    assert followers["pagination"]["hasNext"] is False

    following = client.get(f"/API/v1/users/{bob.id}/following", headers=auth_headers(bob)).json()["data"]
    assert [f["user"]["name"] for f in following["following"]] == ["Alice"]

    assert client.delete(f"/API/v1/users/{alice.id}/follow", headers=auth_headers(bob)).status_code == 200
    assert db.query(UserFollower).count() == 0


def test_follow_errors(client, make_user, auth_headers):
    alice, bob = make_user(), make_user()
    assert client.post(f"/API/v1/users/{bob.id}/follow", headers=auth_headers(bob)).status_code == 400
    assert client.post("/API/v1/users/9999/follow", headers=auth_headers(bob)).status_code == 404
    client.post(f"/API/v1/users/{alice.id}/follow", headers=auth_headers(bob))
    assert client.post(f"/API/v1/users/{alice.id}/follow", headers=auth_headers(bob)).status_code == 400
    assert client.delete(f"/API/v1/users/{bob.id}/follow", headers=auth_headers(alice)).status_code == 400


def test_followers_pagination(client, make_user, auth_headers):
    alice = make_user()
    fans = [make_user() for _ in range(3)]
    for fan in fans:
        client.post(f"/API/v1/users/{alice.id}/follow", headers=auth_headers(fan))
    data = client.get(
        f"/API/v1/users/{alice.id}/followers", params={"page": 1, "limit": 2}, headers=auth_headers(alice)
    ).json()["data"]
    assert len(data["followers"]) == 2
    assert data["pagination"] == {"page": 1, "limit": 2, "total": 3, "hasNext": True, "hasPrev": False}


# --- Events ---


def test_create_event_schedules_notification(client, notifier, make_user, auth_headers):
    alice = make_user("Alice")
    resp = _create_event(client, auth_headers(alice))
    assert resp.status_code == 201
    body = resp.json()
    assert body["title"] == "Bible Study"
    assert body["owner"]["name"] == "Alice"
    (ctx,) = notifier.contexts
    assert ctx.kind is NotificationKind.EVENT_CREATED
    assert ctx.actor.id == alice.id
    assert ctx.resource.id == body["id"]
    assert ctx.resource.kind is ResourceType.EVENT


def test_create_event_validation(client, notifier, make_user, auth_headers):
    alice = make_user()
    resp = _create_event(client, auth_headers(alice), location=None)
    assert resp.status_code == 422
    assert resp.json()["detail"] == "You must provide all required event details"
    assert _create_event(client, auth_headers(alice)).status_code == 201
    clash = _create_event(client, auth_headers(alice), date="2026-05-01T09:00:00Z", title="Breakfast")
    assert clash.status_code == 409
    assert _create_event(client, auth_headers(alice), date="2026-05-02T09:00:00Z").status_code == 201
    assert len(notifier.contexts) == 2


def test_event_comments_and_likes(client, notifier, make_user, auth_headers):
    alice, bob = make_user("Alice"), make_user("Bob")
    event_id = _create_event(client, auth_headers(alice)).json()["id"]
    notifier.contexts.clear()

    resp = client.post(f"{EVENTS_URL}/{event_id}/comments", json={"text": "See you there"}, headers=auth_headers(bob))
    assert resp.status_code == 201
    assert resp.json()["user"]["name"] == "Bob"
    assert client.post(f"{EVENTS_URL}/{event_id}/comments", json={"text": "  "}, headers=auth_headers(bob)).status_code == 400
    assert client.post(f"{EVENTS_URL}/9999/comments", json={"text": "hi"}, headers=auth_headers(bob)).status_code == 404

    assert client.post(f"{EVENTS_URL}/{event_id}/like", headers=auth_headers(bob)).status_code == 201
    assert client.post(f"{EVENTS_URL}/{event_id}/like", headers=auth_headers(bob)).status_code == 400

    kinds = [c.kind for c in notifier.contexts]
    assert kinds == [NotificationKind.RESOURCE_COMMENTED, NotificationKind.RESOURCE_LIKED]
    assert notifier.contexts[0].action.text == "See you there"

    detail = client.get(f"{EVENTS_URL}/{event_id}", headers=auth_headers(bob)).json()
    assert (detail["likeCount"], detail["commentCount"]) == (1, 1)
    likes = client.get(f"{EVENTS_URL}/{event_id}/likes", headers=auth_headers(alice)).json()
    assert likes["count"] == 1
    assert client.delete(f"{EVENTS_URL}/{event_id}/like", headers=auth_headers(bob)).status_code == 200
    assert client.delete(f"{EVENTS_URL}/{event_id}/like", headers=auth_headers(bob)).status_code == 400


def test_only_owner_deletes_event(client, make_user, auth_headers):
    alice, bob = make_user(), make_user()
    event_id = _create_event(client, auth_headers(alice)).json()["id"]
    assert client.delete(f"{EVENTS_URL}/{event_id}", headers=auth_headers(bob)).status_code == 403
    assert client.delete(f"{EVENTS_URL}/{event_id}", headers=auth_headers(alice)).status_code == 200
    assert client.get(f"{EVENTS_URL}/{event_id}", headers=auth_headers(alice)).status_code == 404


def test_list_events_mine(client, make_user, auth_headers):
    alice, bob = make_user(), make_user()
    _create_event(client, auth_headers(alice))
    _create_event(client, auth_headers(bob), location="Park")
    assert len(client.get(EVENTS_URL, headers=auth_headers(alice)).json()) == 2
    mine = client.get(EVENTS_URL, params={"mine": "true"}, headers=auth_headers(alice)).json()
    assert [e["owner"]["id"] for e in mine] == [alice.id]


# --- Prayer requests ---


def test_prayer_request_default_title_and_anonymous_owner(client, make_user, auth_headers):
    alice = make_user("Alice Smith")
    resp = client.post(PRAYER_URL, json={"text": "Please pray for my family"}, headers=auth_headers(alice))
    assert resp.status_code == 201
    assert resp.json()["prayerRequest"]["title"] == "Pray for Alice Smith"

    client.post(PRAYER_URL, json={"text": "Quiet request", "anonymous": True}, headers=auth_headers(alice))
    listing = client.get(PRAYER_URL).json()
    assert listing["total"] == 2
    owners = {p["text"]: p["owner"] for p in listing["prayerRequests"]}
    assert owners["Quiet request"]["name"] == "Anonymous"
    assert owners["Please pray for my family"]["name"] == "Alice Smith"


def test_prayer_request_requires_text(client, make_user, auth_headers):
    alice = make_user()
    assert client.post(PRAYER_URL, json={"text": "   "}, headers=auth_headers(alice)).status_code == 400
    assert client.post(PRAYER_URL, json={"text": "hi"}).status_code == 401


def test_prayer_request_like_and_comment_schedule_notifications(client, notifier, make_user, auth_headers):
    alice, bob = make_user("Alice"), make_user("Bob")
    pr_id = client.post(
        PRAYER_URL, json={"text": "Healing", "anonymous": True}, headers=auth_headers(alice)
    ).json()["prayerRequest"]["id"]

    assert client.post(f"{PRAYER_URL}/{pr_id}/like", headers=auth_headers(bob)).status_code == 201
    assert client.post(f"{PRAYER_URL}/{pr_id}/like", headers=auth_headers(bob)).status_code == 400
    resp = client.post(f"{PRAYER_URL}/{pr_id}/comments", json={"text": "Praying"}, headers=auth_headers(bob))
    assert resp.status_code == 201

    liked, commented = notifier.contexts
    assert liked.kind is NotificationKind.RESOURCE_LIKED
    assert liked.resource.owner_id == alice.id
    assert liked.resource.is_anonymous is True
    assert liked.resource.kind is ResourceType.PRAYER_REQUEST
    assert commented.action.text == "Praying"

    detail = client.get(f"{PRAYER_URL}/{pr_id}").json()["prayerRequest"]
    assert (detail["likeCount"], detail["commentCount"]) == (1, 1)
    assert detail["owner"]["name"] == "Anonymous"


def test_only_owner_deletes_prayer_request(client, make_user, auth_headers):
    alice, bob = make_user(), make_user()
    pr_id = client.post(PRAYER_URL, json={"text": "x"}, headers=auth_headers(alice)).json()["prayerRequest"]["id"]
    assert client.delete(f"{PRAYER_URL}/{pr_id}", headers=auth_headers(bob)).status_code == 403
    assert client.delete(f"{PRAYER_URL}/{pr_id}", headers=auth_headers(alice)).status_code == 200
    assert client.get(f"{PRAYER_URL}/{pr_id}").status_code == 404


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
