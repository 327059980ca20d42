from fellowship.core.constants import FRIENDSHIP_ACCEPTED
from fellowship.models.friendship import Friendship

FRIENDS_URL = "/API/v1/users/friends"


def _request(client, headers, user_id):
    return client.post(f"{FRIENDS_URL}/request", json={"userId": user_id}, headers=headers)


def test_request_then_accept(client, db, make_user, auth_headers):
    alice, bob = make_user("Alice"), make_user("Bob")
    resp = _request(client, auth_headers(alice), bob.id)
    assert resp.status_code == 201
    friendship_id = resp.json()["data"]["id"]
    assert resp.json()["data"]["status"] == "pending"

    sent = client.get(f"{FRIENDS_URL}/requests/sent", headers=auth_headers(alice)).json()
    assert [r["addressee"]["name"] for r in sent["data"]] == ["Bob"]
    pending = client.get(f"{FRIENDS_URL}/requests/pending", headers=auth_headers(bob)).json()
    assert [r["requester"]["name"] for r in pending["data"]] == ["Alice"]
    assert pending["pagination"]["totalCount"] == 1

    # Only the addressee can answer
    assert client.patch(f"{FRIENDS_URL}/request/{friendship_id}/accept", headers=auth_headers(alice)).status_code == 404
    resp = client.patch(f"{FRIENDS_URL}/request/{friendship_id}/accept", headers=auth_headers(bob))
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == FRIENDSHIP_ACCEPTED

    friends = client.get(FRIENDS_URL, headers=auth_headers(alice)).json()
    assert [f["name"] for f in friends["data"]] == ["Bob"]
    assert friends["pagination"] == {
        "currentPage": 1,
        "totalPages": 1,
        "totalCount": 1,
        "hasNext": False,
        "hasPrev": False,
    }
    status = client.get(f"{FRIENDS_URL}/status/{alice.id}", headers=auth_headers(bob)).json()["data"]
    assert (status["status"], status["isRequester"]) == ("accepted", False)
    assert db.query(Friendship).count() == 1


def test_request_errors(client, make_user, auth_headers):
    alice, bob = make_user(), make_user()
    resp = _request(client, auth_headers(alice), alice.id)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "You cannot send a friend request to yourself"
    assert client.post(f"{FRIENDS_URL}/request", json={}, headers=auth_headers(alice)).status_code == 400
    assert _request(client, auth_headers(alice), 9999).status_code == 404

    assert _request(client, auth_headers(alice), bob.id).status_code == 201
    again = _request(client, auth_headers(alice), bob.id)
    assert again.status_code == 400
    assert again.json()["detail"] == "Friend request already sent"


def test_requesting_back_accepts_the_incoming_request(client, db, make_user, auth_headers):
    alice, bob = make_user(), make_user()
    _request(client, auth_headers(alice), bob.id)
    resp = _request(client, auth_headers(bob), alice.id)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Friend request accepted"
    (row,) = db.query(Friendship).all()
    assert (row.requester_id, row.status) == (alice.id, FRIENDSHIP_ACCEPTED)

    resp = _request(client, auth_headers(alice), bob.id)
    assert resp.json()["detail"] == "You are already friends with this user"


def test_rejected_request_blocks_a_new_one(client, make_user, auth_headers):
    alice, bob = make_user(), make_user()
    friendship_id = _request(client, auth_headers(alice), bob.id).json()["data"]["id"]
    resp = client.patch(f"{FRIENDS_URL}/request/{friendship_id}/reject", headers=auth_headers(bob))
    assert resp.json()["data"]["status"] == "rejected"
    assert _request(client, auth_headers(alice), bob.id).json()["detail"] == "Friend request was rejected"
    # A rejected request is no longer pending, so it cannot be accepted
    assert client.patch(f"{FRIENDS_URL}/request/{friendship_id}/accept", headers=auth_headers(bob)).status_code == 404


def test_cancel_and_unfriend(client, db, make_user, auth_headers):
    alice, bob, carol = make_user(), make_user(), make_user()
    to_bob = _request(client, auth_headers(alice), bob.id).json()["data"]["id"]
    assert client.delete(f"{FRIENDS_URL}/request/{to_bob}/cancel", headers=auth_headers(bob)).status_code == 404
    assert client.delete(f"{FRIENDS_URL}/request/{to_bob}/cancel", headers=auth_headers(alice)).status_code == 200
    assert client.get(f"{FRIENDS_URL}/status/{bob.id}", headers=auth_headers(alice)).json()["data"] == {
        "status": "none"
    }

    to_carol = _request(client, auth_headers(alice), carol.id).json()["data"]["id"]
    client.patch(f"{FRIENDS_URL}/request/{to_carol}/accept", headers=auth_headers(carol))
    assert client.delete(f"/API/v1/users/friends/{alice.id}", headers=auth_headers(carol)).status_code == 200
    assert db.query(Friendship).count() == 0
    resp = client.delete(f"/API/v1/users/friends/{alice.id}", headers=auth_headers(carol))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Friendship not found"


def test_status_of_self(client, make_user, auth_headers):
    alice = make_user()
    assert client.get(f"{FRIENDS_URL}/status/{alice.id}", headers=auth_headers(alice)).json()["data"] == {
        "status": "self"
    }


def test_friends_pagination(client, make_user, auth_headers):
    alice = make_user()
    for other in [make_user() for _ in range(3)]:
        friendship_id = _request(client, auth_headers(other), alice.id).json()["data"]["id"]
        client.patch(f"{FRIENDS_URL}/request/{friendship_id}/accept", headers=auth_headers(alice))

    page = client.get(FRIENDS_URL, params={"page": 2, "limit": 2}, headers=auth_headers(alice)).json()
    assert len(page["data"]) == 1
    assert page["pagination"] == {
        "currentPage": 2,
        "totalPages": 2,
        "totalCount": 3,
        "hasNext": False,
        "hasPrev": True,
    }


def test_friends_requires_auth(client):
    assert client.get(FRIENDS_URL).status_code == 401
