from datetime import datetime, timezone

import httpx
from fastapi import BackgroundTasks

from fellowship.db.session import SessionLocal
from fellowship.models.event import Event, EventComment
from fellowship.models.notification_preference import NotificationPreference
from fellowship.models.prayer_request import PrayerRequest, PrayerRequestLike
from fellowship.models.push_token import PushToken
from fellowship.models.user_follower import UserFollower
from fellowship.services.notifications import (
    Notifier,
    event_created_context,
    notify_event_created,
    notify_resource_commented,
    notify_resource_liked,
    send_notification,
)
from fellowship.services.notifications.tokens import disable_token, register_token


def _event(db, owner, title="Bible Study"):
    event = Event(
        owner_id=owner.id,
        title=title,
        description="Weekly",
        location="Hall",
        date=datetime(2026, 5, 1, 18, tzinfo=timezone.utc),
        tags=[],
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def _prayer(db, owner, anonymous=False):
    row = PrayerRequest(owner_id=owner.id, title="Healing", text="Please pray", anonymous=anonymous, photos=[])
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def test_event_created_reaches_opted_in_followers(db, make_user, fake_expo):
    alice, bob, carol = make_user("Alice"), make_user("Bob"), make_user("Carol")
    db.add_all(
        [
            UserFollower(follower_id=bob.id, following_id=alice.id),
            UserFollower(follower_id=carol.id, following_id=alice.id),
            NotificationPreference(user_id=carol.id, event_notifications=False),
        ]
    )
    db.commit()
    register_token(db, bob.id, "ExponentPushToken[bob-phone]")
    register_token(db, bob.id, "ExponentPushToken[bob-tablet]")
    register_token(db, carol.id, "ExponentPushToken[carol]")
    register_token(db, alice.id, "ExponentPushToken[alice]")

    result = notify_event_created(db, _event(db, alice), alice, dispatcher=fake_expo.dispatcher())

    assert (result.candidates, result.recipients, result.tokens, result.sent, result.failed) == (2, 1, 2, 2, 0)
    (batch,) = fake_expo.batches
    assert sorted(m["to"] for m in batch) == ["ExponentPushToken[bob-phone]", "ExponentPushToken[bob-tablet]"]
    assert batch[0]["title"] == "Alice created a new event"
    assert batch[0]["body"] == "Bible Study"


def test_event_created_master_switch_follower_excluded(db, make_user, fake_expo):
    u1, u2, u3, u4 = (make_user(n) for n in ("U1", "U2", "U3", "U4"))
    db.add_all(
        [
            UserFollower(follower_id=u2.id, following_id=u1.id),
            UserFollower(follower_id=u3.id, following_id=u1.id),
            UserFollower(follower_id=u4.id, following_id=u1.id),
            NotificationPreference(user_id=u2.id, event_notifications=True),
            NotificationPreference(user_id=u3.id, event_notifications=True),
            NotificationPreference(user_id=u4.id, notifications_enabled=False),
        ]
    )
    db.commit()
    register_token(db, u2.id, "ExponentPushToken[u2-a]")
    register_token(db, u2.id, "ExponentPushToken[u2-b]")
    register_token(db, u3.id, "ExponentPushToken[u3]")
    register_token(db, u4.id, "ExponentPushToken[u4]")

    result = notify_event_created(db, _event(db, u1), u1, dispatcher=fake_expo.dispatcher())

    assert (result.candidates, result.recipients, result.tokens, result.sent) == (3, 2, 3, 3)
    (batch,) = fake_expo.batches
    assert sorted(m["to"] for m in batch) == [
        "ExponentPushToken[u2-a]",
        "ExponentPushToken[u2-b]",
        "ExponentPushToken[u3]",
    ]


def test_like_on_prayer_request_reaches_owner(db, make_user, fake_expo):
    alice, bob = make_user("Alice"), make_user("Bob")
    register_token(db, alice.id, "ExponentPushToken[alice]")
    prayer = _prayer(db, alice)
    like = PrayerRequestLike(prayer_request_id=prayer.id, user_id=bob.id)
    db.add(like)
    db.commit()

    result = notify_resource_liked(db, prayer, like, bob, dispatcher=fake_expo.dispatcher())

    assert result.sent == 1
    (message,) = fake_expo.batches[0]
    assert message["title"] == "Bob liked your prayer request"
    assert message["data"]["route"] == f"/prayer-request/{prayer.id}"
    assert message["data"]["actionId"] == like.id


def test_self_like_sends_nothing(db, make_user, fake_expo):
    alice = make_user("Alice")
    register_token(db, alice.id, "ExponentPushToken[alice]")
    prayer = _prayer(db, alice)
    like = PrayerRequestLike(prayer_request_id=prayer.id, user_id=alice.id)
    db.add(like)
    db.commit()

    result = notify_resource_liked(db, prayer, like, alice, dispatcher=fake_expo.dispatcher())

    assert result.candidates == 0
    assert fake_expo.batches == []


def test_master_switch_off_sends_nothing(db, make_user, fake_expo):
    alice, bob = make_user("Alice"), make_user("Bob")
    db.add(NotificationPreference(user_id=alice.id, notifications_enabled=False))
    db.commit()
    register_token(db, alice.id, "ExponentPushToken[alice]")
    event = _event(db, alice)
    comment = EventComment(event_id=event.id, user_id=bob.id, text="See you there")
    db.add(comment)
    db.commit()

    result = notify_resource_commented(db, event, comment, bob, dispatcher=fake_expo.dispatcher())

    assert (result.candidates, result.recipients) == (1, 0)
    assert fake_expo.batches == []


def test_unregistered_device_is_disabled(db, make_user, expo_factory):
    alice, bob = make_user("Alice"), make_user("Bob")
    register_token(db, alice.id, "ExponentPushToken[old]")
    register_token(db, alice.id, "ExponentPushToken[new]")
    prayer = _prayer(db, alice)
    like = PrayerRequestLike(prayer_request_id=prayer.id, user_id=bob.id)
    db.add(like)
    db.commit()

    def ticket_for(message):
        if message["to"] == "ExponentPushToken[old]":
            return {"status": "error", "details": {"error": "DeviceNotRegistered"}}
        return {"status": "ok", "id": "t"}

    expo = expo_factory(ticket_for=ticket_for)
    dispatcher = expo.dispatcher(on_device_not_registered=lambda token: disable_token(db, token))
    result = notify_resource_liked(db, prayer, like, bob, dispatcher=dispatcher)

    assert (result.sent, result.failed) == (1, 1)
    db.expire_all()
    old = db.query(PushToken).filter(PushToken.token == "ExponentPushToken[old]").one()
    new = db.query(PushToken).filter(PushToken.token == "ExponentPushToken[new]").one()
    assert old.disabled_at is not None
    assert new.disabled_at is None


def test_gateway_timeouts_end_in_failed_result(db, make_user, expo_factory):
    alice, bob = make_user("Alice"), make_user("Bob")
    for i in range(5):
        register_token(db, alice.id, f"ExponentPushToken[alice-{i}]")
    event = _event(db, alice)
    comment = EventComment(event_id=event.id, user_id=bob.id, text="Count me in")
    db.add(comment)
    db.commit()

    def timeout(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    expo = expo_factory(responses=[timeout, timeout, timeout])
    dispatcher = expo.dispatcher(on_device_not_registered=lambda token: disable_token(db, token), max_attempts=3)
    result = notify_resource_commented(db, event, comment, bob, dispatcher=dispatcher)

    assert len(expo.batches) == 3
    assert all(len(batch) == 5 for batch in expo.batches)
    assert (result.sent, result.failed) == (0, 5)
    assert result.errors[0]["error"] == "NetworkError"
    assert result.error is None
    db.expire_all()
    assert db.query(PushToken).filter(PushToken.disabled_at.isnot(None)).count() == 0


def test_unknown_context_is_caught_at_the_boundary(db):
    result = send_notification(db, object())
    assert result.error is not None
    assert result.sent == 0


def test_notifier_runs_in_background_task_with_own_session(db, make_user, fake_expo):
    alice, bob = make_user("Alice"), make_user("Bob")
    db.add(UserFollower(follower_id=bob.id, following_id=alice.id))
    db.commit()
    register_token(db, bob.id, "ExponentPushToken[bob]")
    context = event_created_context(_event(db, alice), alice)

    sessions = []

    def session_factory():
        session = SessionLocal()
        sessions.append(session)
        return session

    notifier = Notifier(session_factory=session_factory, dispatcher_factory=lambda s: fake_expo.dispatcher())
    tasks = BackgroundTasks()
    notifier.schedule(tasks, context)
    assert fake_expo.batches == []

    (task,) = tasks.tasks
    result = task.func(*task.args, **task.kwargs)

    assert result.sent == 1
    assert len(sessions) == 1
    assert sessions[0] is not db


def test_notifier_swallows_session_failures():
    def broken_factory():
        raise RuntimeError("no database")

    result = Notifier(session_factory=broken_factory).run(object())
    assert result.error == "no database"
