"""
Events: create (one per location per day), list, get, update, delete, attendance,
location search, comments (edit, delete, likes) and likes.

Notification scheduling stays in the routes; these functions only touch the store.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.orm import Session

from fellowship.core.constants import LOCATION_SEARCH_LIMIT
from fellowship.core.errors import bad_request, conflict, forbidden, not_found, unprocessable
from fellowship.models.event import Event, EventAttendee, EventComment, EventCommentLike, EventLike
from fellowship.models.location import Location
from fellowship.models.user import User
from fellowship.services.user_info import UserInfoCache

logger = logging.getLogger(__name__)

MSG_MISSING_DETAILS = "You must provide all required event details"
MSG_SLOT_TAKEN = "An event is already scheduled at this time and location"
MSG_COMMENT_REQUIRED = "Comment text is required"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def get_event_or_404(db: Session, event_id: int) -> Event:
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise not_found("Event")
    return event


def serialize_event(event: Event, cache: UserInfoCache) -> dict[str, Any]:
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "location": event.location,
        "date": _iso(event.date),
        "tags": event.tags or [],
        "owner": cache.get(event.owner_id),
        "created_at": _iso(event.created_at),
    }


def serialize_comment(comment: EventComment, cache: UserInfoCache) -> dict[str, Any]:
    return {
        "id": comment.id,
        "event_id": comment.event_id,
        "text": comment.text,
        "user": cache.get(comment.user_id),
        "created_at": _iso(comment.created_at),
    }


def create_event(
    db: Session,
    owner: User,
    *,
    title: str | None,
    description: str | None,
    location: str | None,
    date: datetime | None,
    tags: list[str] | None = None,
) -> Event:
    title = (title or "").strip()
    description = (description or "").strip()
    location = (location or "").strip()
    if not title or not description or not location or date is None:
        raise unprocessable(MSG_MISSING_DETAILS)
    when = _as_utc(date)
    day_start = when.replace(hour=0, minute=0, second=0, microsecond=0)
    clash = (
        db.query(Event.id)
        .filter(
            Event.location == location,
            Event.date >= day_start,
            Event.date < day_start + timedelta(days=1),
        )
        .first()
    )
    if clash:
        raise conflict(MSG_SLOT_TAKEN)
    event = Event(
        owner_id=owner.id,
        title=title,
        description=description,
        location=location,
        date=when,
        tags=list(tags or []),
    )
    db.add(event)
    db.flush()
    # The owner is the first attendee
    db.add(EventAttendee(event_id=event.id, user_id=owner.id))
    db.commit()
    db.refresh(event)
    logger.info("Event %s created by user %s at %s", event.id, owner.id, location)
    return event


def list_events(db: Session, owner_id: int | None = None) -> list[Event]:
    q = db.query(Event)
    if owner_id is not None:
        q = q.filter(Event.owner_id == owner_id)
    return q.order_by(Event.date.asc(), Event.id.asc()).all()


def event_counts(db: Session, event_id: int) -> dict[str, int]:
    return {
        "likeCount": db.query(EventLike).filter(EventLike.event_id == event_id).count(),
        "commentCount": db.query(EventComment).filter(EventComment.event_id == event_id).count(),
    }


def list_attendee_ids(db: Session, event_id: int) -> list[int]:
    rows = (
        db.query(EventAttendee.user_id)
        .filter(EventAttendee.event_id == event_id)
        .order_by(EventAttendee.created_at.asc(), EventAttendee.id.asc())
        .all()
    )
    return [r.user_id for r in rows]


def serialize_event_detail(db: Session, event: Event, cache: UserInfoCache) -> dict[str, Any]:
    """serialize_event plus attendees (owner first) and like/comment counts."""
    attendee_ids = list_attendee_ids(db, event.id)
    users = cache.get_many(attendee_ids + [event.owner_id])
    return {
        **serialize_event(event, cache),
        "attendees": [users[uid] for uid in attendee_ids if uid in users],
        **event_counts(db, event.id),
    }


def update_event(
    db: Session,
    user: User,
    event_id: int,
    *,
    title: str | None = None,
    description: str | None = None,
    location: str | None = None,
    date: datetime | None = None,
    tags: list[str] | None = None,
) -> Event:
    """Owner only. Blank or missing fields keep their current value."""
    event = get_event_or_404(db, event_id)
    if event.owner_id != user.id:
        raise forbidden("You can only update events you own")
    event.title = (title or "").strip() or event.title
    event.description = (description or "").strip() or event.description
    event.location = (location or "").strip() or event.location
    if date is not None:
        event.date = _as_utc(date)
    if tags is not None:
        event.tags = list(tags)
    db.commit()
    db.refresh(event)
    logger.info("Event %s updated by user %s", event.id, user.id)
    return event


def delete_event(db: Session, user: User, event_id: int) -> None:
    event = get_event_or_404(db, event_id)
    if event.owner_id != user.id:
        raise forbidden("You can only delete events you own")
    db.delete(event)
    db.commit()


# --- Attendance ---


def attend_event(db: Session, user: User, event_id: int) -> Event:
    event = get_event_or_404(db, event_id)
    existing = (
        db.query(EventAttendee.id)
        .filter(EventAttendee.event_id == event.id, EventAttendee.user_id == user.id)
        .first()
    )
    if existing:
        raise unprocessable("You are already attending this event")
    db.add(EventAttendee(event_id=event.id, user_id=user.id))
    db.commit()
    return event


def cancel_attendance(db: Session, user: User, event_id: int) -> Event:
    """Leaving an event you never joined is a no-op. Owners cannot leave."""
    event = get_event_or_404(db, event_id)
    if event.owner_id == user.id:
        raise unprocessable("Event owners cannot cancel their attendance")
    db.query(EventAttendee).filter(
        EventAttendee.event_id == event.id, EventAttendee.user_id == user.id
    ).delete(synchronize_session=False)
    db.commit()
    return event


def list_attending_events(db: Session, user_id: int) -> list[Event]:
    """Events the user has joined but does not host, soonest first."""
    return (
        db.query(Event)
        .join(EventAttendee, EventAttendee.event_id == Event.id)
        .filter(EventAttendee.user_id == user_id, Event.owner_id != user_id)
        .order_by(Event.date.asc(), Event.id.asc())
        .all()
    )


# --- Locations ---


def search_locations(db: Session, query: str | None) -> list[dict[str, Any]]:
    query = (query or "").strip()
    if not query:
        raise bad_request("Search query is required")
    pattern = f"%{query}%"
    rows = (
        db.query(Location)
        .filter(Location.name.ilike(pattern) | Location.address.ilike(pattern) | Location.city.ilike(pattern))
        .order_by(Location.name.asc(), Location.id.asc())
        .limit(LOCATION_SEARCH_LIMIT)
        .all()
    )
    return [
        {
            "id": r.id,
            "name": r.name,
            "subtitle": ", ".join(p for p in (r.city, r.state) if p),
            "address": r.address,
        }
        for r in rows
    ]


# --- Comments ---


def add_comment(db: Session, user: User, event_id: int, text: str | None) -> tuple[Event, EventComment]:
    text = (text or "").strip()
    if not text:
        raise bad_request(MSG_COMMENT_REQUIRED)
    event = get_event_or_404(db, event_id)
    comment = EventComment(event_id=event.id, user_id=user.id, text=text)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return event, comment


def list_comments(db: Session, event_id: int) -> list[EventComment]:
    get_event_or_404(db, event_id)
    return (
        db.query(EventComment)
        .filter(EventComment.event_id == event_id)
        .order_by(EventComment.created_at.asc(), EventComment.id.asc())
        .all()
    )


def get_comment_or_404(db: Session, event_id: int, comment_id: int) -> EventComment:
    comment = (
        db.query(EventComment).filter(EventComment.id == comment_id, EventComment.event_id == event_id).first()
    )
    if not comment:
        raise not_found("Comment")
    return comment


def update_comment(db: Session, user: User, event_id: int, comment_id: int, text: str | None) -> EventComment:
    text = (text or "").strip()
    if not text:
        raise bad_request(MSG_COMMENT_REQUIRED)
    comment = get_comment_or_404(db, event_id, comment_id)
    if comment.user_id != user.id:
        raise forbidden("You can only edit your own comments")
    comment.text = text
    db.commit()
    db.refresh(comment)
    return comment


def delete_comment(db: Session, user: User, event_id: int, comment_id: int) -> None:
    """The comment's author or the event's owner may delete it."""
    comment = get_comment_or_404(db, event_id, comment_id)
    event = get_event_or_404(db, event_id)
    if user.id not in (comment.user_id, event.owner_id):
        raise forbidden("You can only delete your own comments or comments on your events")
    db.query(EventCommentLike).filter(EventCommentLike.comment_id == comment.id).delete(synchronize_session=False)
    db.delete(comment)
    db.commit()


# --- Likes ---


def like_event(db: Session, user: User, event_id: int) -> tuple[Event, EventLike]:
    event = get_event_or_404(db, event_id)
    existing = (
        db.query(EventLike).filter(EventLike.event_id == event.id, EventLike.user_id == user.id).first()
    )
    if existing:
        raise bad_request("You have already liked this event")
    like = EventLike(event_id=event.id, user_id=user.id)
    db.add(like)
    db.commit()
    db.refresh(like)
    return event, like


def unlike_event(db: Session, user: User, event_id: int) -> None:
    get_event_or_404(db, event_id)
    like = db.query(EventLike).filter(EventLike.event_id == event_id, EventLike.user_id == user.id).first()
    if not like:
        raise bad_request("You have not liked this event")
    db.delete(like)
    db.commit()


def list_likes(db: Session, event_id: int) -> list[EventLike]:
    get_event_or_404(db, event_id)
    return (
        db.query(EventLike)
        .filter(EventLike.event_id == event_id)
        .order_by(EventLike.created_at.asc(), EventLike.id.asc())
        .all()
    )


# --- Comment likes ---


def _comment_like_count(db: Session, comment_id: int) -> int:
    return db.query(EventCommentLike).filter(EventCommentLike.comment_id == comment_id).count()


def like_comment(db: Session, user: User, event_id: int, comment_id: int) -> tuple[EventCommentLike, int]:
    comment = get_comment_or_404(db, event_id, comment_id)
    existing = (
        db.query(EventCommentLike.id)
        .filter(EventCommentLike.comment_id == comment.id, EventCommentLike.user_id == user.id)
        .first()
    )
    if existing:
        raise bad_request("You have already liked this comment")
    like = EventCommentLike(comment_id=comment.id, user_id=user.id)
    db.add(like)
    db.commit()
    db.refresh(like)
    return like, _comment_like_count(db, comment.id)


def unlike_comment(db: Session, user: User, event_id: int, comment_id: int) -> int:
    comment = get_comment_or_404(db, event_id, comment_id)
    deleted = (
        db.query(EventCommentLike)
        .filter(EventCommentLike.comment_id == comment.id, EventCommentLike.user_id == user.id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise bad_request("You have not liked this comment")
    db.commit()
    return _comment_like_count(db, comment.id)


def list_comment_likes(db: Session, event_id: int, comment_id: int) -> list[EventCommentLike]:
    comment = get_comment_or_404(db, event_id, comment_id)
    return (
        db.query(EventCommentLike)
        .filter(EventCommentLike.comment_id == comment.id)
        .order_by(EventCommentLike.created_at.asc(), EventCommentLike.id.asc())
        .all()
    )
