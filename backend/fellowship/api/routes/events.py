"""
Events API: create / list / get / update / delete, attendance, location search,
comments (with edit, delete and likes) and likes.

Create, comment and like hand a notification to the Notifier; it runs after the response is sent.
"""
import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from fellowship.api.deps import get_current_user, get_user_info_cache
from fellowship.db.session import get_db
from fellowship.models.user import User
from fellowship.services import event_service
from fellowship.services.notifications import (
    Notifier,
    event_created_context,
    get_notifier,
    resource_commented_context,
    resource_liked_context,
)
from fellowship.services.user_info import UserInfoCache

router = APIRouter()
logger = logging.getLogger(__name__)


class CreateEventBody(BaseModel):
    # Required fields are checked in the service so a missing one gets the event-specific 422 message
    title: str | None = None
    description: str | None = None
    location: str | None = None
    date: datetime | None = None
    tags: list[str] = Field(default_factory=list, max_length=20)


class UpdateEventBody(BaseModel):
    title: str | None = None
    description: str | None = None
    location: str | None = None
    date: datetime | None = None
    tags: list[str] | None = Field(None, max_length=20)


class CommentBody(BaseModel):
    text: str | None = Field(None, max_length=2000)


# --- Events ---


@router.post("/create", status_code=201)
def create_event(
    body: CreateEventBody,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, Any]:
    event = event_service.create_event(
        db,
        user,
        title=body.title,
        description=body.description,
        location=body.location,
        date=body.date,
        tags=body.tags,
    )
    notifier.schedule(background_tasks, event_created_context(event, user))
    return event_service.serialize_event(event, cache)


@router.get("")
def list_events(
    mine: bool = False,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> list[dict[str, Any]]:
    """All events by date; mine=true limits to the caller's own."""
    rows = event_service.list_events(db, owner_id=user.id if mine else None)
    cache.get_many([r.owner_id for r in rows])
    return [event_service.serialize_event(r, cache) for r in rows]


@router.get("/attending")
def list_attending(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> list[dict[str, Any]]:
    """Events the caller has joined but does not host."""
    rows = event_service.list_attending_events(db, user.id)
    cache.get_many([r.owner_id for r in rows])
    return [event_service.serialize_event(r, cache) for r in rows]


@router.get("/locations")
def search_locations(
    query: str | None = Query(None, max_length=100),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[dict[str, Any]]:
    return event_service.search_locations(db, query)


@router.get("/{event_id}")
def get_event(
    event_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    event = event_service.get_event_or_404(db, event_id)
    return event_service.serialize_event_detail(db, event, cache)


@router.put("/{event_id}/update")
def update_event(
    event_id: int,
    body: UpdateEventBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    event = event_service.update_event(
        db,
        user,
        event_id,
        title=body.title,
        description=body.description,
        location=body.location,
        date=body.date,
        tags=body.tags,
    )
    return event_service.serialize_event_detail(db, event, cache)


@router.delete("/{event_id}")
def delete_event(
    event_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    event_service.delete_event(db, user, event_id)
    return {"message": "Event deleted successfully"}


# --- Attendance ---


@router.post("/{event_id}/attend")
def attend_event(
    event_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    event = event_service.attend_event(db, user, event_id)
    return event_service.serialize_event_detail(db, event, cache)


@router.post("/{event_id}/cancel")
def cancel_attendance(
    event_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    event = event_service.cancel_attendance(db, user, event_id)
    return event_service.serialize_event_detail(db, event, cache)


# --- Comments ---


@router.post("/{event_id}/comments", status_code=201)
def add_comment(
    event_id: int,
    body: CommentBody,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, Any]:
    event, comment = event_service.add_comment(db, user, event_id, body.text)
    notifier.schedule(background_tasks, resource_commented_context(event, comment, user))
    return event_service.serialize_comment(comment, cache)


@router.get("/{event_id}/comments")
def list_comments(
    event_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> list[dict[str, Any]]:
    rows = event_service.list_comments(db, event_id)
    cache.get_many([r.user_id for r in rows])
    return [event_service.serialize_comment(r, cache) for r in rows]


@router.put("/{event_id}/comments/{comment_id}")
def update_comment(
    event_id: int,
    comment_id: int,
    body: CommentBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    comment = event_service.update_comment(db, user, event_id, comment_id, body.text)
    return {"comment": event_service.serialize_comment(comment, cache)}


@router.delete("/{event_id}/comments/{comment_id}")
def delete_comment(
    event_id: int, comment_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    event_service.delete_comment(db, user, event_id, comment_id)
    return {"message": "Comment deleted successfully"}


# --- Likes ---


@router.post("/{event_id}/like", status_code=201)
def like_event(
    event_id: int,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, Any]:
    event, like = event_service.like_event(db, user, event_id)
    notifier.schedule(background_tasks, resource_liked_context(event, like, user))
    return {"id": like.id, "event_id": event.id, "user_id": user.id}


@router.delete("/{event_id}/like")
def unlike_event(
    event_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    event_service.unlike_event(db, user, event_id)
    return {"message": "Event unliked successfully"}


@router.get("/{event_id}/likes")
def list_likes(
    event_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    rows = event_service.list_likes(db, event_id)
    users = cache.get_many([r.user_id for r in rows])
    return {"count": len(rows), "likes": [{"id": r.id, "user": users.get(r.user_id)} for r in rows]}


# --- Comment likes ---


@router.post("/{event_id}/comments/{comment_id}/like", status_code=201)
def like_comment(
    event_id: int, comment_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    like, count = event_service.like_comment(db, user, event_id, comment_id)
    return {
        "message": "Comment liked successfully",
        "like": {"id": like.id, "comment_id": like.comment_id, "user_id": user.id},
        "likeCount": count,
    }


@router.delete("/{event_id}/comments/{comment_id}/like")
def unlike_comment(
    event_id: int, comment_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    count = event_service.unlike_comment(db, user, event_id, comment_id)
    return {"message": "Comment unliked successfully", "likeCount": count}


@router.get("/{event_id}/comments/{comment_id}/likes")
def list_comment_likes(
    event_id: int,
    comment_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    rows = event_service.list_comment_likes(db, event_id, comment_id)
    users = cache.get_many([r.user_id for r in rows])
    return {"count": len(rows), "likes": [{"id": r.id, "user": users.get(r.user_id)} for r in rows]}
