"""
Prayer requests API. Listing and reading are public; everything else needs a signed-in user.

Comment and like hand a notification to the Notifier (runs after the response).
"""
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from fellowship.api.deps import get_current_user, get_user_info_cache
from fellowship.db.session import get_db
from fellowship.models.user import User
from fellowship.services import prayer_request_service as prs
from fellowship.services.notifications import (
    Notifier,
    get_notifier,
    resource_commented_context,
    resource_liked_context,
)
from fellowship.services.user_info import UserInfoCache

router = APIRouter()


class CreatePrayerRequestBody(BaseModel):
    text: str | None = Field(None, max_length=5000)
    title: str | None = Field(None, max_length=256)
    anonymous: bool = False
    photos: list[str] = Field(default_factory=list, max_length=5, description="Public photo URLs")


class CommentBody(BaseModel):
    text: str | None = Field(None, max_length=2000)


@router.post("", status_code=201)
def create_prayer_request(
    body: CreatePrayerRequestBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    row = prs.create_prayer_request(
        db, user, text=body.text, title=body.title, anonymous=body.anonymous, photos=body.photos
    )
    return {"prayerRequest": prs.serialize_prayer_request(row, cache)}


@router.get("")
def list_prayer_requests(
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    """Newest first. Owners are filled in with one batched lookup; anonymous owners are masked."""
    rows = prs.list_prayer_requests(db)
    cache.get_many([r.owner_id for r in rows if not r.anonymous])
    return {"total": len(rows), "prayerRequests": [prs.serialize_prayer_request(r, cache) for r in rows]}


@router.get("/{request_id}")
def get_prayer_request(
    request_id: int,
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    row = prs.get_prayer_request_or_404(db, request_id)
    return {"prayerRequest": {**prs.serialize_prayer_request(row, cache), **prs.prayer_request_counts(db, row.id)}}


@router.delete("/{request_id}")
def delete_prayer_request(
    request_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    prs.delete_prayer_request(db, user, request_id)
    return {"message": "Prayer request deleted successfully"}


# --- Comments ---


@router.post("/{request_id}/comments", status_code=201)
def add_comment(
    request_id: int,
    body: CommentBody,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, Any]:
    row, comment = prs.add_comment(db, user, request_id, body.text)
    notifier.schedule(background_tasks, resource_commented_context(row, comment, user))
    return {"comment": prs.serialize_comment(comment, cache)}


@router.get("/{request_id}/comments")
def list_comments(
    request_id: int,
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    rows = prs.list_comments(db, request_id)
    cache.get_many([r.user_id for r in rows])
    return {"comments": [prs.serialize_comment(r, cache) for r in rows]}


@router.put("/{request_id}/comments/{comment_id}")
def update_comment(
    request_id: int,
    comment_id: int,
    body: CommentBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    comment = prs.update_comment(db, user, request_id, comment_id, body.text)
    return {"comment": prs.serialize_comment(comment, cache)}


@router.delete("/{request_id}/comments/{comment_id}")
def delete_comment(
    request_id: int, comment_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    prs.delete_comment(db, user, request_id, comment_id)
    return {"message": "Comment deleted successfully"}


# --- Likes ---


@router.post("/{request_id}/like", status_code=201)
def like_prayer_request(
    request_id: int,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, Any]:
    row, like = prs.like_prayer_request(db, user, request_id)
    notifier.schedule(background_tasks, resource_liked_context(row, like, user))
    return {"like": {"id": like.id, "prayer_request_id": row.id, "user_id": user.id}}


@router.delete("/{request_id}/like")
def unlike_prayer_request(
    request_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    prs.unlike_prayer_request(db, user, request_id)
    return {"message": "Prayer request unliked successfully"}


@router.get("/{request_id}/likes")
def list_likes(
    request_id: int,
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    rows = prs.list_likes(db, request_id)
    users = cache.get_many([r.user_id for r in rows])
    return {"count": len(rows), "likes": [{"id": r.id, "user": users.get(r.user_id)} for r in rows]}


# --- Comment likes ---


@router.post("/{request_id}/comments/{comment_id}/like", status_code=201)
def like_comment(
    request_id: int, comment_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    like, count = prs.like_comment(db, user, request_id, comment_id)
    return {
        "message": "Comment liked successfully",
        "like": {"id": like.id, "comment_id": like.comment_id, "user_id": user.id},
        "likeCount": count,
    }


@router.delete("/{request_id}/comments/{comment_id}/like")
def unlike_comment(
    request_id: int, comment_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    count = prs.unlike_comment(db, user, request_id, comment_id)
    return {"message": "Comment unliked successfully", "likeCount": count}


@router.get("/{request_id}/comments/{comment_id}/likes")
def list_comment_likes(
    request_id: int,
    comment_id: int,
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    rows = prs.list_comment_likes(db, request_id, comment_id)
    users = cache.get_many([r.user_id for r in rows])
    return {"count": len(rows), "likes": [{"id": r.id, "user": users.get(r.user_id)} for r in rows]}
