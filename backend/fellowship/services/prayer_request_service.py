"""
Prayer requests: create, list, get with counts, delete, comments (edit, delete, likes), likes.

Anonymous requests keep owner_id for ownership checks and notifications but
show a masked owner in every response.
"""
import logging
from typing import Any

from sqlalchemy.orm import Session

from fellowship.core.errors import bad_request, forbidden, not_found
from fellowship.models.prayer_request import (
    PrayerRequest,
    PrayerRequestComment,
    PrayerRequestCommentLike,
    PrayerRequestLike,
)
from fellowship.models.user import User
from fellowship.services.user_info import UserInfoCache

logger = logging.getLogger(__name__)

MSG_COMMENT_REQUIRED = "Comment text is required"


def default_title(user: User) -> str:
    return f"Pray for {user.full_name}"


def get_prayer_request_or_404(db: Session, request_id: int) -> PrayerRequest:
    row = db.query(PrayerRequest).filter(PrayerRequest.id == request_id).first()
    if not row:
        raise not_found("Prayer request")
    return row


def serialize_prayer_request(row: PrayerRequest, cache: UserInfoCache) -> dict[str, Any]:
    return {
        "id": row.id,
        "title": row.title,
        "text": row.text,
        "anonymous": bool(row.anonymous),
        "photos": row.photos or [],
        "owner": cache.owner_for(row.owner_id, anonymous=bool(row.anonymous)),
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }


def serialize_comment(comment: PrayerRequestComment, cache: UserInfoCache) -> dict[str, Any]:
    return {
        "id": comment.id,
        "prayer_request_id": comment.prayer_request_id,
        "text": comment.text,
        "user": cache.get(comment.user_id),
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
    }


def create_prayer_request(
    db: Session,
    owner: User,
    *,
    text: str | None,
    title: str | None = None,
    anonymous: bool = False,
    photos: list[str] | None = None,
) -> PrayerRequest:
    text = (text or "").strip()
    if not text:
        raise bad_request("Prayer request text is required.")
    row = PrayerRequest(
        owner_id=owner.id,
        title=(title or "").strip() or default_title(owner),
        text=text,
        anonymous=anonymous,
        photos=list(photos or []),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Prayer request %s created by user %s (anonymous=%s)", row.id, owner.id, anonymous)
    return row


def list_prayer_requests(db: Session) -> list[PrayerRequest]:
    return db.query(PrayerRequest).order_by(PrayerRequest.created_at.desc(), PrayerRequest.id.desc()).all()


def prayer_request_counts(db: Session, request_id: int) -> dict[str, int]:
    return {
        "likeCount": db.query(PrayerRequestLike).filter(PrayerRequestLike.prayer_request_id == request_id).count(),
        "commentCount": db.query(PrayerRequestComment)
        .filter(PrayerRequestComment.prayer_request_id == request_id)
        .count(),
    }


def delete_prayer_request(db: Session, user: User, request_id: int) -> None:
    row = get_prayer_request_or_404(db, request_id)
    if row.owner_id != user.id:
        raise forbidden("You can only delete your own prayer requests")
    db.delete(row)
    db.commit()


# --- Comments ---


def add_comment(
    db: Session, user: User, request_id: int, text: str | None
) -> tuple[PrayerRequest, PrayerRequestComment]:
    text = (text or "").strip()
    if not text:
        raise bad_request(MSG_COMMENT_REQUIRED)
    row = get_prayer_request_or_404(db, request_id)
    comment = PrayerRequestComment(prayer_request_id=row.id, user_id=user.id, text=text)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return row, comment


def list_comments(db: Session, request_id: int) -> list[PrayerRequestComment]:
    get_prayer_request_or_404(db, request_id)
    return (
        db.query(PrayerRequestComment)
        .filter(PrayerRequestComment.prayer_request_id == request_id)
        .order_by(PrayerRequestComment.created_at.asc(), PrayerRequestComment.id.asc())
        .all()
    )


def get_comment_or_404(db: Session, request_id: int, comment_id: int) -> PrayerRequestComment:
    comment = (
        db.query(PrayerRequestComment)
        .filter(PrayerRequestComment.id == comment_id, PrayerRequestComment.prayer_request_id == request_id)
        .first()
    )
    if not comment:
        raise not_found("Comment")
    return comment


def update_comment(
    db: Session, user: User, request_id: int, comment_id: int, text: str | None
) -> PrayerRequestComment:
    text = (text or "").strip()
    if not text:
        raise bad_request(MSG_COMMENT_REQUIRED)
    comment = get_comment_or_404(db, request_id, comment_id)
    if comment.user_id != user.id:
        raise forbidden("You can only edit your own comments")
    comment.text = text
    db.commit()
    db.refresh(comment)
    return comment


def delete_comment(db: Session, user: User, request_id: int, comment_id: int) -> None:
    """The comment's author or the prayer request's owner may delete it."""
    comment = get_comment_or_404(db, request_id, comment_id)
    row = get_prayer_request_or_404(db, request_id)
    if user.id not in (comment.user_id, row.owner_id):
        raise forbidden("You can only delete your own comments or comments on your prayer requests")
    db.query(PrayerRequestCommentLike).filter(PrayerRequestCommentLike.comment_id == comment.id).delete(
        synchronize_session=False
    )
    db.delete(comment)
    db.commit()


# --- Likes ---


def _find_like(db: Session, request_id: int, user_id: int) -> PrayerRequestLike | None:
    return (
        db.query(PrayerRequestLike)
        .filter(PrayerRequestLike.prayer_request_id == request_id, PrayerRequestLike.user_id == user_id)
        .first()
    )


def like_prayer_request(db: Session, user: User, request_id: int) -> tuple[PrayerRequest, PrayerRequestLike]:
    row = get_prayer_request_or_404(db, request_id)
    if _find_like(db, row.id, user.id):
        raise bad_request("You have already liked this prayer request")
    like = PrayerRequestLike(prayer_request_id=row.id, user_id=user.id)
    db.add(like)
    db.commit()
    db.refresh(like)
    return row, like


def unlike_prayer_request(db: Session, user: User, request_id: int) -> None:
    get_prayer_request_or_404(db, request_id)
    like = _find_like(db, request_id, user.id)
    if not like:
        raise bad_request("You have not liked this prayer request")
    db.delete(like)
    db.commit()


def list_likes(db: Session, request_id: int) -> list[PrayerRequestLike]:
    get_prayer_request_or_404(db, request_id)
    return (
        db.query(PrayerRequestLike)
        .filter(PrayerRequestLike.prayer_request_id == request_id)
        .order_by(PrayerRequestLike.created_at.asc(), PrayerRequestLike.id.asc())
        .all()
    )


# --- Comment likes ---


def _comment_like_count(db: Session, comment_id: int) -> int:
    return db.query(PrayerRequestCommentLike).filter(PrayerRequestCommentLike.comment_id == comment_id).count()


def like_comment(
    db: Session, user: User, request_id: int, comment_id: int
) -> tuple[PrayerRequestCommentLike, int]:
    comment = get_comment_or_404(db, request_id, comment_id)
    existing = (
        db.query(PrayerRequestCommentLike.id)
        .filter(PrayerRequestCommentLike.comment_id == comment.id, PrayerRequestCommentLike.user_id == user.id)
        .first()
    )
    if existing:
        raise bad_request("You have already liked this comment")
    like = PrayerRequestCommentLike(comment_id=comment.id, user_id=user.id)
    db.add(like)
    db.commit()
    db.refresh(like)
    return like, _comment_like_count(db, comment.id)


def unlike_comment(db: Session, user: User, request_id: int, comment_id: int) -> int:
    comment = get_comment_or_404(db, request_id, comment_id)
    deleted = (
        db.query(PrayerRequestCommentLike)
        .filter(PrayerRequestCommentLike.comment_id == comment.id, PrayerRequestCommentLike.user_id == user.id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise bad_request("You have not liked this comment")
    db.commit()
    return _comment_like_count(db, comment.id)


def list_comment_likes(db: Session, request_id: int, comment_id: int) -> list[PrayerRequestCommentLike]:
    comment = get_comment_or_404(db, request_id, comment_id)
    return (
        db.query(PrayerRequestCommentLike)
        .filter(PrayerRequestCommentLike.comment_id == comment.id)
        .order_by(PrayerRequestCommentLike.created_at.asc(), PrayerRequestCommentLike.id.asc())
        .all()
    )
