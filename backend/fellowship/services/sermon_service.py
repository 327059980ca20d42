"""
Sermon series, sermons and sermon discussions (with comments).

Series and discussions belong to whoever created them. Sermons are published by
leaders and developers; a leader may only change or remove sermons they created.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from fellowship.core.constants import ROLE_LEADER, SERMON_EDITOR_ROLES
from fellowship.core.errors import bad_request, forbidden, not_found
from fellowship.models.sermon import Sermon, SermonDiscussion, SermonDiscussionComment, SermonSeries
from fellowship.models.user import User
from fellowship.services.user_info import UserInfoCache

logger = logging.getLogger(__name__)


def _utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _apply(row, fields: dict[str, Any], nullable: tuple[str, ...] = ()) -> None:
    """Partial update. An explicit null clears a nullable column and is ignored otherwise."""
    for key, value in fields.items():
        if value is None and key not in nullable:
            continue
        setattr(row, key, value)


# ---------------------------------------------------------------------------
# Sermon series
# ---------------------------------------------------------------------------


def get_series_or_404(db: Session, series_id: int) -> SermonSeries:
    row = db.query(SermonSeries).filter(SermonSeries.id == series_id).first()
    if not row:
        raise not_found("Sermon series")
    return row


def _check_series_dates(start: datetime | None, end: datetime | None) -> None:
    if start is not None and end is not None and _utc(end) <= _utc(start):
        raise bad_request("End date must be after start date")


def serialize_series(row: SermonSeries, cache: UserInfoCache) -> dict[str, Any]:
    return {
        "id": row.id,
        "title": row.title,
        "description": row.description,
        "number_of_weeks": row.number_of_weeks,
        "cover_image": row.cover_image,
        "start_date": _iso(row.start_date),
        "end_date": _iso(row.end_date),
        "status": row.status,
        "created_by": cache.get(row.created_by),
        "created_at": _iso(row.created_at),
        "updated_at": _iso(row.updated_at),
    }


def create_series(db: Session, user: User, fields: dict[str, Any]) -> SermonSeries:
    _check_series_dates(fields.get("start_date"), fields.get("end_date"))
    row = SermonSeries(created_by=user.id, **fields)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Sermon series %s created by user %s", row.id, user.id)
    return row


def list_series(
    db: Session,
    *,
    search: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    status: str | None = None,
) -> list[SermonSeries]:
    """Latest start first. search matches title or description."""
    q = db.query(SermonSeries)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(SermonSeries.title.ilike(pattern), SermonSeries.description.ilike(pattern)))
    if start_date is not None:
        q = q.filter(SermonSeries.start_date >= _utc(start_date))
    if end_date is not None:
        q = q.filter(SermonSeries.end_date <= _utc(end_date))
    if status:
        q = q.filter(SermonSeries.status == status)
    return q.order_by(SermonSeries.start_date.desc(), SermonSeries.id.desc()).all()


def update_series(db: Session, user: User, series_id: int, fields: dict[str, Any]) -> SermonSeries:
    row = get_series_or_404(db, series_id)
    if row.created_by != user.id:
        raise forbidden("You are not authorized to update this series")
    _check_series_dates(fields.get("start_date") or row.start_date, fields.get("end_date", row.end_date))
    _apply(row, fields, nullable=("number_of_weeks", "cover_image", "end_date"))
    db.commit()
    db.refresh(row)
    return row


def delete_series(db: Session, user: User, series_id: int) -> None:
    row = get_series_or_404(db, series_id)
    if row.created_by != user.id:
        raise forbidden("You are not authorized to delete this series")
    db.query(Sermon).filter(Sermon.sermon_series_id == row.id).update(
        {Sermon.sermon_series_id: None}, synchronize_session=False
    )
    discussion_ids = [d.id for d in db.query(SermonDiscussion.id).filter(SermonDiscussion.sermon_series_id == row.id)]
    if discussion_ids:
        db.query(SermonDiscussionComment).filter(SermonDiscussionComment.discussion_id.in_(discussion_ids)).delete(
            synchronize_session=False
        )
        db.query(SermonDiscussion).filter(SermonDiscussion.id.in_(discussion_ids)).delete(synchronize_session=False)
    db.delete(row)
    db.commit()
    logger.info("Sermon series %s deleted by user %s", series_id, user.id)


# ---------------------------------------------------------------------------
# Sermons
# ---------------------------------------------------------------------------


def _require_editor(user: User, action: str) -> None:
    if user.role not in SERMON_EDITOR_ROLES:
        raise forbidden(f"You are not authorized to {action} sermons")


def get_sermon_or_404(db: Session, sermon_id: int) -> Sermon:
    row = db.query(Sermon).filter(Sermon.id == sermon_id).first()
    if not row:
        raise not_found("Sermon")
    return row


def _series_summary(db: Session, series_id: int | None) -> dict[str, Any] | None:
    if series_id is None:
        return None
    series = db.query(SermonSeries.id, SermonSeries.title).filter(SermonSeries.id == series_id).first()
    return {"id": series.id, "title": series.title} if series else None


def serialize_sermon(db: Session, row: Sermon, cache: UserInfoCache) -> dict[str, Any]:
    return {
        "id": row.id,
        "title": row.title,
        "sermon_series_id": row.sermon_series_id,
        "sermon_series": _series_summary(db, row.sermon_series_id),
        "speakers": row.speakers or [],
        "summary": row.summary,
        "key_points": row.key_points or [],
        "verses": row.verses or [],
        "created_by": cache.get(row.created_by),
        "created_at": _iso(row.created_at),
        "updated_at": _iso(row.updated_at),
    }


def create_sermon(db: Session, user: User, fields: dict[str, Any]) -> Sermon:
    _require_editor(user, "create")
    if fields.get("sermon_series_id") is not None:
        get_series_or_404(db, fields["sermon_series_id"])
    row = Sermon(created_by=user.id, **fields)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Sermon %s created by user %s (%s)", row.id, user.id, user.role)
    return row


def list_sermons(db: Session, *, series_id: int | None = None, title: str | None = None) -> list[Sermon]:
    q = db.query(Sermon)
    if series_id is not None:
        q = q.filter(Sermon.sermon_series_id == series_id)
    if title:
        q = q.filter(Sermon.title.ilike(f"%{title}%"))
    return q.order_by(Sermon.created_at.desc(), Sermon.id.desc()).all()


def update_sermon(db: Session, user: User, sermon_id: int, fields: dict[str, Any]) -> Sermon:
    _require_editor(user, "update")
    row = get_sermon_or_404(db, sermon_id)
    if user.role == ROLE_LEADER and row.created_by != user.id:
        raise forbidden("Leaders may only update sermons they created")
    if fields.get("sermon_series_id") is not None:
        get_series_or_404(db, fields["sermon_series_id"])
    _apply(row, fields, nullable=("sermon_series_id", "summary"))
    db.commit()
    db.refresh(row)
    return row


def delete_sermon(db: Session, user: User, sermon_id: int) -> None:
    row = get_sermon_or_404(db, sermon_id)
    _require_editor(user, "delete")
    if user.role == ROLE_LEADER and row.created_by != user.id:
        raise forbidden("Leaders may only delete sermons they created")
    db.query(SermonDiscussion).filter(SermonDiscussion.sermon_id == row.id).update(
        {SermonDiscussion.sermon_id: None}, synchronize_session=False
    )
    db.delete(row)
    db.commit()
    logger.info("Sermon %s deleted by user %s", sermon_id, user.id)


# ---------------------------------------------------------------------------
# Discussions
# ---------------------------------------------------------------------------


def get_discussion_or_404(db: Session, discussion_id: int) -> SermonDiscussion:
    row = db.query(SermonDiscussion).filter(SermonDiscussion.id == discussion_id).first()
    if not row:
        raise not_found("Discussion")
    return row


def _check_discussion_refs(db: Session, series_id: int, week_number: int, sermon_id: int | None) -> None:
    """The series must exist and be long enough; a linked sermon must exist."""
    series = db.query(SermonSeries).filter(SermonSeries.id == series_id).first()
    if not series:
        raise bad_request("Sermon series not found")
    if series.number_of_weeks and week_number > series.number_of_weeks:
        raise bad_request(f"Week number cannot exceed the series length of {series.number_of_weeks} weeks")
    if sermon_id is not None and not db.query(Sermon.id).filter(Sermon.id == sermon_id).first():
        raise bad_request("Sermon not found")


def serialize_discussion_comment(row: SermonDiscussionComment, cache: UserInfoCache) -> dict[str, Any]:
    return {
        "id": row.id,
        "discussion_id": row.discussion_id,
        "content": row.content,
        "created_by": cache.get(row.created_by),
        "created_at": _iso(row.created_at),
        "updated_at": _iso(row.updated_at),
    }


def serialize_discussion(db: Session, row: SermonDiscussion, cache: UserInfoCache) -> dict[str, Any]:
    comments = (
        db.query(SermonDiscussionComment)
        .filter(SermonDiscussionComment.discussion_id == row.id)
        .order_by(SermonDiscussionComment.created_at.asc(), SermonDiscussionComment.id.asc())
        .all()
    )
    cache.get_many([row.created_by] + [c.created_by for c in comments])
    sermon = db.query(Sermon).filter(Sermon.id == row.sermon_id).first() if row.sermon_id else None
    return {
        "id": row.id,
        "title": row.title,
        "content": row.content,
        "sermon_series_id": row.sermon_series_id,
        "sermon_series": _series_summary(db, row.sermon_series_id),
        "sermon_id": row.sermon_id,
        "sermon": (
            {"id": sermon.id, "title": sermon.title, "speakers": sermon.speakers or [], "summary": sermon.summary}
            if sermon
            else None
        ),
        "week_number": row.week_number,
        "type": row.type,
        "scripture_references": row.scripture_references or [],
        "discussion_questions": row.discussion_questions or [],
        "discussion_date": _iso(row.discussion_date),
        "created_by": cache.get(row.created_by),
        "comments": [serialize_discussion_comment(c, cache) for c in comments],
        "created_at": _iso(row.created_at),
        "updated_at": _iso(row.updated_at),
    }


def create_discussion(db: Session, user: User, fields: dict[str, Any]) -> SermonDiscussion:
    _check_discussion_refs(db, fields["sermon_series_id"], fields["week_number"], fields.get("sermon_id"))
    row = SermonDiscussion(created_by=user.id, **fields)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def list_discussions(
    db: Session,
    *,
    series_id: int | None = None,
    sermon_id: int | None = None,
    week_number: int | None = None,
) -> list[SermonDiscussion]:
    q = db.query(SermonDiscussion)
    if series_id is not None:
        q = q.filter(SermonDiscussion.sermon_series_id == series_id)
    if sermon_id is not None:
        q = q.filter(SermonDiscussion.sermon_id == sermon_id)
    if week_number is not None:
        q = q.filter(SermonDiscussion.week_number == week_number)
    return q.order_by(SermonDiscussion.created_at.desc(), SermonDiscussion.id.desc()).all()


def update_discussion(db: Session, user: User, discussion_id: int, fields: dict[str, Any]) -> SermonDiscussion:
    row = get_discussion_or_404(db, discussion_id)
    if row.created_by != user.id:
        raise forbidden("You can only edit your own discussions")
    if {"sermon_series_id", "week_number", "sermon_id"} & fields.keys():
        _check_discussion_refs(
            db,
            fields.get("sermon_series_id") or row.sermon_series_id,
            fields.get("week_number") or row.week_number,
            fields.get("sermon_id", row.sermon_id),
        )
    _apply(row, fields, nullable=("sermon_id",))
    db.commit()
    db.refresh(row)
    return row


def delete_discussion(db: Session, user: User, discussion_id: int) -> None:
    row = get_discussion_or_404(db, discussion_id)
    if row.created_by != user.id:
        raise forbidden("You can only delete your own discussions")
    db.query(SermonDiscussionComment).filter(SermonDiscussionComment.discussion_id == row.id).delete(
        synchronize_session=False
    )
    db.delete(row)
    db.commit()


# --- Discussion comments ---


def _get_comment_or_404(db: Session, discussion_id: int, comment_id: int) -> SermonDiscussionComment:
    row = (
        db.query(SermonDiscussionComment)
        .filter(SermonDiscussionComment.id == comment_id, SermonDiscussionComment.discussion_id == discussion_id)
        .first()
    )
    if not row:
        raise not_found("Comment")
    return row


def add_discussion_comment(db: Session, user: User, discussion_id: int, content: str) -> SermonDiscussionComment:
    discussion = get_discussion_or_404(db, discussion_id)
    row = SermonDiscussionComment(discussion_id=discussion.id, content=content, created_by=user.id)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_discussion_comment(
    db: Session, user: User, discussion_id: int, comment_id: int, content: str
) -> SermonDiscussionComment:
    get_discussion_or_404(db, discussion_id)
    row = _get_comment_or_404(db, discussion_id, comment_id)
    if row.created_by != user.id:
        raise forbidden("You can only edit your own comments")
    row.content = content
    db.commit()
    db.refresh(row)
    return row


def delete_discussion_comment(db: Session, user: User, discussion_id: int, comment_id: int) -> None:
    get_discussion_or_404(db, discussion_id)
    row = _get_comment_or_404(db, discussion_id, comment_id)
    if row.created_by != user.id:
        raise forbidden("You can only delete your own comments")
    db.delete(row)
    db.commit()
