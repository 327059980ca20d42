"""
Friend requests and friendships.

A pair of users shares at most one Friendship row, in whichever direction the first
request went. Sending a request to someone who already asked you accepts theirs.
"""
import logging
import math
from typing import Any

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query, Session

from fellowship.core.constants import FRIENDSHIP_ACCEPTED, FRIENDSHIP_PENDING, FRIENDSHIP_REJECTED
from fellowship.core.errors import bad_request, not_found
from fellowship.models.friendship import Friendship
from fellowship.models.user import User
from fellowship.services.user_info import UserInfoCache

logger = logging.getLogger(__name__)


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def serialize_friendship(row: Friendship) -> dict[str, Any]:
    return {
        "id": row.id,
        "requester_id": row.requester_id,
        "addressee_id": row.addressee_id,
        "status": row.status,
        "created_at": _iso(row.created_at),
        "updated_at": _iso(row.updated_at),
    }


def _between(db: Session, a: int, b: int) -> Friendship | None:
    return (
        db.query(Friendship)
        .filter(
            or_(
                and_(Friendship.requester_id == a, Friendship.addressee_id == b),
                and_(Friendship.requester_id == b, Friendship.addressee_id == a),
            )
        )
        .first()
    )


def send_request(db: Session, requester: User, user_id: int | None) -> tuple[Friendship, bool]:
    """Returns (row, created). created is False when an incoming request was accepted instead."""
    if not user_id:
        raise bad_request("User ID is required")
    if user_id == requester.id:
        raise bad_request("You cannot send a friend request to yourself")
    if not db.query(User.id).filter(User.id == user_id).first():
        raise not_found("User")
    existing = _between(db, requester.id, user_id)
    if existing:
        if existing.status == FRIENDSHIP_ACCEPTED:
            raise bad_request("You are already friends with this user")
        if existing.status == FRIENDSHIP_REJECTED:
            raise bad_request("Friend request was rejected")
        if existing.addressee_id != requester.id:
            raise bad_request("Friend request already sent")
        existing.status = FRIENDSHIP_ACCEPTED
        db.commit()
        db.refresh(existing)
        logger.info("User %s accepted friendship %s by requesting back", requester.id, existing.id)
        return existing, False
    row = Friendship(requester_id=requester.id, addressee_id=user_id, status=FRIENDSHIP_PENDING)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row, True


def _pending_for_addressee(db: Session, user: User, friendship_id: int) -> Friendship:
    row = (
        db.query(Friendship)
        .filter(
            Friendship.id == friendship_id,
            Friendship.addressee_id == user.id,
            Friendship.status == FRIENDSHIP_PENDING,
        )
        .first()
    )
    if not row:
        raise not_found("Friend request")
    return row


def accept_request(db: Session, user: User, friendship_id: int) -> Friendship:
    row = _pending_for_addressee(db, user, friendship_id)
    row.status = FRIENDSHIP_ACCEPTED
    db.commit()
    db.refresh(row)
    return row


def reject_request(db: Session, user: User, friendship_id: int) -> Friendship:
    row = _pending_for_addressee(db, user, friendship_id)
    row.status = FRIENDSHIP_REJECTED
    db.commit()
    db.refresh(row)
    return row


def cancel_request(db: Session, user: User, friendship_id: int) -> None:
    row = (
        db.query(Friendship)
        .filter(
            Friendship.id == friendship_id,
            Friendship.requester_id == user.id,
            Friendship.status == FRIENDSHIP_PENDING,
        )
        .first()
    )
    if not row:
        raise not_found("Friend request")
    db.delete(row)
    db.commit()


def remove_friend(db: Session, user: User, user_id: int) -> None:
    row = _between(db, user.id, user_id)
    if not row or row.status != FRIENDSHIP_ACCEPTED:
        raise not_found("Friendship")
    db.delete(row)
    db.commit()


def friendship_status(db: Session, user: User, user_id: int) -> dict[str, Any]:
    if user_id == user.id:
        return {"status": "self"}
    row = _between(db, user.id, user_id)
    if not row:
        return {"status": "none"}
    return {
        "status": row.status,
        "friendshipId": row.id,
        "isRequester": row.requester_id == user.id,
        "createdAt": _iso(row.created_at),
    }


def _pagination(page: int, limit: int, total: int) -> dict[str, Any]:
    return {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if total else 0,
        "totalCount": total,
        "hasNext": page * limit < total,
        "hasPrev": page > 1,
    }


def _page_of(q: Query, page: int, limit: int) -> tuple[list[Friendship], int]:
    total = q.count()
    rows = q.order_by(Friendship.created_at.desc(), Friendship.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return rows, total


def list_friends(db: Session, cache: UserInfoCache, user: User, page: int, limit: int) -> dict[str, Any]:
    q = db.query(Friendship).filter(
        or_(Friendship.requester_id == user.id, Friendship.addressee_id == user.id),
        Friendship.status == FRIENDSHIP_ACCEPTED,
    )
    rows, total = _page_of(q, page, limit)
    friend_ids = [r.addressee_id if r.requester_id == user.id else r.requester_id for r in rows]
    infos = cache.get_many(friend_ids)
    return {
        "data": [infos[fid] for fid in friend_ids if fid in infos],
        "pagination": _pagination(page, limit, total),
    }


def list_pending_requests(db: Session, cache: UserInfoCache, user: User, page: int, limit: int) -> dict[str, Any]:
    """Requests waiting on this user, each with the requester's info."""
    q = db.query(Friendship).filter(Friendship.addressee_id == user.id, Friendship.status == FRIENDSHIP_PENDING)
    rows, total = _page_of(q, page, limit)
    infos = cache.get_many([r.requester_id for r in rows])
    return {
        "data": [{**serialize_friendship(r), "requester": infos.get(r.requester_id)} for r in rows],
        "pagination": _pagination(page, limit, total),
    }


def list_sent_requests(db: Session, cache: UserInfoCache, user: User, page: int, limit: int) -> dict[str, Any]:
    q = db.query(Friendship).filter(Friendship.requester_id == user.id, Friendship.status == FRIENDSHIP_PENDING)
    rows, total = _page_of(q, page, limit)
    infos = cache.get_many([r.addressee_id for r in rows])
    return {
        "data": [{**serialize_friendship(r), "addressee": infos.get(r.addressee_id)} for r in rows],
        "pagination": _pagination(page, limit, total),
    }
