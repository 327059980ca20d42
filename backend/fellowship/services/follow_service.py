"""
Follow graph: follow / unfollow, status, counts, paginated follower and following lists.
"""
from typing import Any

from sqlalchemy.orm import Session

from fellowship.core.errors import bad_request, not_found
from fellowship.models.user import User
from fellowship.models.user_follower import UserFollower
from fellowship.services.user_info import UserInfoCache


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise not_found("User")
    return user


def _summary(user: User) -> dict[str, Any]:
    return {"id": user.id, "name": user.full_name, "username": user.username}


def _find_follow(db: Session, follower_id: int, following_id: int) -> UserFollower | None:
    return (
        db.query(UserFollower)
        .filter(UserFollower.follower_id == follower_id, UserFollower.following_id == following_id)
        .first()
    )


def follow_user(db: Session, follower: User, following_id: int) -> dict[str, Any]:
    if follower.id == following_id:
        raise bad_request("You cannot follow yourself")
    target = _get_user_or_404(db, following_id)
    if _find_follow(db, follower.id, following_id):
        raise bad_request("You are already following this user")
    row = UserFollower(follower_id=follower.id, following_id=following_id)
    db.add(row)
    db.commit()
    db.refresh(row)
    return {
        "message": f"You are now following {target.full_name}",
        "follow": {
            "id": row.id,
            "following": _summary(target),
            "created_at": row.created_at.isoformat() if row.created_at else None,
        },
    }


def unfollow_user(db: Session, follower: User, following_id: int) -> None:
    row = _find_follow(db, follower.id, following_id)
    if not row:
        raise bad_request("You are not following this user")
    db.delete(row)
    db.commit()


def follow_status(db: Session, follower: User, following_id: int) -> dict[str, Any]:
    if follower.id == following_id:
        return {"is_following": False, "is_self": True}
    row = _find_follow(db, follower.id, following_id)
    return {
        "is_following": row is not None,
        "is_self": False,
        "followed_at": row.created_at.isoformat() if row and row.created_at else None,
    }


def follow_stats(db: Session, user_id: int) -> dict[str, Any]:
    user = _get_user_or_404(db, user_id)
    followers = db.query(UserFollower).filter(UserFollower.following_id == user_id).count()
    following = db.query(UserFollower).filter(UserFollower.follower_id == user_id).count()
    return {"user": _summary(user), "stats": {"followers": followers, "following": following}}


def _page(
    db: Session,
    cache: UserInfoCache,
    user_id: int,
    *,
    followers: bool,
    page: int,
    limit: int,
) -> dict[str, Any]:
    """followers=True lists who follows user_id; False lists whom user_id follows."""
    user = _get_user_or_404(db, user_id)
    if followers:
        base = db.query(UserFollower).filter(UserFollower.following_id == user_id)
    else:
        base = db.query(UserFollower).filter(UserFollower.follower_id == user_id)
    total = base.count()
    rows = (
        base.order_by(UserFollower.created_at.desc(), UserFollower.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    other_ids = [r.follower_id if followers else r.following_id for r in rows]
    infos = cache.get_many(other_ids)
    items = [
        {
            "id": r.id,
            "user": infos.get(other_id),
            "followed_at": r.created_at.isoformat() if r.created_at else None,
        }
        for r, other_id in zip(rows, other_ids)
    ]
    return {
        "user": _summary(user),
        "followers" if followers else "following": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "hasNext": page * limit < total,
            "hasPrev": page > 1,
        },
    }


def list_followers(db: Session, cache: UserInfoCache, user_id: int, page: int, limit: int) -> dict[str, Any]:
    return _page(db, cache, user_id, followers=True, page=page, limit=limit)


def list_following(db: Session, cache: UserInfoCache, user_id: int, page: int, limit: int) -> dict[str, Any]:
    return _page(db, cache, user_id, followers=False, page=page, limit=limit)
