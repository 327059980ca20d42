"""Follow graph API. Followers of a user are the audience for that user's new events."""
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fellowship.api.deps import get_current_user, get_user_info_cache
from fellowship.core.constants import FOLLOW_PAGE_DEFAULT_LIMIT, FOLLOW_PAGE_MAX_LIMIT
from fellowship.db.session import get_db
from fellowship.models.user import User
from fellowship.services import follow_service
from fellowship.services.user_info import UserInfoCache

router = APIRouter()


@router.post("/{user_id}/follow", status_code=201)
def follow(user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> dict[str, Any]:
    return {"success": True, "data": follow_service.follow_user(db, user, user_id)}


@router.delete("/{user_id}/follow")
def unfollow(user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> dict[str, Any]:
    follow_service.unfollow_user(db, user, user_id)
    return {"success": True, "message": "Successfully unfollowed user"}


@router.get("/{user_id}/follow/status")
def follow_status(
    user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    return {"success": True, "data": follow_service.follow_status(db, user, user_id)}


@router.get("/{user_id}/follow/stats")
def follow_stats(
    user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    return {"success": True, "data": follow_service.follow_stats(db, user_id)}


@router.get("/{user_id}/followers")
def followers(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(FOLLOW_PAGE_DEFAULT_LIMIT, ge=1, le=FOLLOW_PAGE_MAX_LIMIT),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    return {"success": True, "data": follow_service.list_followers(db, cache, user_id, page, limit)}


@router.get("/{user_id}/following")
def following(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(FOLLOW_PAGE_DEFAULT_LIMIT, ge=1, le=FOLLOW_PAGE_MAX_LIMIT),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    return {"success": True, "data": follow_service.list_following(db, cache, user_id, page, limit)}
