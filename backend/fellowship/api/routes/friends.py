"""Friends API: requests (send, accept, reject, cancel), unfriend, lists and status. Mounted under /users."""
from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from fellowship.api.deps import get_current_user, get_user_info_cache
from fellowship.core.constants import (
    FOLLOW_PAGE_MAX_LIMIT,
    FRIEND_REQUESTS_PAGE_DEFAULT_LIMIT,
    FRIENDS_PAGE_DEFAULT_LIMIT,
)
from fellowship.db.session import get_db
from fellowship.models.user import User
from fellowship.services import friendship_service
from fellowship.services.user_info import UserInfoCache

router = APIRouter()


class FriendRequestBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int | None = Field(None, alias="userId")


@router.post("/friends/request", status_code=201)
def send_friend_request(
    body: FriendRequestBody, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    row, created = friendship_service.send_request(db, user, body.user_id)
    data = friendship_service.serialize_friendship(row)
    if not created:
        # They had already asked us; that request is now accepted
        return JSONResponse(
            status_code=200, content={"success": True, "message": "Friend request accepted", "data": data}
        )
    return {"success": True, "message": "Friend request sent successfully", "data": data}


@router.patch("/friends/request/{friendship_id}/accept")
def accept_friend_request(
    friendship_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    row = friendship_service.accept_request(db, user, friendship_id)
    return {
        "success": True,
        "message": "Friend request accepted",
        "data": friendship_service.serialize_friendship(row),
    }


@router.patch("/friends/request/{friendship_id}/reject")
def reject_friend_request(
    friendship_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    row = friendship_service.reject_request(db, user, friendship_id)
    return {
        "success": True,
        "message": "Friend request rejected",
        "data": friendship_service.serialize_friendship(row),
    }


@router.delete("/friends/request/{friendship_id}/cancel")
def cancel_friend_request(
    friendship_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    friendship_service.cancel_request(db, user, friendship_id)
    return {"success": True, "message": "Friend request cancelled"}


@router.delete("/friends/{user_id}")
def remove_friend(
    user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    friendship_service.remove_friend(db, user, user_id)
    return {"success": True, "message": "Friend removed successfully"}


@router.get("/friends")
def list_friends(
    page: int = Query(1, ge=1),
    limit: int = Query(FRIENDS_PAGE_DEFAULT_LIMIT, ge=1, le=FOLLOW_PAGE_MAX_LIMIT),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    return {"success": True, **friendship_service.list_friends(db, cache, user, page, limit)}


@router.get("/friends/requests/pending")
def list_pending_requests(
    page: int = Query(1, ge=1),
    limit: int = Query(FRIEND_REQUESTS_PAGE_DEFAULT_LIMIT, ge=1, le=FOLLOW_PAGE_MAX_LIMIT),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    return {"success": True, **friendship_service.list_pending_requests(db, cache, user, page, limit)}


@router.get("/friends/requests/sent")
def list_sent_requests(
    page: int = Query(1, ge=1),
    limit: int = Query(FRIEND_REQUESTS_PAGE_DEFAULT_LIMIT, ge=1, le=FOLLOW_PAGE_MAX_LIMIT),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    return {"success": True, **friendship_service.list_sent_requests(db, cache, user, page, limit)}


@router.get("/friends/status/{user_id}")
def friendship_status(
    user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    return {"success": True, "data": friendship_service.friendship_status(db, user, user_id)}
