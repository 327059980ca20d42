"""
Notification preferences API: master switch plus event / prayer / social categories.

Rows are created lazily with everything on; turning the master switch off turns every category off.
"""
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from fellowship.api.deps import get_current_user
from fellowship.core.errors import bad_request
from fellowship.db.session import get_db
from fellowship.models.user import User
from fellowship.services.preference_service import (
    get_or_create_preferences,
    reset_preferences,
    serialize,
    update_preferences,
)

router = APIRouter()


def _envelope(pref) -> dict[str, Any]:
    return {"status": "success", "data": {"preferences": serialize(pref)}}


class UpdatePreferencesBody(BaseModel):
    notifications_enabled: bool | None = None
    event_notifications: bool | None = None
    prayer_notifications: bool | None = None
    social_notifications: bool | None = None


@router.get("/preferences")
def get_preferences(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> dict[str, Any]:
    return _envelope(get_or_create_preferences(db, user.id))


@router.put("/preferences")
def put_preferences(
    body: UpdatePreferencesBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Partial update; only the fields sent are changed. 201 when this created the user's row."""
    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise bad_request("No preference fields provided")
    row, created = update_preferences(db, user.id, updates)
    if created:
        return JSONResponse(status_code=201, content=_envelope(row))
    return _envelope(row)


@router.post("/preferences/reset")
def post_reset_preferences(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> dict[str, Any]:
    return _envelope(reset_preferences(db, user.id))
