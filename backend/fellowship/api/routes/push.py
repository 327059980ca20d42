"""Push notification registration: Expo device tokens per signed-in user."""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from fellowship.api.deps import get_current_user
from fellowship.core.errors import bad_request
from fellowship.db.session import get_db
from fellowship.models.user import User
from fellowship.services.notifications.tokens import is_expo_push_token, register_token

router = APIRouter()
logger = logging.getLogger(__name__)


class RegisterPushBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    expo_push_token: str | None = Field(None, alias="expoPushToken", max_length=256)
    platform: str | None = Field(None, pattern="^(ios|android|web)$")
    device_id: str | None = Field(None, alias="deviceId", max_length=128)


@router.post("/push-token")
def register_push_token(
    body: RegisterPushBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Register the device's Expo push token for the signed-in user.
    Idempotent: same token is upserted and re-activated if Expo had rejected it before.
    """
    token = (body.expo_push_token or "").strip()
    if not token:
        raise bad_request("expoPushToken is required")
    if not is_expo_push_token(token):
        raise bad_request("Invalid Expo push token format")
    row = register_token(db, user.id, token, platform=body.platform, device_id=body.device_id)
    logger.info("Registered push token for user=%s platform=%s", user.id, body.platform)
    return {
        "success": True,
        "data": {
            "id": row.id,
            "platform": row.platform,
            "deviceId": row.device_id,
            "lastSeenAt": row.last_seen_at.isoformat() if row.last_seen_at else None,
        },
    }
