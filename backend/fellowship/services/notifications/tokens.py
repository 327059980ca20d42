"""
Push token store: registration (upsert by token), lookup of active tokens, and soft-disable.

A token row moves active -> disabled only when Expo reports DeviceNotRegistered.
Registering the same literal token again re-activates it.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fellowship.core.constants import EXPO_TOKEN_PREFIXES
from fellowship.models.push_token import PushToken
from fellowship.services.notifications.types import TokenTarget

logger = logging.getLogger(__name__)


def is_expo_push_token(token: object) -> bool:
    return isinstance(token, str) and token.startswith(EXPO_TOKEN_PREFIXES)


def _token_preview(token: str) -> str:
    return f"{token[:24]}..." if len(token) > 24 else token


def register_token(
    db: Session,
    user_id: int,
    token: str,
    platform: str | None = None,
    device_id: str | None = None,
) -> PushToken:
    """Upsert keyed by token: same device never creates a duplicate row; re-registration clears disabled_at."""
    now = datetime.now(timezone.utc)
    row = db.query(PushToken).filter(PushToken.token == token).first()
    if row:
        if row.user_id != user_id:
            logger.info("Push token %s moved from user %s to user %s", _token_preview(token), row.user_id, user_id)
        row.user_id = user_id
        row.platform = platform
        row.device_id = device_id
        row.last_seen_at = now
        row.disabled_at = None
    else:
        row = PushToken(
            user_id=user_id,
            token=token,
            platform=platform,
            device_id=device_id,
            last_seen_at=now,
            disabled_at=None,
        )
        db.add(row)
    db.commit()
    db.refresh(row)
    return row


def resolve_tokens(db: Session, user_ids: set[int]) -> list[TokenTarget]:
    """
    Active tokens for the given users in one query, deduplicated by token value
    (a device re-registered under another account must not get the push twice).
    """
    if not user_ids:
        return []
    try:
        rows = (
            db.query(PushToken.user_id, PushToken.token, PushToken.platform)
            .filter(PushToken.user_id.in_(user_ids), PushToken.disabled_at.is_(None))
            .order_by(PushToken.id.asc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.warning("Push token lookup failed for %s users: %s", len(user_ids), e, exc_info=True)
        db.rollback()
        return []
    seen: set[str] = set()
    out: list[TokenTarget] = []
    for r in rows:
        if not is_expo_push_token(r.token) or r.token in seen:
            continue
        seen.add(r.token)
        out.append(TokenTarget(user_id=r.user_id, token=r.token, platform=r.platform))
    return out


def disable_token(db: Session, token: str) -> bool:
    """
    Mark a token disabled. Idempotent: an already-disabled row keeps its original timestamp.
    Returns False (and logs) on store error; the caller keeps going.
    """
    try:
        updated = (
            db.query(PushToken)
            .filter(PushToken.token == token, PushToken.disabled_at.is_(None))
            .update({PushToken.disabled_at: datetime.now(timezone.utc)}, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        logger.error("Failed to disable push token %s: %s", _token_preview(token), e, exc_info=True)
        db.rollback()
        return False
    if updated:
        logger.info("Disabled push token %s", _token_preview(token))
    return True
