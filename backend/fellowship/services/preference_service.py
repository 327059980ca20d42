"""
Notification preferences: read (creating all-true defaults on first access), partial update, reset.

Turning the master switch off also turns every category off.
"""
from typing import Any

from sqlalchemy.orm import Session

from fellowship.models.notification_preference import NotificationPreference

PREFERENCE_FIELDS = (
    "notifications_enabled",
    "event_notifications",
    "prayer_notifications",
    "social_notifications",
)
CATEGORY_FIELDS = PREFERENCE_FIELDS[1:]


def default_values() -> dict[str, bool]:
    return {name: True for name in PREFERENCE_FIELDS}


def serialize(pref: NotificationPreference) -> dict[str, Any]:
    out: dict[str, Any] = {name: getattr(pref, name) for name in PREFERENCE_FIELDS}
    out["updated_at"] = pref.updated_at.isoformat() if pref.updated_at else None
    return out


def get_or_create_preferences(db: Session, user_id: int) -> NotificationPreference:
    row = db.query(NotificationPreference).filter(NotificationPreference.user_id == user_id).first()
    if row:
        return row
    row = NotificationPreference(user_id=user_id, **default_values())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_preferences(db: Session, user_id: int, updates: dict[str, bool]) -> tuple[NotificationPreference, bool]:
    """
    Apply a partial update. Returns (row, created); created is True when the user had no row yet
    (missing fields then default to True).
    """
    updates = {k: v for k, v in updates.items() if k in PREFERENCE_FIELDS}
    if updates.get("notifications_enabled") is False:
        for name in CATEGORY_FIELDS:
            updates[name] = False
    row = db.query(NotificationPreference).filter(NotificationPreference.user_id == user_id).first()
    created = row is None
    if created:
        row = NotificationPreference(user_id=user_id, **{**default_values(), **updates})
        db.add(row)
    else:
        for name, value in updates.items():
            setattr(row, name, value)
    db.commit()
    db.refresh(row)
    return row, created


def reset_preferences(db: Session, user_id: int) -> NotificationPreference:
    row, _ = update_preferences(db, user_id, default_values())
    return row
