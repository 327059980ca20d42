"""
Narrow candidates to users who have not turned the relevant category off.

Users without a preference row pass (they get the same all-true defaults the
preferences endpoint would create for them). If the preference table cannot be
read, everyone passes: missing a notification is worse than an extra one.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fellowship.models.notification_preference import NotificationPreference
from fellowship.services.notifications.types import (
    EventCreatedContext,
    NotificationContext,
    ResourceType,
)

logger = logging.getLogger(__name__)

EVENT_CATEGORY = "event_notifications"
PRAYER_CATEGORY = "prayer_notifications"
SOCIAL_CATEGORY = "social_notifications"


def category_for(context: NotificationContext) -> str:
    """Preference column gating this notification."""
    if isinstance(context, EventCreatedContext):
        return EVENT_CATEGORY
    if context.resource.kind is ResourceType.PRAYER_REQUEST:
        return PRAYER_CATEGORY
    return SOCIAL_CATEGORY


def allows(pref: NotificationPreference, category: str) -> bool:
    # Master switch dominates whatever the category column says
    return bool(pref.notifications_enabled) and bool(getattr(pref, category))


def filter_by_preference(db: Session, user_ids: set[int], context: NotificationContext) -> set[int]:
    if not user_ids:
        return set()
    category = category_for(context)
    try:
        rows = db.query(NotificationPreference).filter(NotificationPreference.user_id.in_(user_ids)).all()
    except SQLAlchemyError as e:
        logger.warning(
            "Preference lookup failed; sending to all %s candidates for %s: %s",
            len(user_ids),
            context.kind.value,
            e,
            exc_info=True,
        )
        db.rollback()
        return set(user_ids)
    by_user = {r.user_id: r for r in rows}
    return {uid for uid in user_ids if uid not in by_user or allows(by_user[uid], category)}
