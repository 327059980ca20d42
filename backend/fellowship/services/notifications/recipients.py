"""Who should conceptually hear about a notification, before preferences are applied."""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fellowship.models.user_follower import UserFollower
from fellowship.services.notifications.types import (
    EventCreatedContext,
    NotificationContext,
    ResourceCommentedContext,
    ResourceLikedContext,
)

logger = logging.getLogger(__name__)


def follower_ids(db: Session, user_id: int) -> set[int]:
    rows = db.query(UserFollower.follower_id).filter(UserFollower.following_id == user_id).all()
    return {r.follower_id for r in rows}


def resolve_recipients(db: Session, context: NotificationContext) -> set[int]:
    """
    Candidate user ids for the context. Never raises: a store error is logged and yields an empty set.
    The actor is always removed, whatever the branch.
    """
    actor_id = context.actor.id
    recipients: set[int] = set()
    try:
        if isinstance(context, EventCreatedContext):
            recipients = follower_ids(db, actor_id)
        elif isinstance(context, (ResourceLikedContext, ResourceCommentedContext)):
            owner_id = context.resource.owner_id
            if owner_id is not None and owner_id != actor_id:
                recipients = {owner_id}
        else:
            logger.warning("No recipient rule for context %s", type(context).__name__)
    except SQLAlchemyError as e:
        logger.warning(
            "Recipient lookup failed for %s on %s %s: %s",
            context.kind.value,
            context.resource.kind.value,
            context.resource.id,
            e,
            exc_info=True,
        )
        db.rollback()
        return set()
    recipients.discard(actor_id)
    return recipients
