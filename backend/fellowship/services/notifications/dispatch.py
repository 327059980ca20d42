"""
Notification pipeline: build message, resolve recipients, filter by preference,
resolve tokens, dispatch. Entry points take ORM rows from the controllers;
Notifier runs the pipeline as a FastAPI background task with its own session.

Nothing here raises to the caller: every failure ends in the DispatchResult and the log.
"""
from __future__ import annotations

import logging
from typing import Callable

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from fellowship.db import session as db_session
from fellowship.models.event import Event, EventComment, EventLike
from fellowship.models.prayer_request import PrayerRequest, PrayerRequestComment, PrayerRequestLike
from fellowship.models.user import User
from fellowship.services.notifications.messages import build_message
from fellowship.services.notifications.preferences import filter_by_preference
from fellowship.services.notifications.push import ExpoPushClient, PushDispatcher, build_push_messages
from fellowship.services.notifications.recipients import resolve_recipients
from fellowship.services.notifications.tokens import disable_token, resolve_tokens
from fellowship.services.notifications.types import (
    Action,
    Actor,
    DispatchResult,
    EventCreatedContext,
    NotificationContext,
    Resource,
    ResourceCommentedContext,
    ResourceLikedContext,
    ResourceType,
)

logger = logging.getLogger(__name__)


def build_dispatcher(db: Session) -> PushDispatcher:
    """Default dispatcher: Expo client from settings; DeviceNotRegistered disables the token in db."""
    return PushDispatcher(ExpoPushClient(), on_device_not_registered=lambda token: disable_token(db, token))


# --- Contexts from ORM rows ---


def actor_from_user(user: User) -> Actor:
    return Actor(id=user.id, display_name=user.full_name)


def resource_from_row(row: Event | PrayerRequest) -> Resource:
    if isinstance(row, Event):
        return Resource(id=row.id, owner_id=row.owner_id, title=row.title, kind=ResourceType.EVENT)
    if isinstance(row, PrayerRequest):
        return Resource(
            id=row.id,
            owner_id=row.owner_id,
            title=row.title,
            kind=ResourceType.PRAYER_REQUEST,
            is_anonymous=bool(row.anonymous),
        )
    raise TypeError(f"Not a notifiable resource: {type(row).__name__}")


def event_created_context(event: Event, creator: User) -> EventCreatedContext:
    return EventCreatedContext(actor=actor_from_user(creator), resource=resource_from_row(event))


def resource_liked_context(
    resource: Event | PrayerRequest, like: EventLike | PrayerRequestLike, actor: User
) -> ResourceLikedContext:
    return ResourceLikedContext(
        actor=actor_from_user(actor),
        resource=resource_from_row(resource),
        action=Action(id=like.id),
    )


def resource_commented_context(
    resource: Event | PrayerRequest, comment: EventComment | PrayerRequestComment, actor: User
) -> ResourceCommentedContext:
    return ResourceCommentedContext(
        actor=actor_from_user(actor),
        resource=resource_from_row(resource),
        action=Action(id=comment.id, text=comment.text),
    )


# --- Pipeline ---


def _describe(context: NotificationContext) -> str:
    kind = getattr(context, "kind", None)
    resource = getattr(context, "resource", None)
    if kind is None or resource is None:
        return type(context).__name__
    return f"{kind.value} on {resource.kind.value} {resource.id}"


def send_notification(
    db: Session, context: NotificationContext, dispatcher: PushDispatcher | None = None
) -> DispatchResult:
    """Run all stages for one context. Short-circuits with partial counts when a stage yields nothing."""
    result = DispatchResult()
    try:
        content = build_message(context)
        candidates = resolve_recipients(db, context)
        result.candidates = len(candidates)
        if not candidates:
            logger.debug("No recipients for %s", _describe(context))
            return result
        recipients = filter_by_preference(db, candidates, context)
        result.recipients = len(recipients)
        if not recipients:
            logger.debug("No recipients after preference filtering for %s", _describe(context))
            return result
        targets = resolve_tokens(db, recipients)
        result.tokens = len(targets)
        if not targets:
            logger.debug("No active push tokens for %s", _describe(context))
            return result
        dispatcher = dispatcher or build_dispatcher(db)
        result.merge_delivery(dispatcher.dispatch(build_push_messages(content, targets)))
    except Exception as e:
        logger.exception("Notification %s failed: %s", _describe(context), e)
        result.error = str(e)
    return result


def notify_event_created(
    db: Session, event: Event, creator: User, dispatcher: PushDispatcher | None = None
) -> DispatchResult:
    """Followers of the creator hear about the new event."""
    return send_notification(db, event_created_context(event, creator), dispatcher)


def notify_resource_liked(
    db: Session,
    resource: Event | PrayerRequest,
    like: EventLike | PrayerRequestLike,
    actor: User,
    dispatcher: PushDispatcher | None = None,
) -> DispatchResult:
    return send_notification(db, resource_liked_context(resource, like, actor), dispatcher)


def notify_resource_commented(
    db: Session,
    resource: Event | PrayerRequest,
    comment: EventComment | PrayerRequestComment,
    actor: User,
    dispatcher: PushDispatcher | None = None,
) -> DispatchResult:
    return send_notification(db, resource_commented_context(resource, comment, actor), dispatcher)


# --- Fire-and-forget ---


class Notifier:
    """
    Runs the pipeline off the request path. schedule() only enqueues; the task
    opens its own session (the request's session is closed by then) and reports
    to the log.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        dispatcher_factory: Callable[[Session], PushDispatcher] = build_dispatcher,
    ) -> None:
        self._session_factory = session_factory
        self._dispatcher_factory = dispatcher_factory

    def schedule(self, background_tasks: BackgroundTasks, context: NotificationContext) -> None:
        background_tasks.add_task(self.run, context)

    def run(self, context: NotificationContext) -> DispatchResult:
        db = None
        try:
            db = (self._session_factory or db_session.SessionLocal)()
            result = send_notification(db, context, dispatcher=self._dispatcher_factory(db))
        except Exception as e:
            logger.exception("Background notification %s failed: %s", _describe(context), e)
            result = DispatchResult(error=str(e))
        finally:
            if db is not None:
                db.close()
        logger.info("Notification %s: %s", _describe(context), result.as_log_dict())
        return result


_notifier = Notifier()


def get_notifier() -> Notifier:
    """FastAPI dependency; override in tests."""
    return _notifier
