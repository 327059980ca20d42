"""Build the push title/body/data for a notification context. Pure: no I/O, no clock."""
from __future__ import annotations

from typing import Any

from fellowship.core.constants import COMMENT_PREVIEW_CHARS
from fellowship.services.notifications.types import (
    EventCreatedContext,
    NotificationContext,
    PushContent,
    ResourceCommentedContext,
    ResourceLikedContext,
)


def preview(text: str, limit: int = COMMENT_PREVIEW_CHARS) -> str:
    if len(text) > limit:
        return f"{text[:limit]}..."
    return text


def _data(context: NotificationContext) -> dict[str, Any]:
    resource = context.resource
    data: dict[str, Any] = {
        "route": f"/{resource.kind.route_segment}/{resource.id}",
        "type": resource.kind.value,
        "id": resource.id,
        "actorId": context.actor.id,
    }
    action = getattr(context, "action", None)
    if action is not None:
        data["actionId"] = action.id
    return data


def build_message(context: NotificationContext) -> PushContent:
    """
    Title/body/data for one notification.
    Raises TypeError for an unknown context type (programming error; the pipeline boundary catches it).
    """
    if not isinstance(context, (EventCreatedContext, ResourceLikedContext, ResourceCommentedContext)):
        raise TypeError(f"Unknown notification context: {type(context).__name__}")
    actor = context.actor.display_name
    resource = context.resource
    if isinstance(context, EventCreatedContext):
        return PushContent(
            title=f"{actor} created a new event",
            body=resource.title,
            data=_data(context),
        )
    if isinstance(context, ResourceLikedContext):
        label = resource.kind.label
        body = f"Someone liked your {label}" if resource.is_anonymous else resource.title
        return PushContent(
            title=f"{actor} liked your {label}",
            body=body,
            data=_data(context),
        )
    return PushContent(
        title=f"{actor} commented on your {resource.kind.label}",
        body=preview(context.action.text or ""),
        data=_data(context),
    )
