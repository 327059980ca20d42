from fellowship.services.notifications.dispatch import (
    Notifier,
    event_created_context,
    get_notifier,
    notify_event_created,
    notify_resource_commented,
    notify_resource_liked,
    resource_commented_context,
    resource_liked_context,
    send_notification,
)
from fellowship.services.notifications.types import DispatchResult, NotificationKind, ResourceType

__all__ = [
    "DispatchResult",
    "NotificationKind",
    "Notifier",
    "ResourceType",
    "event_created_context",
    "get_notifier",
    "notify_event_created",
    "notify_resource_commented",
    "notify_resource_liked",
    "resource_commented_context",
    "resource_liked_context",
    "send_notification",
]
