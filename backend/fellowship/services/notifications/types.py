"""
Shapes that flow through the notification pipeline.

The context is a tagged union: one frozen dataclass per notification kind, each
carrying exactly what its builder/resolver branch needs. Contexts hold plain
values (no ORM rows) so they can cross into a background task with its own session.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class NotificationKind(str, Enum):
    EVENT_CREATED = "event_created"
    RESOURCE_LIKED = "resource_liked"
    RESOURCE_COMMENTED = "resource_commented"


class ResourceType(str, Enum):
    PRAYER_REQUEST = "prayer_request"
    EVENT = "event"

    @property
    def label(self) -> str:
        """Human wording used in titles ('your prayer request')."""
        return self.value.replace("_", " ")

    @property
    def route_segment(self) -> str:
        """Deep-link path segment the mobile app routes on."""
        return self.value.replace("_", "-")


@dataclass(frozen=True)
class Actor:
    id: int
    display_name: str


@dataclass(frozen=True)
class Resource:
    id: int
    owner_id: int | None
    title: str
    kind: ResourceType
    is_anonymous: bool = False


@dataclass(frozen=True)
class Action:
    """The like or comment that triggered the notification."""

    id: int
    text: str | None = None


@dataclass(frozen=True)
class EventCreatedContext:
    actor: Actor
    resource: Resource
    kind: NotificationKind = field(default=NotificationKind.EVENT_CREATED, init=False)


@dataclass(frozen=True)
class ResourceLikedContext:
    actor: Actor
    resource: Resource
    action: Action
    kind: NotificationKind = field(default=NotificationKind.RESOURCE_LIKED, init=False)


@dataclass(frozen=True)
class ResourceCommentedContext:
    actor: Actor
    resource: Resource
    action: Action
    kind: NotificationKind = field(default=NotificationKind.RESOURCE_COMMENTED, init=False)


NotificationContext = Union[EventCreatedContext, ResourceLikedContext, ResourceCommentedContext]


@dataclass(frozen=True)
class PushContent:
    title: str
    body: str
    data: dict[str, Any]


@dataclass(frozen=True)
class TokenTarget:
    user_id: int
    token: str
    platform: str | None = None


@dataclass
class DispatchResult:
    """Summary of one dispatch; logged, never persisted."""

    candidates: int = 0
    recipients: int = 0
    tokens: int = 0
    sent: int = 0
    failed: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)
    error: str | None = None  # pipeline-level failure caught at the boundary

    def merge_delivery(self, other: "DispatchResult") -> None:
        """Fold a dispatcher result (sent/failed/errors) into this pipeline summary."""
        self.sent += other.sent
        self.failed += other.failed
        self.errors.extend(other.errors)

    def as_log_dict(self) -> dict[str, Any]:
        return {
            "candidates": self.candidates,
            "recipients": self.recipients,
            "tokens": self.tokens,
            "sent": self.sent,
            "failed": self.failed,
            "errors": len(self.errors),
            "error": self.error,
        }
