from fellowship.models.event import Event, EventAttendee, EventComment, EventCommentLike, EventLike
from fellowship.models.friendship import Friendship
from fellowship.models.location import Location
from fellowship.models.notification_preference import NotificationPreference
from fellowship.models.prayer_request import (
    PrayerRequest,
    PrayerRequestComment,
    PrayerRequestCommentLike,
    PrayerRequestLike,
)
from fellowship.models.push_token import PushToken
from fellowship.models.sermon import Sermon, SermonDiscussion, SermonDiscussionComment, SermonSeries
from fellowship.models.user import User
from fellowship.models.user_follower import UserFollower

__all__ = [
    "Event",
    "EventAttendee",
    "EventComment",
    "EventCommentLike",
    "EventLike",
    "Friendship",
    "Location",
    "NotificationPreference",
    "PrayerRequest",
    "PrayerRequestComment",
    "PrayerRequestCommentLike",
    "PrayerRequestLike",
    "PushToken",
    "Sermon",
    "SermonDiscussion",
    "SermonDiscussionComment",
    "SermonSeries",
    "User",
    "UserFollower",
]
