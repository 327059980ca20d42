"""
Single source of truth for database tables that exist after migrations.

Use these names when writing raw SQL (e.g. TRUNCATE). Alembic env.py asserts the
models registered on Base match this list exactly.
"""
# All tables that exist in the DB. Must match models and migrations.
ALL_TABLE_NAMES = (
    "users",
    "user_followers",
    "friendships",
    "events",
    "event_attendees",
    "event_comments",
    "event_comment_likes",
    "event_likes",
    "locations",
    "prayer_requests",
    "prayer_request_comments",
    "prayer_request_comment_likes",
    "prayer_request_likes",
    "sermon_series",
    "sermons",
    "sermon_discussions",
    "sermon_discussion_comments",
    "push_tokens",
    "user_notification_preferences",
)
