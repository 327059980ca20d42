"""Initial schema: users, follows, events, prayer requests, push tokens, notification preferences

Revision ID: 001
Revises:
Create Date: (run alembic upgrade head)

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _user_fk(name: str = "user_id", index: bool = False) -> sa.Column:
    return sa.Column(name, sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=index)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("full_name", sa.String(128), nullable=False),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("email", sa.String(256), nullable=True, unique=True),
        sa.Column("profile_picture", sa.String(512), nullable=True),
        _created_at(),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "user_followers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _user_fk("follower_id", index=True),
        _user_fk("following_id", index=True),
        _created_at(),
        sa.UniqueConstraint("follower_id", "following_id", name="uq_user_followers_pair"),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _user_fk("owner_id", index=True),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("location", sa.String(256), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        _created_at(),
    )
    op.create_table(
        "event_comments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True),
        _user_fk(),
        sa.Column("text", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_table(
        "event_likes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True),
        _user_fk(),
        _created_at(),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_likes_event_user"),
    )

    op.create_table(
        "prayer_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _user_fk("owner_id", index=True),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("anonymous", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("photos", sa.JSON(), nullable=False),
        _created_at(),
    )
    op.create_table(
        "prayer_request_comments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "prayer_request_id",
            sa.Integer(),
            sa.ForeignKey("prayer_requests.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        _user_fk(),
        sa.Column("text", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_table(
        "prayer_request_likes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "prayer_request_id",
            sa.Integer(),
            sa.ForeignKey("prayer_requests.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        _user_fk(),
        _created_at(),
        sa.UniqueConstraint("prayer_request_id", "user_id", name="uq_prayer_request_likes_request_user"),
    )

    op.create_table(
        "push_tokens",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _user_fk(index=True),
        sa.Column("token", sa.String(256), nullable=False),
        sa.Column("platform", sa.String(16), nullable=True),
        sa.Column("device_id", sa.String(128), nullable=True),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("disabled_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_push_tokens_token", "push_tokens", ["token"], unique=True)

    op.create_table(
        "user_notification_preferences",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
        ),
        sa.Column("notifications_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("event_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("prayer_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("social_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("user_notification_preferences")
    op.drop_index("ix_push_tokens_token", table_name="push_tokens")
    op.drop_table("push_tokens")
    op.drop_table("prayer_request_likes")
    op.drop_table("prayer_request_comments")
    op.drop_table("prayer_requests")
    op.drop_table("event_likes")
    op.drop_table("event_comments")
    op.drop_table("events")
    op.drop_table("user_followers")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
