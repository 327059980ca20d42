"""Event attendees, comment likes, locations, friendships, sermons; users.role

Revision ID: 002
Revises: 001
Create Date: (run alembic upgrade head)

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True)


def _user_fk(name: str = "user_id", index: bool = False) -> sa.Column:
    return sa.Column(name, sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=index)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _updated_at() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    op.add_column("users", sa.Column("role", sa.String(32), nullable=False, server_default="member"))

    op.create_table(
        "event_attendees",
        _id(),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True),
        _user_fk(index=True),
        _created_at(),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_attendees_event_user"),
    )
    # Event owners attend their own events
    op.execute(
        "INSERT INTO event_attendees (event_id, user_id) SELECT id, owner_id FROM events"
    )
    op.create_table(
        "event_comment_likes",
        _id(),
        sa.Column(
            "comment_id",
            sa.Integer(),
            sa.ForeignKey("event_comments.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        _user_fk(),
        _created_at(),
        sa.UniqueConstraint("comment_id", "user_id", name="uq_event_comment_likes_comment_user"),
    )
    op.create_table(
        "locations",
        _id(),
        sa.Column("name", sa.String(256), nullable=False, index=True),
        sa.Column("address", sa.String(512), nullable=True),
        sa.Column("city", sa.String(128), nullable=True),
        sa.Column("state", sa.String(64), nullable=True),
    )
    op.create_table(
        "prayer_request_comment_likes",
        _id(),
        sa.Column(
            "comment_id",
            sa.Integer(),
            sa.ForeignKey("prayer_request_comments.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        _user_fk(),
        _created_at(),
        sa.UniqueConstraint("comment_id", "user_id", name="uq_prayer_request_comment_likes_comment_user"),
    )

    op.create_table(
        "friendships",
        _id(),
        _user_fk("requester_id", index=True),
        _user_fk("addressee_id", index=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("requester_id", "addressee_id", name="uq_friendships_pair"),
        sa.CheckConstraint("requester_id <> addressee_id", name="ck_friendships_not_self"),
    )

    op.create_table(
        "sermon_series",
        _id(),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("number_of_weeks", sa.Integer(), nullable=True),
        sa.Column("cover_image", sa.JSON(), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="upcoming"),
        _user_fk("created_by", index=True),
        _created_at(),
        _updated_at(),
    )
    op.create_table(
        "sermons",
        _id(),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column(
            "sermon_series_id",
            sa.Integer(),
            sa.ForeignKey("sermon_series.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
        sa.Column("speakers", sa.JSON(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("key_points", sa.JSON(), nullable=False),
        sa.Column("verses", sa.JSON(), nullable=False),
        _user_fk("created_by", index=True),
        _created_at(),
        _updated_at(),
    )
    op.create_table(
        "sermon_discussions",
        _id(),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "sermon_series_id",
            sa.Integer(),
            sa.ForeignKey("sermon_series.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("sermon_id", sa.Integer(), sa.ForeignKey("sermons.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(16), nullable=False, server_default="discussion"),
        sa.Column("scripture_references", sa.JSON(), nullable=False),
        sa.Column("discussion_questions", sa.JSON(), nullable=False),
        sa.Column("discussion_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        _user_fk("created_by", index=True),
        _created_at(),
        _updated_at(),
    )
    op.create_table(
        "sermon_discussion_comments",
        _id(),
        sa.Column(
            "discussion_id",
            sa.Integer(),
            sa.ForeignKey("sermon_discussions.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        _user_fk("created_by"),
        _created_at(),
        _updated_at(),
    )


def downgrade() -> None:
    op.drop_table("sermon_discussion_comments")
    op.drop_table("sermon_discussions")
    op.drop_table("sermons")
    op.drop_table("sermon_series")
    op.drop_table("friendships")
    op.drop_table("prayer_request_comment_likes")
    op.drop_table("locations")
    op.drop_table("event_comment_likes")
    op.drop_table("event_attendees")
    op.drop_column("users", "role")
