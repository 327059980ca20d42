"""Sermon series, sermons, and the weekly small-group discussions (with comments) that follow them."""
from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from fellowship.db.base import Base


class SermonSeries(Base):
    __tablename__ = "sermon_series"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    number_of_weeks = Column(Integer, nullable=True)
    cover_image = Column(JSON, nullable=True)  # {"url", "public_id"}; uploaded client-side
    start_date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(16), nullable=False, default="upcoming", server_default="upcoming")
    created_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class Sermon(Base):
    __tablename__ = "sermons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(300), nullable=False)
    sermon_series_id = Column(Integer, ForeignKey("sermon_series.id", ondelete="SET NULL"), nullable=True, index=True)
    speakers = Column(JSON, nullable=False, default=list)  # [{"user_id": ...} | {"name": ...}]
    summary = Column(Text, nullable=True)
    key_points = Column(JSON, nullable=False, default=list)
    verses = Column(JSON, nullable=False, default=list)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class SermonDiscussion(Base):
    __tablename__ = "sermon_discussions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    sermon_series_id = Column(Integer, ForeignKey("sermon_series.id", ondelete="CASCADE"), nullable=False, index=True)
    sermon_id = Column(Integer, ForeignKey("sermons.id", ondelete="SET NULL"), nullable=True, index=True)
    week_number = Column(Integer, nullable=False)
    type = Column(String(16), nullable=False, default="discussion", server_default="discussion")
    scripture_references = Column(JSON, nullable=False, default=list)
    discussion_questions = Column(JSON, nullable=False, default=list)
    discussion_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class SermonDiscussionComment(Base):
    __tablename__ = "sermon_discussion_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    discussion_id = Column(
        Integer, ForeignKey("sermon_discussions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content = Column(Text, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
