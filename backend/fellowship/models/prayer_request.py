"""Prayer requests plus their comments and likes. anonymous hides the owner in listings and push bodies."""
from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, false
from sqlalchemy.sql import func

from fellowship.db.base import Base


class PrayerRequest(Base):
    __tablename__ = "prayer_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(256), nullable=False)
    text = Column(Text, nullable=False)
    anonymous = Column(Boolean, nullable=False, default=False, server_default=false())
    photos = Column(JSON, nullable=False, default=list)  # public URLs; upload happens client-side
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class PrayerRequestComment(Base):
    __tablename__ = "prayer_request_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    prayer_request_id = Column(
        Integer, ForeignKey("prayer_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class PrayerRequestLike(Base):
    __tablename__ = "prayer_request_likes"
    __table_args__ = (
        UniqueConstraint("prayer_request_id", "user_id", name="uq_prayer_request_likes_request_user"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    prayer_request_id = Column(
        Integer, ForeignKey("prayer_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class PrayerRequestCommentLike(Base):
    __tablename__ = "prayer_request_comment_likes"
    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", name="uq_prayer_request_comment_likes_comment_user"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    comment_id = Column(
        Integer, ForeignKey("prayer_request_comments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
