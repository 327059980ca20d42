"""Follower graph: follower_id follows following_id. EventCreated fans out along this edge."""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.sql import func

from fellowship.db.base import Base


class UserFollower(Base):
    __tablename__ = "user_followers"
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_user_followers_pair"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    follower_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    following_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
