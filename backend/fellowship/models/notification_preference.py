"""Per-user push preferences. notifications_enabled is the master switch and dominates the category flags."""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, true
from sqlalchemy.sql import func

from fellowship.db.base import Base


class NotificationPreference(Base):
    __tablename__ = "user_notification_preferences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    notifications_enabled = Column(Boolean, nullable=False, default=True, server_default=true())
    event_notifications = Column(Boolean, nullable=False, default=True, server_default=true())
    prayer_notifications = Column(Boolean, nullable=False, default=True, server_default=true())
    social_notifications = Column(Boolean, nullable=False, default=True, server_default=true())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
