"""Expo push token per device. Soft-disabled (disabled_at) when Expo reports DeviceNotRegistered; never deleted."""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func

from fellowship.db.base import Base


class PushToken(Base):
    __tablename__ = "push_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(256), nullable=False, unique=True, index=True)
    platform = Column(String(16), nullable=True)  # 'ios' | 'android'
    device_id = Column(String(128), nullable=True)
    last_seen_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    disabled_at = Column(DateTime(timezone=True), nullable=True)  # NULL = active
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
