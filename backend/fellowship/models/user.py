"""Community member. Rows are created by the auth service; this backend only reads them."""
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from fellowship.core.constants import ROLE_MEMBER
from fellowship.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(128), nullable=False)
    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(256), nullable=True, unique=True)
    profile_picture = Column(String(512), nullable=True)
    # member | leader | developer; leaders and developers publish sermons
    role = Column(String(32), nullable=False, default=ROLE_MEMBER, server_default=ROLE_MEMBER)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
