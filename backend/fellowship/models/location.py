"""Known venues, searched by the event form's location picker."""
from sqlalchemy import Column, Integer, String

from fellowship.db.base import Base


class Location(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(256), nullable=False, index=True)
    address = Column(String(512), nullable=True)
    city = Column(String(128), nullable=True)
    state = Column(String(64), nullable=True)
