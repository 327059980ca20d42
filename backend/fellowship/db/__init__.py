from fellowship.db.base import Base
from fellowship.db.session import get_db, engine, SessionLocal
from fellowship.db.tables import ALL_TABLE_NAMES

__all__ = ["get_db", "engine", "SessionLocal", "Base", "ALL_TABLE_NAMES"]
