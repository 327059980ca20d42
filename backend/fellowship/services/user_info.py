"""
Display info for users (id, name, username, profile_picture), cached per request.

Create one UserInfoCache per request (see api.deps.get_user_info_cache) and let it
go with the request; nothing is shared across requests.
"""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fellowship.core.constants import ANONYMOUS_NAME, ANONYMOUS_USERNAME, DEFAULT_PROFILE_PICTURE
from fellowship.models.user import User

logger = logging.getLogger(__name__)


def user_info(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "name": user.full_name,
        "username": user.username,
        "profile_picture": user.profile_picture or DEFAULT_PROFILE_PICTURE,
    }


def anonymous_info(user_id: int) -> dict[str, Any]:
    return {
        "id": user_id,
        "name": ANONYMOUS_NAME,
        "username": ANONYMOUS_USERNAME,
        "profile_picture": DEFAULT_PROFILE_PICTURE,
    }


class UserInfoCache:
    def __init__(self, db: Session) -> None:
        self._db = db
        self._cache: dict[int, dict[str, Any]] = {}

    def get(self, user_id: int | None) -> dict[str, Any] | None:
        if user_id is None:
            return None
        return self.get_many([user_id]).get(user_id)

    def get_many(self, user_ids: list[int]) -> dict[int, dict[str, Any]]:
        """One IN query for ids not cached yet. Store errors are logged; missing users are left out."""
        wanted = {uid for uid in user_ids if uid is not None}
        missing = wanted - self._cache.keys()
        if missing:
            try:
                rows = self._db.query(User).filter(User.id.in_(missing)).all()
            except SQLAlchemyError as e:
                logger.warning("User info lookup failed for %s users: %s", len(missing), e, exc_info=True)
                self._db.rollback()
                rows = []
            for u in rows:
                self._cache[u.id] = user_info(u)
        return {uid: self._cache[uid] for uid in wanted if uid in self._cache}

    def owner_for(self, owner_id: int, anonymous: bool = False) -> dict[str, Any] | None:
        if anonymous:
            return anonymous_info(owner_id)
        return self.get(owner_id)
