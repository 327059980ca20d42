"""
Shared route dependencies: authenticated user (Bearer JWT) and the per-request user info cache.
"""
import logging

import jwt
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from fellowship.config import settings
from fellowship.core.errors import unauthorized
from fellowship.db.session import get_db
from fellowship.models.user import User
from fellowship.services.user_info import UserInfoCache

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
JWT_USER_CLAIM = "userID"


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_user(
    authorization: str | None = Header(None),
    db: Session = Depends(get_db),
) -> User:
    token = _bearer_token(authorization)
    if not token or not settings.jwt_secret:
        raise unauthorized()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.debug("Rejected token: %s", e)
        raise unauthorized()
    user_id = payload.get(JWT_USER_CLAIM)
    if user_id is None:
        raise unauthorized()
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise unauthorized()
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise unauthorized()
    return user


def get_user_info_cache(db: Session = Depends(get_db)) -> UserInfoCache:
    return UserInfoCache(db)
