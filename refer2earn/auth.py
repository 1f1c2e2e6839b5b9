from __future__ import annotations

import logging

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from . import crud, models, security
from .config import settings
from .database import get_db
from .errors import AuthenticationError, AuthorizationError
from .token import create_session_token, decode_session_token

logger = logging.getLogger(__name__)


def authenticate_user(db: Session, username: str, password: str) -> models.User | None:
    """
    Authenticates a user by username and password.

    Returns the user object if authentication is successful, otherwise None.
    A hash using outdated settings is upgraded in place.
    """
    user = crud.get_user_by_username(db, username)
    if not user or not security.verify_password(password, user.hashed_password):
        logger.warning(f"Failed login attempt for username '{username}'")
        return None
    if security.needs_rehash(user.hashed_password):
        user.hashed_password = security.hash_password(password)
        db.commit()
    return user


def get_token_from_cookie_or_header(request: Request) -> str | None:
    """Extract token from either Authorization header or the session cookie"""
    # First try authorization header
    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:]  # Remove "Bearer " prefix

    # Then try cookie
    return request.cookies.get(settings.SESSION_COOKIE_NAME) or None


def get_current_user(request: Request, db: Session = Depends(get_db)) -> models.User:
    token = get_token_from_cookie_or_header(request)
    if not token:
        raise AuthenticationError()

    user_id = decode_session_token(token)
    user = crud.get_user(db, user_id)
    if user is None:
        logger.warning(f"User with ID {user_id} from session not found in DB.")
        raise AuthenticationError("Could not validate credentials")
    request.state.user = user
    return user


def get_admin_user(current_user: models.User = Depends(get_current_user)) -> models.User:
    """Guard for admin endpoints."""
    if not current_user.is_admin:
        logger.warning(f"Permission denied for user {current_user.id} on admin endpoint")
        raise AuthorizationError("You do not have permission to access this resource.")
    return current_user


def start_session(response: Response, user: models.User) -> str:
    token = create_session_token(user.id)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
    )
    return token


def end_session(response: Response) -> None:
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME)
