# refer2earn/notifications.py
"""Append-only user notifications with a read flag."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from . import crud, models
from .errors import AuthorizationError, InvalidStatusError, NotFoundError

logger = logging.getLogger(__name__)


def append(db: Session, user_id: int, type: str, content: str) -> models.Notification:
    """Queue a notification in the caller's transaction; the caller commits."""
    if type not in models.NOTIFICATION_TYPES:
        raise InvalidStatusError(type, models.NOTIFICATION_TYPES, field="type")
    notification = crud.create_notification(db, user_id=user_id, type=type, content=content)
    logger.info(f"Notification {notification.id} ({type}) appended for user {user_id}")
    return notification


def list_for_user(db: Session, user_id: int, unread_only: bool = False) -> list[models.Notification]:
    return crud.list_notifications(db, user_id, unread_only=unread_only)


def count_unread(db: Session, user_id: int) -> int:
    return crud.count_unread_notifications(db, user_id)


def mark_read(db: Session, user: models.User, notification_id: int) -> models.Notification:
    notification = crud.get_notification(db, notification_id)
    if notification is None:
        raise NotFoundError("Notification not found")
    if notification.user_id != user.id:
        logger.warning(f"User {user.id} tried to mark notification {notification_id} of user {notification.user_id}")
        raise AuthorizationError()
    if not notification.is_read:
        notification.is_read = True
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: int) -> int:
    changed = crud.mark_all_notifications_read(db, user_id)
    db.commit()
    return changed
