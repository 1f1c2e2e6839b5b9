"""
Database accessors.

These helpers add and flush but never commit: the workflow calling them owns the
unit of work and commits (or rolls back) once.
"""
from __future__ import annotations
from datetime import datetime

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from . import models

# Users
def get_user(db: Session, user_id: int) -> models.User | None:
    return db.get(models.User, user_id)

def get_user_by_email(db: Session, email: str) -> models.User | None:
    return db.query(models.User).filter(models.User.email == email).first()

def get_user_by_username(db: Session, username: str) -> models.User | None:
    return db.query(models.User).filter(models.User.username == username).first()

def get_user_by_referral_code(db: Session, code: str) -> models.User | None:
    return db.query(models.User).filter(models.User.referral_code == code).first()

def list_users(db: Session) -> list[models.User]:
    return db.query(models.User).order_by(models.User.id.asc()).all()

def count_users(db: Session) -> int:
    return db.query(models.User).count()

def create_user(
    db: Session,
    *,
    username: str,
    email: str,
    hashed_password: str,
    referral_code: str,
    display_name: str | None = None,
    role: str = "candidate",
    is_admin: bool = False,
    uid: str | None = None,
) -> models.User:
    user = models.User(
        username=username,
        email=email,
        hashed_password=hashed_password,
        referral_code=referral_code,
        display_name=display_name,
        role=role,
        is_admin=is_admin,
        uid=uid,
    )
    db.add(user)
    db.flush()  # get user.id
    return user

# Referrals
def get_referral(db: Session, referral_id: int) -> models.Referral | None:
    return db.get(models.Referral, referral_id)

def list_referrals(db: Session, referrer_id: int | None = None) -> list[models.Referral]:
    q = db.query(models.Referral)
    if referrer_id is not None:
        q = q.filter(models.Referral.referrer_id == referrer_id)
    return q.order_by(models.Referral.created_at.desc(), models.Referral.id.desc()).all()

def create_referral(
    db: Session,
    *,
    referrer_id: int,
    referee_email: str,
    status: str,
    referee_id: int | None = None,
) -> models.Referral:
    referral = models.Referral(
        referrer_id=referrer_id,
        referee_id=referee_id,
        referee_email=referee_email,
        status=status,
    )
    db.add(referral)
    db.flush()
    return referral

def count_referrals_by_status(db: Session, statuses: tuple[str, ...], referrer_id: int | None = None) -> int:
    q = db.query(models.Referral).filter(models.Referral.status.in_(statuses))
    if referrer_id is not None:
        q = q.filter(models.Referral.referrer_id == referrer_id)
    return q.count()

def count_referrals(db: Session, referrer_id: int | None = None) -> int:
    q = db.query(models.Referral)
    if referrer_id is not None:
        q = q.filter(models.Referral.referrer_id == referrer_id)
    return q.count()

# Rewards
def get_reward(db: Session, reward_id: int) -> models.Reward | None:
    return db.get(models.Reward, reward_id)

def get_reward_by_referral(db: Session, referral_id: int) -> models.Reward | None:
    return db.execute(
        select(models.Reward).where(models.Reward.referral_id == referral_id)
    ).scalar_one_or_none()

def list_rewards(db: Session, user_id: int | None = None) -> list[models.Reward]:
    q = db.query(models.Reward)
    if user_id is not None:
        q = q.filter(models.Reward.user_id == user_id)
    return q.order_by(models.Reward.created_at.desc(), models.Reward.id.desc()).all()

def create_reward(db: Session, *, user_id: int, referral_id: int, amount: float) -> models.Reward:
    reward = models.Reward(
        user_id=user_id, referral_id=referral_id, amount=amount, status=models.REWARD_PENDING
    )
    db.add(reward)
    db.flush()
    return reward

def sum_reward_amounts(db: Session, statuses: tuple[str, ...], user_id: int | None = None) -> float:
    q = db.query(func.coalesce(func.sum(models.Reward.amount), 0.0)).filter(
        models.Reward.status.in_(statuses)
    )
    if user_id is not None:
        q = q.filter(models.Reward.user_id == user_id)
    return float(q.scalar() or 0.0)

# Campaigns
def get_campaign(db: Session, campaign_id: int) -> models.Campaign | None:
    return db.get(models.Campaign, campaign_id)

def list_campaigns(db: Session) -> list[models.Campaign]:
    return db.query(models.Campaign).order_by(models.Campaign.start_date.desc(), models.Campaign.id.desc()).all()

def list_active_campaigns(db: Session, now: datetime) -> list[models.Campaign]:
    """Campaigns switched on whose [start_date, end_date] window contains `now`, latest start first."""
    q = (
        db.query(models.Campaign)
        .filter(
            models.Campaign.is_active.is_(True),
            models.Campaign.start_date <= now,
            or_(models.Campaign.end_date.is_(None), models.Campaign.end_date >= now),
        )
        .order_by(models.Campaign.start_date.desc(), models.Campaign.id.desc())
    )
    return q.all()

def create_campaign(db: Session, **fields) -> models.Campaign:
    campaign = models.Campaign(**fields)
    db.add(campaign)
    db.flush()
    return campaign

# Notifications
def get_notification(db: Session, notification_id: int) -> models.Notification | None:
    return db.get(models.Notification, notification_id)

def create_notification(db: Session, *, user_id: int, type: str, content: str) -> models.Notification:
    notification = models.Notification(user_id=user_id, type=type, content=content, is_read=False)
    db.add(notification)
    db.flush()
    return notification

def list_notifications(db: Session, user_id: int, unread_only: bool = False) -> list[models.Notification]:
    q = db.query(models.Notification).filter(models.Notification.user_id == user_id)
    if unread_only:
        q = q.filter(models.Notification.is_read.is_(False))
    return q.order_by(models.Notification.created_at.desc(), models.Notification.id.desc()).all()

def count_unread_notifications(db: Session, user_id: int) -> int:
    return (
        db.query(models.Notification)
        .filter(models.Notification.user_id == user_id, models.Notification.is_read.is_(False))
        .count()
    )

def mark_all_notifications_read(db: Session, user_id: int) -> int:
    result = db.execute(
        update(models.Notification)
        .where(models.Notification.user_id == user_id, models.Notification.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0
