# refer2earn/models.py
from __future__ import annotations
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, Float, Numeric, Boolean, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base

ROLES = ("candidate", "recruiter")

REFERRAL_PENDING = "pending"
REFERRAL_SIGNED_UP = "signed_up"
REFERRAL_CONVERTED = "converted"
REFERRAL_CANCELLED = "cancelled"
REFERRAL_STATUSES = (REFERRAL_PENDING, REFERRAL_SIGNED_UP, REFERRAL_CONVERTED, REFERRAL_CANCELLED)

REWARD_PENDING = "pending"
REWARD_APPROVED = "approved"
REWARD_REJECTED = "rejected"
REWARD_PAID = "paid"
REWARD_STATUSES = (REWARD_PENDING, REWARD_APPROVED, REWARD_REJECTED, REWARD_PAID)

NOTIFY_REFERRAL_USED = "referral_used"
NOTIFY_REWARD_EARNED = "reward_earned"
NOTIFY_STATUS_CHANGED = "status_changed"
NOTIFICATION_TYPES = (NOTIFY_REFERRAL_USED, NOTIFY_REWARD_EARNED, NOTIFY_STATUS_CHANGED)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize a datetime to aware UTC; naive values (SQLite reads them back that way) are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    # external auth provider uid, unused by local login
    uid: Mapped[str | None] = mapped_column(String(128), unique=True, nullable=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    # RFC 5321 cap is 320 chars
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(32), default="candidate", nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    referral_code: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    referrals: Mapped[list["Referral"]] = relationship(
        back_populates="referrer", foreign_keys="Referral.referrer_id"
    )


class Referral(Base):
    __tablename__ = "referrals"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    referrer_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    referee_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    referee_email: Mapped[str] = mapped_column(String(320), nullable=False)
    status: Mapped[str] = mapped_column(String(32), default=REFERRAL_PENDING, index=True, nullable=False)
    reward_amount: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    reward_approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    converted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    referrer: Mapped[User] = relationship(back_populates="referrals", foreign_keys=[referrer_id])
    referee: Mapped[User | None] = relationship(foreign_keys=[referee_id])
    reward: Mapped["Reward | None"] = relationship(back_populates="referral", uselist=False)


class Reward(Base):
    __tablename__ = "rewards"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    # one reward per referral; backs up the check in transition_referral
    referral_id: Mapped[int] = mapped_column(ForeignKey("referrals.id"), unique=True, nullable=False)
    amount: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    status: Mapped[str] = mapped_column(String(32), default=REWARD_PENDING, index=True, nullable=False)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    referral: Mapped[Referral] = relationship(back_populates="reward")


class Campaign(Base):
    __tablename__ = "campaigns"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    reward_multiplier: Mapped[float] = mapped_column(Float, default=1.0, nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    rules: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)  # min_referrals, bonus_amount
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    type: Mapped[str] = mapped_column(String(32), index=True, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
