# refer2earn/analytics.py
from __future__ import annotations

from sqlalchemy.orm import Session

from . import crud, models
from .schemas import AdminSummary, UserSummary

OPEN_STATUSES = (models.REFERRAL_PENDING, models.REFERRAL_SIGNED_UP)
EARNED_STATUSES = (models.REWARD_APPROVED, models.REWARD_PAID)


def user_summary(db: Session, user: models.User) -> UserSummary:
    """Referral and reward totals for one referrer."""
    earned = round(crud.sum_reward_amounts(db, EARNED_STATUSES, user_id=user.id), 2)
    return UserSummary(
        total_referrals=crud.count_referrals(db, referrer_id=user.id),
        successful_referrals=crud.count_referrals_by_status(db, (models.REFERRAL_CONVERTED,), referrer_id=user.id),
        pending_referrals=crud.count_referrals_by_status(db, OPEN_STATUSES, referrer_id=user.id),
        rewards_earned=earned,
        rewards_formatted=f"${earned:.2f}",
    )


def admin_summary(db: Session) -> AdminSummary:
    total = crud.count_referrals(db)
    converted = crud.count_referrals_by_status(db, (models.REFERRAL_CONVERTED,))
    return AdminSummary(
        total_users=crud.count_users(db),
        total_referrals=total,
        successful_referrals=converted,
        pending_referrals=crud.count_referrals_by_status(db, OPEN_STATUSES),
        total_rewards_amount=round(crud.sum_reward_amounts(db, EARNED_STATUSES), 2),
        pending_rewards_amount=round(crud.sum_reward_amounts(db, (models.REWARD_PENDING,)), 2),
        conversion_rate=round(converted / total * 100, 2) if total else 0.0,
    )
