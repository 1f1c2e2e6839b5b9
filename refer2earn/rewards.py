# refer2earn/rewards.py
"""Reward approval workflow."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from . import crud, models, notifications
from .errors import InvalidStatusError, InvalidTransitionError, NotFoundError
from .models import utcnow

logger = logging.getLogger(__name__)

# paid and rejected are terminal
ALLOWED_TRANSITIONS: dict[str, tuple[str, ...]] = {
    models.REWARD_PENDING: (models.REWARD_APPROVED, models.REWARD_REJECTED),
    models.REWARD_APPROVED: (models.REWARD_PAID,),
    models.REWARD_REJECTED: (),
    models.REWARD_PAID: (),
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, ())


def list_rewards_for_user(db: Session, user_id: int) -> list[models.Reward]:
    return crud.list_rewards(db, user_id=user_id)


def list_rewards(db: Session) -> list[models.Reward]:
    return crud.list_rewards(db)


def transition_reward(db: Session, reward_id: int, new_status: str) -> models.Reward:
    if new_status not in models.REWARD_STATUSES:
        raise InvalidStatusError(new_status, models.REWARD_STATUSES)

    reward = crud.get_reward(db, reward_id)
    if reward is None:
        raise NotFoundError("Reward not found")
    if not can_transition(reward.status, new_status):
        raise InvalidTransitionError("reward", reward.status, new_status)

    previous = reward.status
    reward.status = new_status
    now = utcnow()
    if new_status == models.REWARD_APPROVED:
        reward.approved_at = now
        reward.referral.reward_approved = True
    elif new_status == models.REWARD_PAID:
        reward.paid_at = now

    if new_status in (models.REWARD_APPROVED, models.REWARD_PAID):
        notifications.append(
            db,
            reward.user_id,
            models.NOTIFY_STATUS_CHANGED,
            f"Your reward of ${reward.amount:.2f} has been {new_status}!",
        )

    db.commit()
    db.refresh(reward)
    logger.info(f"Reward {reward.id} moved from '{previous}' to '{new_status}'")
    return reward
