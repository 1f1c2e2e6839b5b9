# refer2earn/referrals.py
"""
Referral lifecycle: registration, manual invites and the status machine.

Statuses move pending -> signed_up -> converted, with cancelled reachable from
any of them through the admin endpoint. Entering "converted" issues a single
pending reward for the referrer; the unique constraint on rewards.referral_id
backs up the check made here.
"""
from __future__ import annotations

import logging
import secrets

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import campaigns, crud, models, notifications, security
from .errors import ConflictError, InvalidReferralCodeError, InvalidStatusError, NotFoundError
from .models import utcnow
from .schemas import RegisterViaReferral, UserCreate

logger = logging.getLogger(__name__)

INITIAL_STATUSES = (models.REFERRAL_PENDING, models.REFERRAL_SIGNED_UP)


def generate_referral_code(db: Session, username: str) -> str:
    """Username prefix plus six random hex characters, upper-cased and unique."""
    prefix = "".join(ch for ch in username if ch.isalnum())[:4]
    code = f"{prefix}{secrets.token_hex(3)}".upper()
    while crud.get_user_by_referral_code(db, code):
        code = f"{prefix}{secrets.token_hex(3)}".upper()
    return code


def _ensure_available(db: Session, username: str, email: str) -> None:
    if crud.get_user_by_username(db, username) or crud.get_user_by_email(db, email):
        raise ConflictError("User already exists")


def _create_user(db: Session, data: UserCreate) -> models.User:
    return crud.create_user(
        db,
        username=data.username,
        email=data.email,
        hashed_password=security.hash_password(data.password),
        referral_code=generate_referral_code(db, data.username),
        display_name=data.display_name,
        role=data.role,
        uid=data.uid,
    )


def register_user(db: Session, data: UserCreate) -> models.User:
    _ensure_available(db, data.username, data.email)
    try:
        user = _create_user(db, data)
        db.commit()
    except IntegrityError:
        # lost a race on username/email/uid
        db.rollback()
        raise ConflictError("User already exists")
    db.refresh(user)
    logger.info(f"User {user.id} '{user.username}' registered")
    return user


def register_via_referral(db: Session, data: RegisterViaReferral) -> tuple[models.User, models.User]:
    """
    Create a user who arrived through a referral link, in one transaction.

    Returns (new_user, referrer). Nothing is written when the code is unknown or
    the username/email is taken.
    """
    referrer = crud.get_user_by_referral_code(db, data.referral_code)
    if referrer is None:
        raise InvalidReferralCodeError()
    _ensure_available(db, data.username, data.email)

    try:
        user = _create_user(db, data)
        crud.create_referral(
            db,
            referrer_id=referrer.id,
            referee_id=user.id,
            referee_email=user.email,
            status=models.REFERRAL_SIGNED_UP,
        )
        notifications.append(
            db,
            referrer.id,
            models.NOTIFY_REFERRAL_USED,
            f"{user.display_name or user.username} has signed up using your referral link!",
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User already exists")
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    logger.info(f"User {user.id} registered via referral code of user {referrer.id}")
    return user, referrer


def create_referral(
    db: Session, referrer: models.User, referee_email: str, status: str = models.REFERRAL_PENDING
) -> models.Referral:
    if status not in INITIAL_STATUSES:
        raise InvalidStatusError(status, INITIAL_STATUSES)
    referral = crud.create_referral(db, referrer_id=referrer.id, referee_email=referee_email, status=status)
    db.commit()
    db.refresh(referral)
    logger.info(f"Referral {referral.id} logged by user {referrer.id} for {referee_email}")
    return referral


def list_referrals_for_user(db: Session, user_id: int) -> list[models.Referral]:
    return crud.list_referrals(db, referrer_id=user_id)


def list_referrals(db: Session) -> list[models.Referral]:
    return crud.list_referrals(db)


def _issue_reward(db: Session, referral: models.Referral) -> models.Reward:
    amount = campaigns.compute_reward_amount(db, referral.referrer_id)
    reward = crud.create_reward(db, user_id=referral.referrer_id, referral_id=referral.id, amount=amount)
    referral.reward_amount = amount
    notifications.append(
        db,
        referral.referrer_id,
        models.NOTIFY_REWARD_EARNED,
        f"You've earned a reward of ${amount:.2f} for a successful referral!",
    )
    return reward


def transition_referral(
    db: Session, referral_id: int, new_status: str, referee_id: int | None = None
) -> models.Referral:
    if new_status not in models.REFERRAL_STATUSES:
        raise InvalidStatusError(new_status, models.REFERRAL_STATUSES)

    referral = crud.get_referral(db, referral_id)
    if referral is None:
        raise NotFoundError("Referral not found")
    if referee_id is not None and crud.get_user(db, referee_id) is None:
        raise NotFoundError("Referee user not found")

    previous = referral.status
    referral.status = new_status
    if new_status == models.REFERRAL_CONVERTED and previous != models.REFERRAL_CONVERTED:
        referral.converted_at = utcnow()
    if referee_id is not None:
        referral.referee_id = referee_id

    reward = None
    try:
        # the converted count used for pricing includes this referral
        db.flush()
        if new_status == models.REFERRAL_CONVERTED and crud.get_reward_by_referral(db, referral.id) is None:
            reward = _issue_reward(db, referral)
        db.commit()
    except IntegrityError:
        # a concurrent conversion already created the reward
        db.rollback()
        logger.warning(f"Reward for referral {referral_id} already exists, keeping the existing one")
        referral = crud.get_referral(db, referral_id)
        if referral is None:
            raise NotFoundError("Referral not found")
        return referral

    db.refresh(referral)
    logger.info(f"Referral {referral.id} moved from '{previous}' to '{new_status}'")
    if reward is not None:
        logger.info(f"Reward {reward.id} of {reward.amount} issued to user {referral.referrer_id}")
    return referral
