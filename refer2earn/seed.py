# refer2earn/seed.py
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from . import crud, models, security
from .config import settings
from .database import SessionLocal
from .referrals import generate_referral_code

logger = logging.getLogger(__name__)


def ensure_admin(
    db: Session,
    username: str,
    email: str,
    password: str,
    referral_code: str | None = None,
) -> models.User | None:
    """
    Create the bootstrap admin account unless a user with that username already exists.

    Returns None, without writing anything, when the email belongs to a different user.
    """
    existing = crud.get_user_by_username(db, username)
    if existing:
        return existing
    if crud.get_user_by_email(db, email):
        logger.warning(f"Not seeding admin '{username}': email {email} is already registered")
        return None

    if not referral_code or crud.get_user_by_referral_code(db, referral_code):
        referral_code = generate_referral_code(db, username)
    admin = crud.create_user(
        db,
        username=username,
        email=email,
        hashed_password=security.hash_password(password),
        referral_code=referral_code,
        display_name="Admin User",
        role="recruiter",
        is_admin=True,
    )
    db.commit()
    db.refresh(admin)
    logger.info(f"Seeded admin user '{username}' (id={admin.id})")
    return admin


def seed_from_settings() -> None:
    if not settings.SEED_ADMIN_PASSWORD:
        return
    db = SessionLocal()
    try:
        ensure_admin(
            db,
            settings.SEED_ADMIN_USERNAME,
            settings.SEED_ADMIN_EMAIL,
            settings.SEED_ADMIN_PASSWORD,
            settings.SEED_ADMIN_REFERRAL_CODE,
        )
    finally:
        db.close()
