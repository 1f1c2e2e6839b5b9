# refer2earn/campaigns.py
"""
Promotional campaigns and reward amount calculation.

A campaign is active at `now` when it is switched on and `now` falls inside
[start_date, end_date] (an open end date never expires). When a referral
converts, the reward is

    BASE_REWARD_AMOUNT * reward_multiplier + bonus_amount

using the active campaign that started most recently. The bonus only applies
once the referrer has at least `min_referrals` converted referrals, counting
the one being rewarded. Without an active campaign the flat base amount is used.
"""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from . import crud, models
from .config import settings
from .errors import NotFoundError, ValidationError
from .models import as_utc, utcnow
from .schemas import CampaignCreate, CampaignUpdate

logger = logging.getLogger(__name__)


def list_campaigns(db: Session) -> list[models.Campaign]:
    return crud.list_campaigns(db)


def list_active_campaigns(db: Session, now: datetime | None = None) -> list[models.Campaign]:
    return crud.list_active_campaigns(db, as_utc(now) if now else utcnow())


def create_campaign(db: Session, data: CampaignCreate) -> models.Campaign:
    campaign = crud.create_campaign(
        db,
        name=data.name,
        description=data.description,
        reward_multiplier=data.reward_multiplier,
        start_date=data.start_date,
        end_date=data.end_date,
        is_active=data.is_active,
        rules=data.rules.model_dump(exclude_none=True),
    )
    db.commit()
    db.refresh(campaign)
    logger.info(f"Campaign {campaign.id} '{campaign.name}' created")
    return campaign


def update_campaign(db: Session, campaign_id: int, changes: CampaignUpdate) -> models.Campaign:
    campaign = crud.get_campaign(db, campaign_id)
    if campaign is None:
        raise NotFoundError("Campaign not found")

    fields = changes.model_dump(exclude_unset=True)
    if "rules" in fields:
        fields["rules"] = changes.rules.model_dump(exclude_none=True) if changes.rules else {}
    for required in ("name", "description", "reward_multiplier", "start_date", "is_active"):
        if required in fields and fields[required] is None:
            raise ValidationError(errors=[{"field": required, "message": "may not be null"}])

    start = as_utc(fields.get("start_date", campaign.start_date))
    end = as_utc(fields["end_date"] if "end_date" in fields else campaign.end_date)
    if end is not None and end < start:
        raise ValidationError(errors=[{"field": "end_date", "message": "end_date must not be before start_date"}])

    for name, value in fields.items():
        setattr(campaign, name, value)
    db.commit()
    db.refresh(campaign)
    logger.info(f"Campaign {campaign.id} updated: {sorted(fields)}")
    return campaign


def compute_reward_amount(db: Session, referrer_id: int, now: datetime | None = None) -> float:
    base = settings.BASE_REWARD_AMOUNT
    active = list_active_campaigns(db, now)
    if not active:
        return round(base, 2)

    campaign = active[0]
    amount = base * campaign.reward_multiplier
    rules = campaign.rules or {}
    bonus = rules.get("bonus_amount")
    if bonus:
        min_referrals = rules.get("min_referrals") or 0
        converted = crud.count_referrals_by_status(db, (models.REFERRAL_CONVERTED,), referrer_id=referrer_id)
        if converted >= min_referrals:
            amount += float(bonus)
    logger.debug(f"Reward for referrer {referrer_id} priced by campaign {campaign.id}: {amount}")
    return round(amount, 2)
