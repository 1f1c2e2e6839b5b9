from __future__ import annotations
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field, field_validator, model_validator

from .config import settings
from .models import as_utc

ReferralStatus = Literal["pending", "signed_up", "converted", "cancelled"]
RewardStatus = Literal["pending", "approved", "rejected", "paid"]
Role = Literal["candidate", "recruiter"]


def build_referral_link(code: str) -> str:
    return f"{settings.BASE_URL.rstrip('/')}/register?referralCode={code}"


# Auth / users
class UserCreate(BaseModel):
    username: str = Field(min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    # bcrypt only looks at the first 72 bytes
    password: str = Field(min_length=8, max_length=72)
    display_name: str | None = Field(None, max_length=255)
    role: Role = "candidate"
    uid: str | None = Field(None, max_length=128)
    # accepted for client compatibility, a fresh code is always generated
    referral_code: str | None = None


class RegisterViaReferral(UserCreate):
    # the referrer's code, not the new user's
    referral_code: str = Field(min_length=1, max_length=32)


class LoginRequest(BaseModel):
    username: str
    password: str


class UserOut(BaseModel):
    id: int
    uid: str | None = None
    username: str
    email: str
    display_name: str | None = None
    role: str
    is_admin: bool
    referral_code: str
    created_at: datetime

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def referral_link(self) -> str:
        return build_referral_link(self.referral_code)


class RegisteredViaReferralOut(UserOut):
    referred_by: str


class MessageOut(BaseModel):
    message: str


# Referrals
class ReferralCreate(BaseModel):
    referee_email: EmailStr
    status: Literal["pending", "signed_up"] = "pending"


class ReferralStatusUpdate(BaseModel):
    status: ReferralStatus
    referee_id: int | None = None


class ReferralOut(BaseModel):
    id: int
    referrer_id: int
    referee_id: int | None = None
    referee_email: str
    status: str
    reward_amount: float | None = None
    reward_approved: bool
    created_at: datetime
    converted_at: datetime | None = None

    model_config = {"from_attributes": True}


# Rewards
class RewardStatusUpdate(BaseModel):
    status: RewardStatus


class RewardOut(BaseModel):
    id: int
    user_id: int
    referral_id: int
    amount: float
    status: str
    approved_at: datetime | None = None
    paid_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


# Campaigns
class CampaignRules(BaseModel):
    min_referrals: int | None = Field(None, ge=0)
    bonus_amount: float | None = Field(None, ge=0)

    # other keys are kept as-is
    model_config = ConfigDict(extra="allow")


class CampaignCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str
    reward_multiplier: float = Field(1.0, ge=0)
    start_date: datetime
    end_date: datetime | None = None
    is_active: bool = True
    rules: CampaignRules = Field(default_factory=CampaignRules)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @model_validator(mode="after")
    def check_window(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class CampaignUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    reward_multiplier: float | None = Field(None, ge=0)
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool | None = None
    rules: CampaignRules | None = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class CampaignOut(BaseModel):
    id: int
    name: str
    description: str
    reward_multiplier: float
    start_date: datetime
    end_date: datetime | None = None
    is_active: bool
    rules: dict
    created_at: datetime

    model_config = {"from_attributes": True}


# Notifications
class NotificationOut(BaseModel):
    id: int
    user_id: int
    type: str
    content: str
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# Analytics
class UserSummary(BaseModel):
    total_referrals: int
    successful_referrals: int
    pending_referrals: int
    rewards_earned: float
    rewards_formatted: str


class AdminSummary(BaseModel):
    total_users: int
    total_referrals: int
    successful_referrals: int
    pending_referrals: int
    total_rewards_amount: float
    pending_rewards_amount: float
    conversion_rate: float
