# refer2earn/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Query, Response, status
from sqlalchemy import text
from sqlalchemy.orm import Session

from . import analytics, campaigns, crud, models, notifications, referrals, rewards
from .auth import authenticate_user, end_session, get_admin_user, get_current_user, start_session
from .database import get_db
from .errors import AuthenticationError, register_exception_handlers
from .logging_config import setup_logging
from .schemas import (
    AdminSummary,
    CampaignCreate,
    CampaignOut,
    CampaignUpdate,
    LoginRequest,
    MessageOut,
    NotificationOut,
    ReferralCreate,
    ReferralOut,
    ReferralStatusUpdate,
    RegisteredViaReferralOut,
    RegisterViaReferral,
    RewardOut,
    RewardStatusUpdate,
    UserCreate,
    UserOut,
    UserSummary,
)
from .seed import seed_from_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    from .database import engine, Base
    # Create tables if they don't exist
    Base.metadata.create_all(bind=engine)
    seed_from_settings()
    logger.info("Refer2Earn API started")
    yield


app = FastAPI(title="Refer2Earn", lifespan=lifespan)
register_exception_handlers(app)


@app.get("/health", tags=["monitoring"])
def health_check(db: Session = Depends(get_db)):
    """
    Checks if the application is healthy, including the database connection.
    """
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ok", "database": "ok"}
    except Exception:
        logger.exception("Health check failed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database connection error"
        )

# Auth
@app.post("/api/auth/register", response_model=UserOut, status_code=status.HTTP_201_CREATED, tags=["auth"])
def register(payload: UserCreate, response: Response, db: Session = Depends(get_db)):
    user = referrals.register_user(db, payload)
    start_session(response, user)
    return user

@app.post("/api/auth/login", response_model=UserOut, tags=["auth"])
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = authenticate_user(db, payload.username, payload.password)
    if not user:
        raise AuthenticationError("Invalid credentials")
    start_session(response, user)
    return user

@app.post("/api/auth/logout", response_model=MessageOut, tags=["auth"])
def logout(response: Response, _: models.User = Depends(get_current_user)):
    end_session(response)
    return {"message": "Logged out successfully"}

@app.get("/api/auth/session", response_model=UserOut, tags=["auth"])
def current_session(current_user: models.User = Depends(get_current_user)):
    return current_user

@app.post(
    "/api/register/via-referral",
    response_model=RegisteredViaReferralOut,
    status_code=status.HTTP_201_CREATED,
    tags=["auth"],
)
def register_via_referral(payload: RegisterViaReferral, response: Response, db: Session = Depends(get_db)):
    user, referrer = referrals.register_via_referral(db, payload)
    start_session(response, user)
    return RegisteredViaReferralOut(
        **UserOut.model_validate(user).model_dump(exclude={"referral_link"}),
        referred_by=referrer.username,
    )

# Users
@app.get("/api/users/me", response_model=UserOut, tags=["users"])
def me(current_user: models.User = Depends(get_current_user)):
    return current_user

@app.get("/api/users", response_model=list[UserOut], tags=["users"])
def list_users(db: Session = Depends(get_db), _: models.User = Depends(get_admin_user)):
    return crud.list_users(db)

# Referrals
@app.post("/api/referrals", response_model=ReferralOut, status_code=status.HTTP_201_CREATED, tags=["referrals"])
def create_referral(
    payload: ReferralCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return referrals.create_referral(db, current_user, payload.referee_email, payload.status)

@app.get("/api/referrals/me", response_model=list[ReferralOut], tags=["referrals"])
def my_referrals(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    return referrals.list_referrals_for_user(db, current_user.id)

@app.get("/api/referrals", response_model=list[ReferralOut], tags=["referrals"])
def all_referrals(db: Session = Depends(get_db), _: models.User = Depends(get_admin_user)):
    return referrals.list_referrals(db)

@app.patch("/api/referrals/{referral_id}/status", response_model=ReferralOut, tags=["referrals"])
def update_referral_status(
    referral_id: int,
    payload: ReferralStatusUpdate,
    db: Session = Depends(get_db),
    _: models.User = Depends(get_admin_user),
):
    return referrals.transition_referral(db, referral_id, payload.status, payload.referee_id)

# Rewards
@app.get("/api/rewards/me", response_model=list[RewardOut], tags=["rewards"])
def my_rewards(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    return rewards.list_rewards_for_user(db, current_user.id)

@app.get("/api/rewards", response_model=list[RewardOut], tags=["rewards"])
def all_rewards(db: Session = Depends(get_db), _: models.User = Depends(get_admin_user)):
    return rewards.list_rewards(db)

@app.patch("/api/rewards/{reward_id}/status", response_model=RewardOut, tags=["rewards"])
def update_reward_status(
    reward_id: int,
    payload: RewardStatusUpdate,
    db: Session = Depends(get_db),
    _: models.User = Depends(get_admin_user),
):
    return rewards.transition_reward(db, reward_id, payload.status)

# Campaigns
@app.post("/api/campaigns", response_model=CampaignOut, status_code=status.HTTP_201_CREATED, tags=["campaigns"])
def create_campaign(
    payload: CampaignCreate,
    db: Session = Depends(get_db),
    _: models.User = Depends(get_admin_user),
):
    return campaigns.create_campaign(db, payload)

@app.get("/api/campaigns/active", response_model=list[CampaignOut], tags=["campaigns"])
def active_campaigns(db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    return campaigns.list_active_campaigns(db)

@app.get("/api/campaigns", response_model=list[CampaignOut], tags=["campaigns"])
def list_campaigns(db: Session = Depends(get_db), _: models.User = Depends(get_current_user)):
    return campaigns.list_campaigns(db)

@app.patch("/api/campaigns/{campaign_id}", response_model=CampaignOut, tags=["campaigns"])
def update_campaign(
    campaign_id: int,
    payload: CampaignUpdate,
    db: Session = Depends(get_db),
    _: models.User = Depends(get_admin_user),
):
    return campaigns.update_campaign(db, campaign_id, payload)

# Notifications
@app.get("/api/notifications", response_model=list[NotificationOut], tags=["notifications"])
def list_notifications(
    unread_only: bool = Query(False, description="Only return unread notifications"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return notifications.list_for_user(db, current_user.id, unread_only=unread_only)

@app.patch("/api/notifications/{notification_id}/read", response_model=NotificationOut, tags=["notifications"])
def read_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return notifications.mark_read(db, current_user, notification_id)

@app.post("/api/notifications/read-all", response_model=MessageOut, tags=["notifications"])
def read_all_notifications(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    notifications.mark_all_read(db, current_user.id)
    return {"message": "All notifications marked as read"}

# Analytics
@app.get("/api/analytics/summary", response_model=UserSummary, tags=["analytics"])
def analytics_summary(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    return analytics.user_summary(db, current_user)

@app.get("/api/analytics/admin", response_model=AdminSummary, tags=["analytics"])
def analytics_admin(db: Session = Depends(get_db), _: models.User = Depends(get_admin_user)):
    return analytics.admin_summary(db)
