# refer2earn/config.py

from __future__ import annotations
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    # --- Core ---
    SECRET_KEY: str = Field("change-me", description="Session token signing key")
    ALGORITHM: str = "HS256"
    LOG_LEVEL: str = "INFO"

    # --- Sessions ---
    SESSION_EXPIRE_MINUTES: int = Field(60 * 24, ge=5, le=60 * 24 * 30)
    SESSION_COOKIE_NAME: str = "refer2earn_session"
    SESSION_COOKIE_SECURE: bool = False

    # --- Database ---
    DATABASE_URL: str = Field("sqlite:///./refer2earn.db")

    # --- Referral program ---
    BASE_URL: str = "http://localhost:5000"
    BASE_REWARD_AMOUNT: float = Field(50.0, ge=0)

    # Bootstrap admin, created at startup only when a password is set
    SEED_ADMIN_USERNAME: str = "admin"
    SEED_ADMIN_EMAIL: str = "admin@refer2earn.com"
    SEED_ADMIN_PASSWORD: Optional[str] = None
    SEED_ADMIN_REFERRAL_CODE: Optional[str] = "ADMIN123"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
