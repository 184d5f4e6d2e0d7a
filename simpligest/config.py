from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==============================
    # Application
    # ==============================
    APP_NAME: str = "SimpliGest"
    ENVIRONMENT: str = "local"
    BUSINESS_TIMEZONE: str = "America/Santiago"

    # ==============================
    # Database
    # ==============================
    DATABASE_URL: str = "sqlite:///./simpligest.db"

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    LOG_FILE: Optional[str] = None
    LOG_FILE_MAX_BYTES: int = 5_000_000
    LOG_FILE_BACKUPS: int = 3

    # ==============================
    # Security
    # ==============================
    OWNER_API_KEY: Optional[str] = None
    API_KEYS: Optional[str] = None
    API_KEY_HEADER: str = "X-API-Key"
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None
    JWT_ISSUER: Optional[str] = None
    JWT_REQUIRED: bool = False
    JWT_EXPIRE_MINUTES: int = 720

    # ==============================
    # WhatsApp Configuration
    # ==============================
    WHATSAPP_API_URL: Optional[str] = None
    WHATSAPP_ACCESS_TOKEN: Optional[str] = None
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_WHATSAPP_FROM: Optional[str] = None
    TWILIO_API_BASE: str = "https://api.twilio.com/2010-04-01"
    WHATSAPP_TIMEOUT_SECONDS: int = 15

    # ==============================
    # SII (electronic invoicing)
    # ==============================
    SII_API_URL: Optional[str] = None
    SII_API_KEY: Optional[str] = None
    SII_TIMEOUT_SECONDS: int = 20

    # ==============================
    # Insights
    # ==============================
    INSIGHT_WINDOW_DAYS: int = 90
    INSIGHT_TREND_WINDOW_DAYS: int = 30
    INSIGHT_SAFETY_DAYS: int = 14
    INSIGHT_DEFAULT_MARGIN: float = 0.25
    INSIGHT_TREND_THRESHOLD: float = 0.05
    INSIGHT_OPPORTUNITY_PCT: float = 8.0

    # ==============================
    # Scheduler
    # ==============================
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_POLL_SECONDS: int = 30
    SCHEDULER_TZ: str = "local"


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
