"""Application configuration settings.

All configuration values are loaded from environment variables (.env file).
No sensitive values should be hardcoded here.
"""

from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    PROJECT_NAME: str = "Facility Ready Board API"
    VERSION: str = "0.1.0"
    API_V1_PREFIX: str = "/api/v1"
    DEBUG: bool = False

    # Database - REQUIRED
    DATABASE_URL: str

    # Redis - REQUIRED (change feed and Celery broker)
    REDIS_URL: str

    # CORS
    CORS_ORIGINS: list[str] = []

    # Facility
    FACILITY_TIMEZONE: str = "America/New_York"

    # Twilio SMS
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""
    # SMS_DELIVERY_MODE: real, simulated, disabled
    SMS_DELIVERY_MODE: str = "simulated"
    SMS_COUNTRY_CODE: str = "1"
    # Overrides every recipient phone when set (demo installs)
    DEMO_FAMILY_PHONE: Optional[str] = None

    # Web Push (VAPID)
    VAPID_PUBLIC_KEY: str = ""
    VAPID_PRIVATE_KEY: str = ""
    VAPID_SUBJECT: str = "mailto:admin@facility.local"
    PUSH_TTL_SECONDS: int = 3600
    PUSH_URGENCY: str = "high"

    # Upper bound for a single SMS or push provider call
    PROVIDER_TIMEOUT_SECONDS: float = 10.0

    # Change feed
    CHANGE_FEED_CHANNEL: str = "transport_events_changes"

    # Board monitor
    BOARD_API_URL: str = "http://localhost:8000/api/v1"
    BOARD_POLL_INTERVAL_SECONDS: float = 30.0
    DETECTOR_MAX_TRACKED_IDS: int = 5000
    ALERT_SOUND_ENABLED: bool = True
    ALERT_DESKTOP_ENABLED: bool = False
    ALERT_TOAST_SECONDS: float = 5.0

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
