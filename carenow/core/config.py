"""
Application configuration settings
"""

from functools import lru_cache
from pydantic_settings import BaseSettings
from typing import Optional, List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "CareNow Partner Jobs"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # CORS
    CORS_ORIGINS: List[str] = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: List[str] = ["*"]
    CORS_ALLOW_HEADERS: List[str] = ["*"]

    # Database
    DATABASE_URL: Optional[str] = None
    AUTO_CREATE_TABLES: bool = True
    STORE_MAX_RETRIES: int = 5  # Attempts for version-checked transactions

    # Business rules
    BUSINESS_TIMEZONE: str = "Asia/Ho_Chi_Minh"  # Calendar day boundaries for "today" earnings
    PLATFORM_FEE_RATE: float = 0.15
    DEFAULT_WORKING_HOURS_SLOTS: List[str] = ["09:00-13:00", "13:00-17:00"]  # Each slot within the 4 hour cap
    JOB_HISTORY_DASHBOARD_LIMIT: int = 10

    # Background sweep of expired temporary unavailability (0 disables it)
    AVAILABILITY_SWEEP_INTERVAL_SECONDS: float = 0

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    """Settings loaded once per process; pass the instance explicitly from there on"""
    return Settings()
