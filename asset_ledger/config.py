from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==============================
    # Application
    # ==============================
    APP_NAME: str = "Asset Ledger"
    ENVIRONMENT: str = "local"

    # ==============================
    # Database
    # ==============================
    DATABASE_URL: str = "sqlite:///./asset_ledger.db"

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # ==============================
    # Reference defaults
    # ==============================
    DEFAULT_PREPARED_BY: str = "Admin User"
    DEFAULT_APPROVED_BY: str = "Manager"
    PERSON_EMAIL_DOMAIN: str = "example.com"

    # ==============================
    # Listing
    # ==============================
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100
    QUICK_SEARCH_LIMIT: int = 20

    # ==============================
    # Stock
    # ==============================
    STOCK_ALLOW_OVERISSUE: bool = True

    # ==============================
    # Attachments
    # ==============================
    ATTACHMENT_BACKEND: str = "database"
    ATTACHMENT_DIR: str = "var/attachments"


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
