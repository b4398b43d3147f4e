# ============================================================================
# FILE: app/config.py
# ============================================================================
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    """Application configuration using Pydantic BaseSettings"""

    # App settings
    APP_NAME: str = "Herd"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./herd.db"  # Change to PostgreSQL in production

    # Security
    SECRET_KEY: str = "your-secret-key-change-this-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    AUTH_COOKIE_NAME: str = "access_token"
    AUTH_COOKIE_SECURE: bool = False

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Streaming history ingestion
    INGEST_BATCH_SIZE: int = 500
    HISTORY_IMPORT_DIR: str = "."
    BULK_SYNC_ON_STARTUP: bool = True
    SYNC_DEFAULT_USERNAME: str = ""  # owner of unprefixed Streaming_History_Audio files

    # Users
    DEFAULT_AVATAR: str = "goat"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

settings = Settings()
