# config/settings.py
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """
    Project settings.
    Values come from environment variables or the .env file; the runtime
    knobs below can also be overridden per installation in data/config.csv.
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Root folder holding data/ (CSV tables) and files/ (uploads, documents)
    STORAGE_DIR: str = str(BASE_DIR)

    # Runtime knobs (defaults for data/config.csv)
    MAX_FILE_UPLOAD_MB: int = 10
    RETIREMENT_AGE_YEARS: int = 60
    MAX_LOG_ENTRIES: int = 1000
    MAX_REPORT_PREVIEW_ROWS: int = 100
    NOTIFICATION_WINDOW_DAYS: int = 30

    # Background status sync; 0 disables the scheduler
    STATUS_SYNC_INTERVAL_MINUTES: int = 60

    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]
    LOG_LEVEL: str = "INFO"


settings = Settings()
