"""
Runtime configuration for the desktop service.

Values come from the environment, falling back to a .env file in the
project root.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.services.geometry import (
    DROP_PADDING,
    FILE_DROP_THRESHOLD,
    FOLDER_DROP_THRESHOLD,
    ICON_SIZE,
    MAX_CLAMP_ATTEMPTS,
    SNAP_MARGIN,
)

BASE_DIR = Path(__file__).resolve().parents[1]
ENV_PATH = BASE_DIR / ".env"

# Platform-provided environment variables win over .env defaults
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    app_name: str = Field(default="Desktop Spatial API", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Desktop geometry
    icon_size: float = Field(default=ICON_SIZE, gt=0, alias="DESKTOP_ICON_SIZE")
    drop_padding: float = Field(default=DROP_PADDING, ge=0, alias="DESKTOP_DROP_PADDING")
    snap_margin: float = Field(default=SNAP_MARGIN, ge=0, alias="DESKTOP_SNAP_MARGIN")
    file_drop_threshold: float = Field(default=FILE_DROP_THRESHOLD, ge=0, le=1, alias="DESKTOP_FILE_DROP_THRESHOLD")
    folder_drop_threshold: float = Field(default=FOLDER_DROP_THRESHOLD, ge=0, le=1, alias="DESKTOP_FOLDER_DROP_THRESHOLD")
    max_clamp_attempts: int = Field(default=MAX_CLAMP_ATTEMPTS, ge=1, alias="DESKTOP_MAX_CLAMP_ATTEMPTS")

    # Hosted backend; in-memory storage when no URL is configured
    backend_url: Optional[str] = Field(default=None, alias="BACKEND_URL")
    backend_key: Optional[str] = Field(default=None, alias="BACKEND_KEY")
    backend_timeout: float = Field(default=10.0, gt=0, alias="BACKEND_TIMEOUT")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
