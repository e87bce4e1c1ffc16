"""
Centralized configuration for the Behavior Insights engine.

All settings are loaded from environment variables via .env file.
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings."""

    # Sessions
    session_timeout_seconds: int = Field(default=30 * 60, env="SESSION_TIMEOUT_SECONDS")
    max_sessions: int = Field(default=50, env="MAX_SESSIONS")
    activity_feed_size: int = Field(default=10, env="ACTIVITY_FEED_SIZE")

    # Pattern mining
    pattern_analysis_interval: float = Field(default=60.0, env="PATTERN_ANALYSIS_INTERVAL")

    # Storage
    storage_backend: str = Field(default="file", env="STORAGE_BACKEND")  # file | memory
    storage_directory: str = Field(default="./data/sessions", env="STORAGE_DIRECTORY")

    # Lead scoring
    lead_score_threshold_hot: int = Field(default=70, env="LEAD_SCORE_THRESHOLD_HOT")
    lead_score_threshold_warm: int = Field(default=45, env="LEAD_SCORE_THRESHOLD_WARM")
    urgency_window_hours: int = Field(default=48, env="URGENCY_WINDOW_HOURS")

    # API
    api_host: str = Field(default="0.0.0.0", env="API_HOST")
    api_port: int = Field(default=8000, env="API_PORT")
    api_title: str = Field(default="Behavior Insights API", env="API_TITLE")
    api_version: str = Field(default="1.0.0", env="API_VERSION")
    cors_origins: str = Field(default="*", env="CORS_ORIGINS")

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    debug: bool = Field(default=False, env="DEBUG")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def is_file_storage(self) -> bool:
        return self.storage_backend.lower() == "file"

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
