"""Configuration management for the Gitea Slack notifier."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database (thread handles per pull request)
    database_url: str = "sqlite:///./gitea_notifier.db"

    # Gitea
    gitea_api_token: str = ""
    gitea_webhook_secret: str = ""

    # Slack
    slack_api_token: str = ""
    slack_channel: str = ""

    # Outbound HTTP
    http_timeout_seconds: float = 30.0

    # App
    log_level: str = "INFO"
    env: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
