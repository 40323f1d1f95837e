"""
Application settings and configuration.
All secrets are loaded from environment variables.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Twilio Configuration
    twilio_account_sid: str
    twilio_auth_token: str
    twilio_whatsapp_number: str  # Format: whatsapp:+14155238886

    # Database - Use DATA_DIR for persistent volumes, DATABASE_URL to point elsewhere
    data_dir: str = "."
    database_url_override: Optional[str] = Field(default=None, alias="DATABASE_URL")

    @property
    def database_url(self) -> str:
        """Database URL, defaulting to a SQLite file inside data_dir."""
        if self.database_url_override:
            return self.database_url_override
        return f"sqlite+aiosqlite:///{self.data_dir}/family_assistant.db"

    # Application Settings
    debug: bool = False
    log_level: str = "INFO"
    validate_twilio_signature: bool = True

    # Reference timezone: every stored timestamp is naive wall-clock time in this zone
    timezone: str = "UTC"

    # Reminder scheduler
    reminder_poll_interval_seconds: float = 30.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
