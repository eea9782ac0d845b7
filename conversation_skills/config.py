from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Session lifecycle
    # Idle window after which an active skill is abandoned (checked lazily on access)
    SESSION_TTL_SECONDS: int = 300

    # Consecutive unrecognized inputs before a skill gives up and cancels
    MAX_UNRECOGNIZED_TURNS: int = 3

    # Storage Configuration
    # "memory" loses sessions on restart, "sql" needs DATABASE_URL
    SESSION_BACKEND: Literal["memory", "sql"] = "memory"
    DATABASE_URL: str | None = None

    # Skill Configuration
    # What a "no" at the booking confirmation does
    RESTAURANT_DENY_ACTION: Literal["restart", "cancel"] = "restart"

    LOG_LEVEL: str = "INFO"

    # Loads from a .env file in the root directory
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

# Singleton instance
settings = Settings()
