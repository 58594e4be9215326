# pagecast/core/config.py
from datetime import timedelta
import logging

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings, read from PAGECAST_* environment variables or .env"""
    APP_NAME: str = "Pagecast"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Session lifetime
    SESSION_TTL_SECONDS: int = Field(default=24 * 60 * 60)
    SWEEP_INTERVAL_SECONDS: int = Field(default=60 * 60)

    # Validation policy
    VALIDATE_INPUT: bool = True
    MAX_ID_LENGTH: int = 100
    MAX_PAYLOAD_BYTES: int = 1_000_000

    # Registry
    LOCK_TIMEOUT_SECONDS: float = 5.0

    # Rate limiting (off unless explicitly enabled)
    RATE_LIMIT_ENABLED: bool = False
    RATE_LIMIT_DEFAULT: str = "600/minute"

    model_config = {
        "env_prefix": "PAGECAST_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"
    }

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(seconds=self.SESSION_TTL_SECONDS)


settings = Settings()


def get_settings() -> Settings:
    """Return the process-wide settings instance"""
    return settings


def validate_settings(config: Settings = None) -> bool:
    """Warn about settings that make the service misbehave; never raises"""
    config = config or settings
    problems = []

    if config.SESSION_TTL_SECONDS <= 0:
        problems.append("SESSION_TTL_SECONDS must be positive (every sweep would drop all sessions)")

    if config.SWEEP_INTERVAL_SECONDS <= 0:
        problems.append("SWEEP_INTERVAL_SECONDS must be positive (expired sessions are never swept)")

    if config.MAX_PAYLOAD_BYTES <= 0:
        problems.append("MAX_PAYLOAD_BYTES must be positive")

    if config.LOCK_TIMEOUT_SECONDS <= 0:
        problems.append("LOCK_TIMEOUT_SECONDS must be positive")

    for problem in problems:
        logger.warning(f"Invalid setting: {problem}")

    return not problems
