"""Application configuration via environment variables."""

import json
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "info"
    CORS_ORIGINS: str = '["http://localhost:3000"]'

    # Balance engine
    CARRY_OVER_MAX_DEPTH: int = 5
    MAX_POLICY_YEAR_SPAN: int = 50
    DEFAULT_WORKING_DAYS: str = "[0, 1, 2, 3, 4]"
    SPLIT_ALLOCATION_FALLBACK: str = "full"

    # Rate limiting
    RATE_LIMIT_DEFAULT: str = "60/minute"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS_ORIGINS JSON string into a list."""
        try:
            return json.loads(self.CORS_ORIGINS)
        except (json.JSONDecodeError, TypeError):
            return ["http://localhost:3000"]

    @property
    def default_working_days(self) -> set[int]:
        """Parse DEFAULT_WORKING_DAYS into weekday indices (0=Mon … 6=Sun)."""
        try:
            days = json.loads(self.DEFAULT_WORKING_DAYS)
            return {int(d) for d in days if 0 <= int(d) <= 6}
        except (json.JSONDecodeError, TypeError, ValueError):
            return {0, 1, 2, 3, 4}

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
