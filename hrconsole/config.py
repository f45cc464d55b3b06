"""Application configuration via environment variables."""

import json
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Remote HR backend
    HR_API_BASE_URL: str = "http://localhost:8080/api"
    HR_API_TIMEOUT_SECONDS: float = 10.0
    DIRECTORY_LOOKUP_TIMEOUT_SECONDS: float = 5.0

    # Notification fan-out
    NOTIFY_FALLBACK_LIMIT: int = 5
    NOTIFY_ADMIN_CAPABILITY: str = "leave:approve"

    # Auth: JWT_SECRET must be set via environment or .env (no default)
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"

    # App
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "info"
    CORS_ORIGINS: str = '["http://localhost:3000"]'
    RATE_LIMIT_DEFAULT: str = "60/minute"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS_ORIGINS JSON string into a list."""
        try:
            return json.loads(self.CORS_ORIGINS)
        except (json.JSONDecodeError, TypeError):
            return ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
