"""
Application settings
Loaded from environment variables and the .env file
"""

from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings for the partner portal backend"""

    # Application
    APP_NAME: str = "Partner Portal"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development, production
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    # Database (SQLite locally, PostgreSQL in production)
    DATABASE_URL: str = "sqlite:///./partner_portal.db"

    # Sessions
    SESSION_LIFETIME_HOURS: int = 30 * 24  # 30 days, sliding
    SESSION_COOKIE_NAME: str = "session_id"

    # Password hashing
    BCRYPT_ROUNDS: int = 12

    # CORS, comma separated
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def cors_origins(self) -> List[str]:
        return [i.strip() for i in self.CORS_ORIGINS.split(",") if i.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    model_config = {
        "case_sensitive": True,
        "env_file": ".env",
        "extra": "ignore",
    }


settings = Settings()
