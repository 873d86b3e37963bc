"""
Application Configuration

Centralized configuration management using Pydantic Settings.
Loads configuration from environment variables.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from sqlalchemy.engine import URL, make_url
from typing import List, Any
from functools import lru_cache
import json


DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8080"]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    """

    # Application
    APP_NAME: str = "Visit Tracker"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # HTTP server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Database
    # DATABASE_URL takes precedence over the individual DB_* parts when set
    DATABASE_URL: str = ""
    DB_HOST: str = "localhost"
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    DB_NAME: str = "visit_tracker"
    DB_PORT: int = 3306

    # Connection pool
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 0
    DB_POOL_TIMEOUT: int = 60  # seconds to wait for a free connection
    DB_CONNECT_TIMEOUT: int = 60  # connect/read timeout (MySQL driver)
    DB_ECHO_SQL: bool = False

    # Admin
    # Required: the API refuses to start without it
    ADMIN_PASSWORD: str = ""

    # Visit timestamps are stored in server-local time at this fixed UTC offset
    TIMEZONE_OFFSET_HOURS: int = 8

    # CORS (comma-separated or JSON list)
    CORS_ORIGINS: str = ",".join(DEFAULT_CORS_ORIGINS)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    # Log uncaught exceptions and exit(1) so a supervisor restarts the process
    EXIT_ON_UNCAUGHT_ERROR: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def normalize_cors_origins(cls, value: Any) -> Any:
        """Accept a list from code and store it in the comma-separated form."""
        if isinstance(value, list):
            return ",".join(str(item) for item in value)
        if value is None:
            return ""
        return value

    @field_validator("TIMEZONE_OFFSET_HOURS")
    @classmethod
    def validate_timezone_offset(cls, value: int) -> int:
        if not -12 <= value <= 14:
            raise ValueError("TIMEZONE_OFFSET_HOURS must be between -12 and 14")
        return value

    @property
    def cors_origin_list(self) -> List[str]:
        """
        Get CORS origins as a list.

        Parses from string format (comma-separated or JSON).
        """
        value = self.CORS_ORIGINS.strip()
        if not value:
            return list(DEFAULT_CORS_ORIGINS)

        # Try JSON first
        try:
            parsed = json.loads(value)
            if isinstance(parsed, list):
                return [str(item) for item in parsed]
        except (json.JSONDecodeError, TypeError):
            pass

        origins = [origin.strip() for origin in value.split(",") if origin.strip()]
        return origins or list(DEFAULT_CORS_ORIGINS)

    @property
    def database_url(self) -> URL:
        """
        Get the SQLAlchemy URL of the visit store.

        Uses DATABASE_URL verbatim when set, otherwise builds a MySQL URL
        from the DB_* settings.
        """
        if self.DATABASE_URL:
            return make_url(self.DATABASE_URL)
        return URL.create(
            "mysql+pymysql",
            username=self.DB_USER,
            password=self.DB_PASSWORD or None,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
            query={"charset": "utf8mb4"},
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
