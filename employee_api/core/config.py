# employee_api/core/config.py
import re
import logging
from datetime import timedelta
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$")
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}


def parse_duration(value: str) -> timedelta:
    """Parse a duration such as ``7d``, ``12h``, ``30m`` or ``3600``."""
    match = _DURATION_RE.match(str(value).lower())
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


class Settings(BaseSettings):
    """Server settings"""
    # Authentication
    JWT_SECRET: str
    JWT_EXPIRE: str = "7d"
    JWT_ALGORITHM: str = "HS256"

    # Database
    DATABASE_URL: str
    SQL_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # Uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024

    # HTTP server
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    CORS_ORIGINS: List[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "server.log"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    @field_validator("JWT_SECRET", "DATABASE_URL")
    @classmethod
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("JWT_EXPIRE")
    @classmethod
    def validate_expire(cls, v):
        parse_duration(v)
        return v

    @property
    def token_ttl(self) -> timedelta:
        return parse_duration(self.JWT_EXPIRE)


@lru_cache()
def get_settings() -> Settings:
    """Load settings once; missing required values abort startup."""
    settings = Settings()

    # Log configuration (excluding sensitive information)
    safe = settings.model_dump(exclude={"JWT_SECRET", "DATABASE_URL"})
    logger.info(f"Server configuration loaded: {safe}")
    return settings
