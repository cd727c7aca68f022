"""
Application configuration and environment settings.
"""
from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List, Union


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Fairshare"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000", "http://localhost:5173"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # Remote settlement service (pairs + balances are computed there)
    SETTLEMENT_API_URL: str = "http://settlement:8000/api"
    SETTLEMENT_API_TOKEN: str = ""  # Sent as a Bearer token when set
    SETTLEMENT_TIMEOUT: float = 10.0  # Seconds, per request

    # Money
    DEFAULT_CURRENCY: str = "USD"

    @field_validator("DEFAULT_CURRENCY")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.strip().upper()

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
