from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    """Configuration settings for the application."""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    PROJECT_NAME: str = "KHAO Delivery API"
    ENVIRONMENT: str = "development"

    MONGO_URI: str = "mongodb://localhost:27017"
    DB_NAME: str = "khao_db"
    # transactions need a replica set; standalone servers must turn this off
    MONGO_TRANSACTIONS: bool = True

    REDIS_URL: str = "redis://localhost:6379/0"

    JWT_SECRET: str = "khao_secret_key_min_32_chars_long"
    JWT_REFRESH_SECRET: str = "khao_refresh_secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION: int = 3600
    JWT_REFRESH_EXPIRATION: int = 604800

    OTP_EXPIRY_MINUTES: int = 10
    OTP_LENGTH: int = 4
    OTP_DEV_BYPASS_CODE: Optional[str] = None

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_REQUESTS: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @model_validator(mode="after")
    def check_security_settings(self):
        if self.JWT_SECRET == self.JWT_REFRESH_SECRET:
            raise ValueError("JWT_SECRET and JWT_REFRESH_SECRET must be different")
        if self.OTP_DEV_BYPASS_CODE and self.is_production:
            raise ValueError("OTP_DEV_BYPASS_CODE cannot be set in production")
        if not 4 <= self.OTP_LENGTH <= 8:
            raise ValueError("OTP_LENGTH must be between 4 and 8")
        return self


@lru_cache()
def get_settings() -> Settings:
    return Settings()
