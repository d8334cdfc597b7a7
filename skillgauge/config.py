"""Application configuration module."""

from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings."""

    # Database settings
    DATABASE_URL: str = "sqlite:///./skillgauge.db"
    SQL_ECHO: bool = False
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30

    # Token settings
    JWT_SECRET_KEY: str = "dev_secret_change_me"
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "skillgauge-api"
    JWT_AUDIENCE: str = "skillgauge-spa"
    JWT_EXPIRES_MINUTES: int = 720

    # Password hashing
    PASSWORD_HASH_ITERATIONS: int = 100000

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    LOG_FILE: Optional[str] = None

    # API settings
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "SkillGauge Assessments"
    CORS_ORIGINS: List[str] = ["http://localhost:3002"]

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


# Create global settings instance
settings = Settings()
