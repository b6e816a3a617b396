"""
Configuration management for the auth service
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Auth service configuration loaded from environment variables"""

    # Service Configuration
    APP_NAME: str = "User Auth API"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./app.db"

    # Token Configuration
    JWT_SECRET_KEY: str = "change-this-secret-in-prod"
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "user-auth-api"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    TOKEN_BLACKLIST_ENABLED: bool = True

    # Use pbkdf2_sha256 to avoid external bcrypt backend issues in some environments
    PASSWORD_SCHEMES: List[str] = ["pbkdf2_sha256"]

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )


# Global settings instance
settings = Settings()
