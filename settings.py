"""
Application settings and environment configuration.
Centralized configuration management for the video sharing backend.
"""
import os
from typing import List

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEFAULT_JWT_SECRET = "change-me-video-share-secret"


def _env_bool(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Application settings loaded from environment variables."""

    # Application Settings
    APP_NAME: str = "Video Sharing API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Server Configuration
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
    DATABASE_NAME: str = os.getenv("DATABASE_NAME", "videoshare")
    # Multi-document transactions need a replica set
    USE_TRANSACTIONS: bool = _env_bool("USE_TRANSACTIONS")

    # Auth
    JWT_SECRET: str = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_HOURS: int = int(os.getenv("JWT_EXPIRE_HOURS", "24"))
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # CORS Settings
    CORS_ORIGINS: List[str] = [
        o.strip()
        for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
        if o.strip()
    ]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: List[str] = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]
    CORS_ALLOW_HEADERS: List[str] = ["Content-Type", "Authorization"]

    # Display defaults
    DEFAULT_AVATAR: str = "https://via.placeholder.com/150"
    DEFAULT_CHANNEL_AVATAR: str = "https://via.placeholder.com/150"
    DEFAULT_BANNER: str = "https://via.placeholder.com/1200x300"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    def validate(self) -> None:
        """Validate required settings."""
        if self.is_production and self.JWT_SECRET == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET environment variable is required in production")
        if self.JWT_EXPIRE_HOURS <= 0:
            raise ValueError("JWT_EXPIRE_HOURS must be positive")


# Global settings instance
settings = Settings()
