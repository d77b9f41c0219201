"""Configuration management using environment variables"""
import os
import logging
import secrets
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


class Settings:
    """Application settings - only what the service reads at runtime"""

    def __init__(self):
        # Environment
        self.environment = os.getenv("ENVIRONMENT", "development")

        # JWT configuration for bearer authentication
        if self.environment == "production":
            self.session_secret = self._get_required("SESSION_SECRET")
        else:
            session_secret_env = os.getenv("SESSION_SECRET", "")
            if session_secret_env:
                self.session_secret = session_secret_env
            else:
                # Development: generate a random secret on startup
                self.session_secret = secrets.token_urlsafe(32)
                logger.warning(
                    "⚠️  No SESSION_SECRET provided - generated random secret for this process. "
                    "Tokens will not survive a restart. Set SESSION_SECRET in .env for persistent tokens."
                )

        self.jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")
        self.jwt_expiration_hours = int(os.getenv("JWT_EXPIRATION_HOURS", "24"))

        # Server configuration
        self.host = os.getenv("HOST", "0.0.0.0")
        self.port = int(os.getenv("PORT", "8000"))

        # Database configuration (SQLite by default, any async SQLAlchemy URL works)
        self.database_url = os.getenv(
            "DATABASE_URL",
            "sqlite+aiosqlite:///./exchange_programs.db"
        )

        # CORS origins (comma-separated list)
        self.cors_origins = os.getenv("CORS_ORIGINS", "")

        # Logging
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    def _get_required(self, key: str) -> str:
        """Get required environment variable or raise error."""
        value = os.getenv(key, "").strip()
        if not value:
            raise ValueError(
                f"Missing required environment variable: {key}. "
                f"Required in production mode."
            )
        return value

    @property
    def cors_origin_list(self) -> list:
        """CORS origins as a list, empty entries dropped"""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
