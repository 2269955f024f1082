"""Application configuration management."""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # Database
    DATABASE_URL: str

    @property
    def async_database_url(self) -> str:
        """Get DATABASE_URL with asyncpg driver for async SQLAlchemy.

        Converts postgresql:// to postgresql+asyncpg:// automatically.
        SQLite URLs (sqlite+aiosqlite://) are returned unchanged.
        """
        if self.DATABASE_URL.startswith("postgresql://"):
            return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)
        return self.DATABASE_URL

    # Application
    ENVIRONMENT: str = "development"  # development, staging, or production
    DEBUG: bool = False
    APP_URL: str = "http://localhost:3000"  # Public origin, drives cookie domain scoping
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Session Configuration
    SESSION_COOKIE_NAME: str = "pms_session"
    SESSION_EXPIRY_DAYS: int = 30
    SESSION_CLEANUP_INTERVAL_MINUTES: int = 60

    # Bulk profile upload limits
    BULK_UPLOAD_MAX_ROWS: int = 100
    BULK_UPLOAD_MAX_BYTES: int = 10 * 1024 * 1024

    # Default Admin User (optional - for automatic bootstrapping on startup)
    ADMIN_EMAIL: str = ""  # If set, creates admin user + default workspace on startup
    ADMIN_PASSWORD: str = ""  # Required if ADMIN_EMAIL is set
    ADMIN_NAME: str = "Admin"
    DEFAULT_WORKSPACE_NAME: str = "Default Workspace"

    @property
    def is_production(self) -> bool:
        """True when running with ENVIRONMENT=production."""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def session_max_age_seconds(self) -> int:
        """Session lifetime in seconds, used for the cookie max-age."""
        return self.SESSION_EXPIRY_DAYS * 24 * 3600

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
