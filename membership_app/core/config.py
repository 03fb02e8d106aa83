# membership_app/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,  # Environment vars are uppercase
        extra="ignore",      # Ignore unexpected vars instead of raising
    )

    # Core application settings
    DATABASE_URL: str
    HOST: str = "0.0.0.0"
    PORT: int = 8101
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_FILE: str = "app.log"
    AUDIT_LOG_FILE: str = "card_audit.log"

    # CORS settings
    ALLOWED_ORIGINS: list[str] = ["*"]  # In production, specify actual origins
    ALLOW_CREDENTIALS: bool = True
    ALLOWED_METHODS: list[str] = ["*"]
    ALLOWED_HEADERS: list[str] = ["*"]

    # JWT settings (tokens are issued by the login service)
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"

    # Membership lifecycle
    MEMBERSHIP_DURATION_DAYS: int = 365
    DEFAULT_MEMBERSHIP_FEE_CENTS: int = 2500  # €25.00

    # Card number ranges
    MAX_RANGE_SIZE: int = 1000

    # Daily expiration sweep
    EXPIRATION_SWEEP_ENABLED: bool = True
    EXPIRATION_SWEEP_HOUR: int = 5
    EXPIRATION_SWEEP_TIMEZONE: str = "Europe/Rome"


def _validate_settings(settings: Settings) -> None:
    """Validate critical application settings."""
    if not settings.DATABASE_URL:
        raise ValueError("DATABASE_URL is required")
    if not settings.JWT_SECRET:
        raise ValueError("JWT_SECRET is required")
    if settings.MAX_RANGE_SIZE <= 0:
        raise ValueError("MAX_RANGE_SIZE must be positive")
    if settings.MEMBERSHIP_DURATION_DAYS <= 0:
        raise ValueError("MEMBERSHIP_DURATION_DAYS must be positive")
    if not 0 <= settings.EXPIRATION_SWEEP_HOUR <= 23:
        raise ValueError("EXPIRATION_SWEEP_HOUR must be between 0 and 23")

    # Environment-specific validations
    if settings.ENVIRONMENT == "production" and settings.DEBUG:
        print("WARNING: DEBUG is enabled in production. Consider setting DEBUG=False.")


# Initialize settings with error handling
try:
    settings = Settings()
    _validate_settings(settings)
except Exception as e:
    print(f"Error initializing settings: {e}")
    raise
