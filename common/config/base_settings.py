"""
Settings for the auth core.

Uses Pydantic Settings for automatic environment variable loading. The
settings object is resolved once at startup and handed to constructors;
it is frozen, so nothing can change the Firebase endpoints or the
database name after initialization.

Example:
    from common.config import load_settings

    settings = load_settings()
    settings.validate_required()
    print(settings.MONGODB_DATABASE)
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    """
    Auth core configuration.

    Automatically loads values from environment variables and ``.env``.
    """

    # ==========================================================================
    # Firebase Settings
    # ==========================================================================
    FIREBASE_API_KEY: Optional[str] = None
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_STORAGE_BUCKET: Optional[str] = None
    IDENTITY_TOOLKIT_URL: str = "https://identitytoolkit.googleapis.com/v1/accounts"
    FIREBASE_STORAGE_URL: str = "https://firebasestorage.googleapis.com/v0/b"
    # Redirect URI reported to signInWithIdp for Google credentials
    GOOGLE_REQUEST_URI: str = "http://localhost"

    # ==========================================================================
    # Database Settings
    # ==========================================================================
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "logincloud"
    USERS_COLLECTION: str = "users"

    # ==========================================================================
    # Phone Auth Settings
    # ==========================================================================
    OTP_RESEND_COOLDOWN_SECONDS: int = 60
    OTP_CODE_LENGTH: int = 6

    # ==========================================================================
    # Client Settings
    # ==========================================================================
    HTTP_TIMEOUT_SECONDS: float = 10.0
    APP_VERSION: str = "1.0"
    UPLOADS_ENABLED: bool = True
    ENVIRONMENT: str = "development"  # development, staging, production
    LOG_LEVEL: str = "INFO"

    # ==========================================================================
    # Pydantic Settings Configuration
    # ==========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
        case_sensitive=True,
        frozen=True,
    )

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT.lower() == "development"

    def validate_required(self) -> None:
        """
        Validate that required settings are configured.

        Raises:
            ValueError: If required settings are missing
        """
        errors = []

        if not self.FIREBASE_API_KEY:
            errors.append("FIREBASE_API_KEY is required for Firebase authentication")

        if self.UPLOADS_ENABLED and not self.FIREBASE_STORAGE_BUCKET:
            errors.append(
                "FIREBASE_STORAGE_BUCKET is required when profile uploads are enabled"
            )

        if self.OTP_RESEND_COOLDOWN_SECONDS < 0:
            errors.append("OTP_RESEND_COOLDOWN_SECONDS must not be negative")

        if errors:
            raise ValueError("Configuration errors:\n- " + "\n- ".join(errors))


def load_settings(**overrides) -> AuthSettings:
    """Resolve settings once, at startup."""
    return AuthSettings(**overrides)
