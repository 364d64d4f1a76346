"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports two modes:
    - DEVELOPMENT: In-memory document store and mock payments (no credentials needed)
    - PRODUCTION / STAGING: MongoDB and Stripe

The ENV_MODE variable controls which services are instantiated throughout
the application. Setting a MongoDB URI (or DB_USER/DB_SECRET) also switches
development mode onto the real database.

Usage:
    from app.core.config import get_settings

    settings = get_settings()
    if settings.is_development:
        # In-memory store, mock payments
    else:
        # MongoDB, Stripe
"""

import logging
import sys
from enum import Enum
from typing import Optional
from functools import lru_cache
from urllib.parse import quote_plus

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing with in-memory store and mock payments
        PRODUCTION: Live environment with MongoDB and Stripe
        STAGING: Pre-production with real services but test keys
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Secrets (token secret, Stripe key, database password) should NEVER be
    committed to version control.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Bistro Boss Server",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=5000,
        validation_alias=AliasChoices("api_port", "port"),
        description="API server port (PORT is accepted too)"
    )
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    # ==========================================================================
    # MONGODB
    # ==========================================================================

    mongodb_uri: Optional[str] = Field(
        default=None,
        description="Full MongoDB connection string (takes precedence over DB_*)"
    )
    db_user: Optional[str] = Field(
        default=None,
        description="MongoDB Atlas user"
    )
    db_secret: Optional[str] = Field(
        default=None,
        description="MongoDB Atlas password"
    )
    db_host: str = Field(
        default="cluster0.mongodb.net",
        description="MongoDB Atlas cluster host"
    )
    database_name: str = Field(
        default="bistroBoss",
        description="Database holding the users/menu/reviews/carts/payments collections"
    )

    # ==========================================================================
    # ACCESS TOKENS
    # ==========================================================================

    access_token_secret: str = Field(
        default="change-me",
        description="HMAC secret used to sign access tokens"
    )
    access_token_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm"
    )
    access_token_expire_minutes: int = Field(
        default=60,
        description="Access token lifetime in minutes"
    )

    # ==========================================================================
    # STRIPE PAYMENT GATEWAY
    # ==========================================================================

    stripe_secret_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("stripe_secret_key", "payment_secret_key"),
        description="Stripe API secret key (sk_live_... or sk_test_...)"
    )
    stripe_currency: str = Field(
        default="usd",
        description="Currency for payment intents"
    )
    mock_payment_failure_rate: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Probability of a simulated decline in development mode"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def use_real_services(self) -> bool:
        """Check if real external services should be used."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)

    @property
    def resolved_mongodb_uri(self) -> Optional[str]:
        """
        MongoDB URI, either given verbatim or assembled from Atlas credentials.

        Returns None when neither form is configured.
        """
        if self.mongodb_uri:
            return self.mongodb_uri
        if self.db_user and self.db_secret:
            return (
                f"mongodb+srv://{quote_plus(self.db_user)}:{quote_plus(self.db_secret)}"
                f"@{self.db_host}/?retryWrites=true&w=majority"
            )
        return None

    @property
    def cors_origins_list(self) -> list[str]:
        """Get allowed CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_production_config(self) -> list[str]:
        """
        Validate that all required production settings are configured.

        Returns:
            List of missing configuration keys (empty if all present)
        """
        missing = []

        if self.use_real_services:
            if not self.stripe_secret_key:
                missing.append("PAYMENT_SECRET_KEY")
            if not self.resolved_mongodb_uri:
                missing.append("MONGODB_URI")
            if self.access_token_secret == "change-me":
                missing.append("ACCESS_TOKEN_SECRET")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once per process; call ``get_settings.cache_clear()``
    after changing the environment (tests do this).
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured application logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)

    return logging.getLogger("app")
