"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports two checkout shapes:
    - PAYMENT_PROVIDER=none: checkout immediately places the order
    - PAYMENT_PROVIDER=mock|paystack|stripe: checkout opens a payment
      transaction and the order is placed once the gateway confirms it

Usage:
    from orderbot.core.config import get_settings

    settings = get_settings()
    if settings.payments_enabled:
        # Checkout goes through the payment gateway
    else:
        # Checkout places the order right away

Author: Your Name
Version: 2.0.0
"""

import logging
import sys
from enum import Enum
from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing
        PRODUCTION: Live environment with real gateway credentials
        STAGING: Pre-production testing with gateway test keys
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class PaymentProvider(str, Enum):
    """
    Payment gateway used at checkout.

    Attributes:
        NONE: No external payment, checkout finalizes the order at once
        MOCK: In-process simulated gateway (no network)
        PAYSTACK: Paystack REST API
        STRIPE: Stripe Checkout Sessions
    """
    NONE = "none"
    MOCK = "mock"
    PAYSTACK = "paystack"
    STRIPE = "stripe"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Sensitive values (API keys) should NEVER be committed to version control.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # Chat
        restaurant_name: Name shown in the welcome line of the main menu
        currency_symbol: Prefix for prices in replies
        session_cookie_name: Cookie carrying the anonymous session token

        # Payments
        payment_provider: Which gateway handles checkout
        callback_base_url: Public base URL the gateway redirects back to
        paystack_secret_key: Paystack secret key (sk_live_... or sk_test_...)
        stripe_secret_key: Stripe API secret key
        gateway_timeout_seconds: Upper bound for every gateway call
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
        default="Restaurant Chat Ordering Bot",
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
        default=4000,
        description="API server port"
    )

    # ==========================================================================
    # CHAT
    # ==========================================================================

    restaurant_name: str = Field(
        default="Dummy Restaurant",
        description="Restaurant display name"
    )
    currency_symbol: str = Field(
        default="₦",
        description="Currency symbol prefixed to prices"
    )
    session_cookie_name: str = Field(
        default="sessionId",
        description="Name of the HTTP-only session cookie"
    )

    # ==========================================================================
    # PAYMENT GATEWAY
    # ==========================================================================

    payment_provider: PaymentProvider = Field(
        default=PaymentProvider.NONE,
        description="Gateway used at checkout"
    )
    callback_base_url: Optional[str] = Field(
        default=None,
        description="Public base URL for gateway callbacks (e.g. https://bot.example.com)"
    )
    gateway_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout applied to every gateway call"
    )

    # ==========================================================================
    # PAYSTACK
    # ==========================================================================

    paystack_secret_key: Optional[str] = Field(
        default=None,
        description="Paystack secret key (sk_live_... or sk_test_...)"
    )
    paystack_base_url: str = Field(
        default="https://api.paystack.co",
        description="Paystack API base URL"
    )
    paystack_customer_email: str = Field(
        default="customer@example.com",
        description="Email sent to Paystack for anonymous chat customers"
    )

    # ==========================================================================
    # STRIPE
    # ==========================================================================

    stripe_secret_key: Optional[str] = Field(
        default=None,
        description="Stripe API secret key (sk_live_... or sk_test_...)"
    )
    stripe_currency: str = Field(
        default="ngn",
        description="Currency for Stripe Checkout Sessions"
    )

    # ==========================================================================
    # MOCK GATEWAY
    # ==========================================================================

    mock_failure_rate: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Probability that the mock gateway fails a call"
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

    @field_validator("payment_provider", mode="before")
    @classmethod
    def validate_payment_provider(cls, v: str) -> PaymentProvider:
        """Convert string to PaymentProvider enum."""
        if isinstance(v, PaymentProvider):
            return v
        try:
            return PaymentProvider((v or "none").lower())
        except ValueError:
            valid = [p.value for p in PaymentProvider]
            raise ValueError(f"Invalid payment_provider. Must be one of: {valid}")

    @field_validator("callback_base_url", "paystack_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        """Normalize base URLs so paths can be appended with a single slash."""
        if v is None:
            return v
        v = v.strip()
        return v.rstrip("/") or None

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env_mode == EnvironmentMode.PRODUCTION

    @property
    def payments_enabled(self) -> bool:
        """Check if checkout goes through a payment gateway."""
        return self.payment_provider != PaymentProvider.NONE

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_payment_config(self) -> list[str]:
        """
        List payment settings the selected provider needs but lacks.

        Missing values are not fatal: checkout replies with a graceful
        failure notice until they are configured.

        Returns:
            List of missing configuration keys (empty if all present)
        """
        missing = []

        if self.payments_enabled and not self.callback_base_url:
            missing.append("CALLBACK_BASE_URL")
        if self.payment_provider == PaymentProvider.PAYSTACK and not self.paystack_secret_key:
            missing.append("PAYSTACK_SECRET_KEY")
        if self.payment_provider == PaymentProvider.STRIPE and not self.stripe_secret_key:
            missing.append("STRIPE_SECRET_KEY")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once,
    improving performance and ensuring consistency across
    the application lifecycle.

    Returns:
        Settings: Configured application settings

    Example:
        >>> settings = get_settings()
        >>> print(settings.payment_provider)
        PaymentProvider.NONE
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
        Configured root logger
    """
    settings = get_settings()

    # Set level based on debug mode
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
    logging.getLogger("stripe").setLevel(logging.WARNING)

    return logging.getLogger("orderbot")
