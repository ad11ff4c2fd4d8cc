"""
Payment Gateway Factory

Provides a single entry point for obtaining a payment gateway instance.
The factory pattern allows the rest of the application to remain agnostic
about which implementation is being used.

Usage:
    from orderbot.services.payment import get_payment_gateway

    # Returns None, MockPaymentGateway, PaystackPaymentGateway or
    # StripePaymentGateway based on PAYMENT_PROVIDER
    gateway = get_payment_gateway()

Provider Switching:
    - PAYMENT_PROVIDER=none → None (checkout places the order directly)
    - PAYMENT_PROVIDER=mock → MockPaymentGateway (no API calls)
    - PAYMENT_PROVIDER=paystack → PaystackPaymentGateway
    - PAYMENT_PROVIDER=stripe → StripePaymentGateway

Author: Your Name
Version: 2.0.0
"""

import logging
from functools import lru_cache
from typing import Optional

from orderbot.core.config import PaymentProvider, get_settings
from orderbot.services.payment.base import (
    BasePaymentGateway,
    TransactionResult,
    VerificationResult,
    STATUS_SUCCESS,
)
from orderbot.services.payment.mock import MockPaymentGateway
from orderbot.services.payment.paystack import PaystackPaymentGateway
from orderbot.services.payment.stripe import StripePaymentGateway

logger = logging.getLogger(__name__)


@lru_cache()
def get_payment_gateway() -> Optional[BasePaymentGateway]:
    """
    Get the configured payment gateway instance.

    The instance is cached (singleton pattern) so that transactions opened
    by one request can be verified by another.

    Returns:
        Optional[BasePaymentGateway]: Configured gateway, or None when
        payments are disabled

    Example:
        >>> gateway = get_payment_gateway()
        >>> print(gateway.provider_name if gateway else "none")
        'none'  # With the default configuration
    """
    settings = get_settings()
    provider = settings.payment_provider

    if provider == PaymentProvider.NONE:
        logger.info("Payment Gateway: disabled (orders are placed at checkout)")
        return None

    if provider == PaymentProvider.MOCK:
        logger.info("Payment Gateway: Using MockPaymentGateway")
        return MockPaymentGateway(
            failure_rate=settings.mock_failure_rate,
            min_latency=0.2 if settings.is_development else 0.0,
            max_latency=0.8 if settings.is_development else 0.0,
        )

    if provider == PaymentProvider.STRIPE:
        logger.info(
            f"Payment Gateway: Using StripePaymentGateway "
            f"({settings.env_mode.value} mode)"
        )
        return StripePaymentGateway(settings)

    logger.info(
        f"Payment Gateway: Using PaystackPaymentGateway "
        f"({settings.env_mode.value} mode)"
    )
    return PaystackPaymentGateway(settings)


def reset_payment_gateway() -> None:
    """
    Clear the cached payment gateway instance.

    Useful for testing or when configuration changes at runtime.
    The next call to get_payment_gateway() will create a new instance.
    """
    get_payment_gateway.cache_clear()
    logger.debug("Payment gateway cache cleared")


# Export commonly used types and functions
__all__ = [
    "get_payment_gateway",
    "reset_payment_gateway",
    "BasePaymentGateway",
    "TransactionResult",
    "VerificationResult",
    "STATUS_SUCCESS",
    "MockPaymentGateway",
    "PaystackPaymentGateway",
    "StripePaymentGateway",
]
