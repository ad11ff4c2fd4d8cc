"""
                        Services Module

Contains the checkout-side services.

Services:
    - payment: payment gateways (mock, Paystack, Stripe) behind one interface
    - correlator: links pending checkouts to gateway transactions
"""

from orderbot.services.correlator import (
    PaymentCorrelator,
    CheckoutResult,
    ConfirmationOutcome,
)

__all__ = ["PaymentCorrelator", "CheckoutResult", "ConfirmationOutcome"]
