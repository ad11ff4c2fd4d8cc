"""
Payment Gateway Abstract Base Class

Defines the interface contract for all payment gateway implementations.
MockPaymentGateway, PaystackPaymentGateway and StripePaymentGateway all
implement these methods, so the checkout flow behaves the same whichever
one is active.

Design Pattern: Strategy Pattern
    - Allows runtime switching between payment providers
    - New providers can be added without modifying existing code
    - Facilitates testing with mock implementations

Contract:
    Implementations raise GatewayError for any network failure,
    timeout, non-2xx response, malformed body or missing credential.
    A declined or abandoned payment is NOT an error: it is reported
    through VerificationResult.status.

Author: Your Name
Version: 2.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from orderbot.menu import MenuItem

# Gateway status that marks a transaction as paid
STATUS_SUCCESS = "success"

# Statuses of a transaction that may still settle either way
PENDING_STATUSES = frozenset({"pending", "ongoing", "processing", "queued"})


@dataclass
class TransactionResult:
    """
    Standardized result from opening a payment transaction.

    Attributes:
        reference: Our correlation reference, echoed by the gateway
        authorization_url: Hosted page where the customer pays
        access_code: Provider-side transaction handle (Paystack access code,
            Stripe Checkout Session id)
        amount: Amount requested in whole currency units
        response_time_ms: Time taken by the provider call
    """
    reference: str
    authorization_url: str
    access_code: Optional[str] = None
    amount: Optional[int] = None
    response_time_ms: float = 0.0


@dataclass
class VerificationResult:
    """
    Standardized result from verifying a transaction.

    Attributes:
        reference: Reference that was verified
        status: Provider status normalized so that "success" means paid
            (others: "failed", "abandoned", "pending", ...)
        amount: Amount paid in whole currency units, if reported
        paid_at: Provider timestamp of the payment, if reported
        gateway_response: Provider's own status message
    """
    reference: str
    status: str
    amount: Optional[int] = None
    paid_at: Optional[str] = None
    gateway_response: Optional[str] = None

    @property
    def is_successful(self) -> bool:
        return self.status == STATUS_SUCCESS

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_STATUSES


class BasePaymentGateway(ABC):
    """
    Abstract base class for payment gateways.

    Example:
        >>> gateway = get_payment_gateway()
        >>> txn = await gateway.initialize_transaction(
        ...     amount=5300,
        ...     reference="ord_3f1c...",
        ...     callback_url="https://bot.example.com/paystack/callback?ref=ord_3f1c...",
        ... )
        >>> print(txn.authorization_url)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the payment provider.

        Returns:
            str: Provider name (e.g., "mock", "paystack", "stripe")
        """
        pass

    @abstractmethod
    async def initialize_transaction(
        self,
        amount: int,
        reference: str,
        callback_url: str,
        items: Sequence[MenuItem] = (),
    ) -> TransactionResult:
        """
        Open a transaction and obtain a hosted payment page.

        Args:
            amount: Order total in whole currency units
            reference: Unique correlation reference for this checkout
            callback_url: Where the gateway sends the customer afterwards
            items: Ordered items, for providers that show line items

        Returns:
            TransactionResult: Contains the payment URL for the customer

        Raises:
            GatewayError: If the transaction could not be opened
        """
        pass

    @abstractmethod
    async def verify_transaction(self, reference: str) -> VerificationResult:
        """
        Fetch the authoritative status of a transaction.

        Args:
            reference: Reference passed to initialize_transaction

        Returns:
            VerificationResult: Normalized transaction status

        Raises:
            GatewayError: If the status could not be fetched
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the payment provider.

        Returns:
            bool: True if the provider is reachable and credentials work
        """
        pass

    def discard(self, reference: str) -> None:
        """
        Forget any local bookkeeping for a transaction that will not be
        verified again (settled, replaced or cancelled).
        """
        return None

    async def close(self) -> None:
        """Release network resources held by the gateway."""
        return None
