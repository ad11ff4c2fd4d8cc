"""
Mock Payment Gateway Implementation

Simulates a hosted-checkout payment provider without making network calls.
Used when PAYMENT_PROVIDER=mock to:
    - Exercise the complete checkout/callback flow locally
    - Run load simulations without touching a real provider
    - Drive specific outcomes from tests

Behavior:
    - Simulates response times in a configurable range
    - Fails a configurable share of calls with a GatewayError
    - Hands out a payment URL that points straight at the callback, so
      opening it in a browser "pays" the order
    - Verification reports "success" unless a test changed the status
    - A transaction is forgotten once it verifies with a final status

Author: Your Name
Version: 2.0.0
"""

import asyncio
import random
import uuid
import logging
from datetime import datetime
from typing import Optional, Sequence

from orderbot.exceptions import GatewayError
from orderbot.menu import MenuItem
from orderbot.services.payment.base import (
    BasePaymentGateway,
    TransactionResult,
    VerificationResult,
    PENDING_STATUSES,
    STATUS_SUCCESS,
)

logger = logging.getLogger(__name__)


class MockPaymentGateway(BasePaymentGateway):
    """
    Mock implementation of the payment gateway.

    Attributes:
        failure_rate: Probability of a simulated gateway failure (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds

    Example:
        >>> gateway = MockPaymentGateway(failure_rate=0.0, max_latency=0.0)
        >>> txn = await gateway.initialize_transaction(700, "ord_x", "http://cb")
        >>> gateway.set_status("ord_x", "failed")
    """

    # Simulated failure reasons (mimics provider-side outages)
    FAILURE_REASONS = [
        ("connection_error", "Payment service temporarily unavailable"),
        ("timeout", "Payment service timed out"),
        ("server_error", "Payment service returned an error"),
    ]

    def __init__(
        self,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency

        # reference -> (amount, status)
        self._transactions: dict[str, tuple[int, str]] = {}

        logger.info(
            f"MockPaymentGateway initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={min_latency}-{max_latency}s)"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    async def _simulate_latency(self) -> float:
        """
        Simulate network latency.

        Returns:
            float: Actual latency in milliseconds
        """
        latency = random.uniform(self.min_latency, self.max_latency)
        if latency > 0:
            await asyncio.sleep(latency)
        return latency * 1000

    def _maybe_fail(self) -> None:
        """Raise a GatewayError for the configured share of calls."""
        if random.random() < self.failure_rate:
            code, message = random.choice(self.FAILURE_REASONS)
            logger.debug(f"Mock: Simulated gateway failure - {code}")
            raise GatewayError(message, code=code)

    def set_status(self, reference: str, status: str) -> None:
        """Force the status that verification reports for a transaction."""
        amount, _ = self._transactions.get(reference, (0, "pending"))
        self._transactions[reference] = (amount, status)

    def get_status(self, reference: str) -> Optional[str]:
        entry = self._transactions.get(reference)
        return entry[1] if entry else None

    async def initialize_transaction(
        self,
        amount: int,
        reference: str,
        callback_url: str,
        items: Sequence[MenuItem] = (),
    ) -> TransactionResult:
        """Simulate opening a transaction."""
        latency_ms = await self._simulate_latency()
        self._maybe_fail()

        if amount <= 0:
            raise GatewayError("Amount must be greater than 0", code="invalid_amount")

        access_code = f"mock_{uuid.uuid4().hex[:16]}"
        self._transactions[reference] = (amount, STATUS_SUCCESS)

        logger.info(f"Mock: Transaction initialized - {reference} - {amount}")

        return TransactionResult(
            reference=reference,
            authorization_url=callback_url,
            access_code=access_code,
            amount=amount,
            response_time_ms=latency_ms,
        )

    async def verify_transaction(self, reference: str) -> VerificationResult:
        """Report the stored status of a simulated transaction."""
        await self._simulate_latency()
        self._maybe_fail()

        entry = self._transactions.get(reference)
        if entry is None:
            raise GatewayError(
                f"Transaction {reference} not found",
                code="transaction_not_found",
                status_code=404,
            )

        amount, status = entry
        if status not in PENDING_STATUSES:
            del self._transactions[reference]
        logger.debug(f"Mock: Verified {reference} - status={status}")

        return VerificationResult(
            reference=reference,
            status=status,
            amount=amount,
            paid_at=datetime.now().isoformat() if status == STATUS_SUCCESS else None,
            gateway_response="Mock transaction",
        )

    def discard(self, reference: str) -> None:
        self._transactions.pop(reference, None)

    async def health_check(self) -> bool:
        """
        Mock health check always returns True.

        In development, we assume the mock gateway is always available.
        """
        logger.debug("Mock: Health check passed")
        return True
