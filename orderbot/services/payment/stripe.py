"""
Stripe Payment Gateway Implementation

Hosted checkout through Stripe Checkout Sessions using the official
Stripe Python SDK. Used when PAYMENT_PROVIDER=stripe.

Requirements:
    - STRIPE_SECRET_KEY must be set in environment

Notes:
    - The SDK is synchronous; calls run in a worker thread so other
      sessions keep being served while Stripe answers
    - Stripe identifies a Checkout Session by its own id, so the gateway
      remembers which session belongs to which of our references

Author: Your Name
Version: 2.0.0
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional, Sequence

import stripe

from orderbot.core.config import Settings, get_settings
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


class StripePaymentGateway(BasePaymentGateway):
    """
    Stripe Checkout gateway.

    Configuration:
        Requires STRIPE_SECRET_KEY. Without it every call fails with
        GatewayError instead of crashing start-up.

    Example:
        >>> gateway = StripePaymentGateway()
        >>> txn = await gateway.initialize_transaction(
        ...     amount=5300,
        ...     reference="ord_3f1c...",
        ...     callback_url="https://bot.example.com/paystack/callback?ref=ord_3f1c...",
        ... )
    """

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()

        self._secret_key = settings.stripe_secret_key
        self._currency = settings.stripe_currency
        self._cancel_url = f"{settings.callback_base_url or ''}/"

        # reference -> Checkout Session id
        self._sessions: dict[str, str] = {}

        if self._secret_key:
            stripe.api_key = self._secret_key
        else:
            logger.warning("Stripe credentials not configured")

        logger.info("StripePaymentGateway initialized")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "stripe"

    def _convert_to_minor_units(self, amount: int) -> int:
        """
        Convert a whole-unit amount to the smallest currency unit.

        Stripe expects amounts in the smallest currency unit.
        """
        return int(amount) * 100

    def _require_key(self) -> None:
        if not self._secret_key:
            raise GatewayError(
                "Stripe secret key is not configured",
                code="not_configured",
            )

    def _line_items(self, amount: int, items: Sequence[MenuItem]) -> list[dict]:
        if not items:
            items = [MenuItem(id=0, name="Restaurant order", price=amount)]
        return [
            {
                "quantity": 1,
                "price_data": {
                    "currency": self._currency,
                    "unit_amount": self._convert_to_minor_units(item.price),
                    "product_data": {"name": item.name},
                },
            }
            for item in items
        ]

    @staticmethod
    def _map_error(e: Exception) -> GatewayError:
        """Translate a Stripe SDK exception into a GatewayError."""
        if isinstance(e, stripe.AuthenticationError):
            logger.critical(f"Stripe: Authentication failed - {e}")
            return GatewayError(
                "Payment service configuration error",
                code="authentication_error",
            )
        if isinstance(e, stripe.APIConnectionError):
            logger.error(f"Stripe: Connection error - {e}")
            return GatewayError(
                "Payment service temporarily unavailable",
                code="connection_error",
            )
        if isinstance(e, stripe.InvalidRequestError):
            logger.error(f"Stripe: Invalid request - {e}")
            return GatewayError(str(e), code="invalid_request")

        logger.error(f"Stripe: Error - {e}")
        return GatewayError("Payment processing error", code="stripe_error")

    async def initialize_transaction(
        self,
        amount: int,
        reference: str,
        callback_url: str,
        items: Sequence[MenuItem] = (),
    ) -> TransactionResult:
        """
        Create a Checkout Session whose success URL is our callback.

        The reference travels as client_reference_id and metadata so the
        session can be traced from the Stripe dashboard.
        """
        self._require_key()
        start_time = datetime.now()

        logger.info(f"Stripe: Creating Checkout Session for {reference} - {amount}")

        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.create,
                mode="payment",
                line_items=self._line_items(amount, items),
                success_url=callback_url,
                cancel_url=self._cancel_url,
                client_reference_id=reference,
                metadata={"reference": reference, "source": "restaurant_chat_bot"},
            )
        except stripe.StripeError as e:
            raise self._map_error(e) from e

        if not getattr(session, "url", None):
            raise GatewayError(
                "Payment service did not return a payment link",
                code="malformed_response",
            )

        self._sessions[reference] = session.id
        elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000

        logger.info(f"Stripe: Checkout Session created - {session.id}")

        return TransactionResult(
            reference=reference,
            authorization_url=session.url,
            access_code=session.id,
            amount=amount,
            response_time_ms=elapsed_ms,
        )

    async def verify_transaction(self, reference: str) -> VerificationResult:
        """
        Retrieve the Checkout Session and normalize its payment status.

        payment_status "paid" (or "no_payment_required") maps to
        "success"; an expired session maps to "abandoned"; an open or
        completed-but-unpaid one to "pending". Sessions that verify with
        a final status are forgotten.
        """
        self._require_key()

        session_id = self._sessions.get(reference)
        if session_id is None:
            raise GatewayError(
                f"No Checkout Session known for {reference}",
                code="transaction_not_found",
                status_code=404,
            )

        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.retrieve, session_id
            )
        except stripe.StripeError as e:
            raise self._map_error(e) from e

        if session.payment_status in ("paid", "no_payment_required"):
            status = STATUS_SUCCESS
        elif session.status == "expired":
            status = "abandoned"
        elif session.status in ("open", "complete"):
            # complete but unpaid: an asynchronous payment method is settling
            status = "pending"
        else:
            status = "failed"

        if status not in PENDING_STATUSES:
            self.discard(reference)

        amount_total = getattr(session, "amount_total", None)

        logger.info(f"Stripe: Verified {reference} - status={status}")

        return VerificationResult(
            reference=reference,
            status=status,
            amount=amount_total // 100 if amount_total is not None else None,
            gateway_response=session.payment_status,
        )

    def discard(self, reference: str) -> None:
        self._sessions.pop(reference, None)

    async def health_check(self) -> bool:
        """
        Verify Stripe API connectivity.

        Makes a lightweight API call to verify credentials and connectivity.
        """
        if not self._secret_key:
            return False
        try:
            await asyncio.to_thread(stripe.Account.retrieve)
            logger.debug("Stripe: Health check passed")
            return True

        except stripe.StripeError as e:
            logger.error(f"Stripe: Health check failed - {e}")
            return False
