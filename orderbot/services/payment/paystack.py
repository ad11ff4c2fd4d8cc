"""
Paystack Payment Gateway Implementation

Production implementation against the Paystack REST API using httpx.
Used when PAYMENT_PROVIDER=paystack.

Requirements:
    - PAYSTACK_SECRET_KEY must be set in environment
    - CALLBACK_BASE_URL must be reachable by the customer's browser

API Documentation:
    https://paystack.com/docs/api/transaction

Security Notes:
    - Never log the secret key
    - Always confirm payment with /transaction/verify, never trust the
      callback query string alone

Author: Your Name
Version: 2.0.0
"""

import logging
from datetime import datetime
from typing import Any, Optional, Sequence

import httpx

from orderbot.core.config import Settings, get_settings
from orderbot.exceptions import GatewayError
from orderbot.menu import MenuItem
from orderbot.services.payment.base import (
    BasePaymentGateway,
    TransactionResult,
    VerificationResult,
)

logger = logging.getLogger(__name__)


class PaystackPaymentGateway(BasePaymentGateway):
    """
    Paystack hosted-checkout gateway.

    Configuration:
        Requires PAYSTACK_SECRET_KEY. A missing key does not prevent
        start-up; every call then fails with GatewayError so checkout
        can answer gracefully.

    Example:
        >>> gateway = PaystackPaymentGateway()
        >>> txn = await gateway.initialize_transaction(
        ...     amount=5300,
        ...     reference="ord_3f1c...",
        ...     callback_url="https://bot.example.com/paystack/callback?ref=ord_3f1c...",
        ... )
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the HTTP client from settings.

        Args:
            settings: Settings to use (defaults to get_settings())
            transport: Optional httpx transport, e.g. httpx.MockTransport
        """
        settings = settings or get_settings()

        self._secret_key = settings.paystack_secret_key
        self._customer_email = settings.paystack_customer_email

        headers = {"Content-Type": "application/json"}
        if self._secret_key:
            headers["Authorization"] = f"Bearer {self._secret_key}"
        else:
            logger.warning("Paystack credentials not configured")

        self._client = httpx.AsyncClient(
            base_url=settings.paystack_base_url,
            headers=headers,
            timeout=settings.gateway_timeout_seconds,
            transport=transport,
        )

        logger.info("PaystackPaymentGateway initialized")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "paystack"

    def _convert_to_kobo(self, amount: int) -> int:
        """
        Convert a naira amount to kobo for Paystack.

        Paystack expects amounts in the smallest currency unit.
        """
        return int(amount) * 100

    def _convert_from_kobo(self, kobo: Optional[int]) -> Optional[int]:
        """Convert kobo back to whole naira."""
        if kobo is None:
            return None
        return int(kobo) // 100

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> Any:
        """
        Send a request and return the "data" member of the envelope.

        Paystack wraps every response as {"status": bool, "message": str,
        "data": {...}}.

        Raises:
            GatewayError: On missing credentials, transport failure,
                non-2xx status, malformed JSON or status=false
        """
        if not self._secret_key:
            raise GatewayError(
                "Paystack secret key is not configured",
                code="not_configured",
            )

        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"Paystack: Timeout on {method} {path} - {e}")
            raise GatewayError("Payment service timed out", code="timeout") from e
        except httpx.HTTPError as e:
            logger.error(f"Paystack: Connection error on {method} {path} - {e}")
            raise GatewayError(
                "Payment service temporarily unavailable",
                code="connection_error",
            ) from e

        if response.is_error:
            logger.error(
                f"Paystack: {method} {path} returned {response.status_code} - "
                f"{response.text[:200]}"
            )
            raise GatewayError(
                f"Payment service returned HTTP {response.status_code}",
                code="http_error",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Paystack: Malformed JSON from {method} {path}")
            raise GatewayError(
                "Malformed response from payment service",
                code="malformed_response",
                status_code=response.status_code,
            ) from e

        if not isinstance(body, dict) or not body.get("status"):
            message = body.get("message") if isinstance(body, dict) else None
            logger.error(f"Paystack: Request rejected - {message}")
            raise GatewayError(
                message or "Payment service rejected the request",
                code="rejected",
                status_code=response.status_code,
            )

        return body.get("data")

    @staticmethod
    def _as_object(data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise GatewayError(
                "Malformed response from payment service",
                code="malformed_response",
            )
        return data

    async def initialize_transaction(
        self,
        amount: int,
        reference: str,
        callback_url: str,
        items: Sequence[MenuItem] = (),
    ) -> TransactionResult:
        """
        Open a Paystack transaction.

        POST /transaction/initialize with the amount in kobo. The returned
        authorization_url is the hosted payment page.
        """
        start_time = datetime.now()

        logger.info(f"Paystack: Initializing transaction {reference} - {amount}")

        data = self._as_object(await self._request(
            "POST",
            "/transaction/initialize",
            json={
                "email": self._customer_email,
                "amount": self._convert_to_kobo(amount),
                "reference": reference,
                "callback_url": callback_url,
                "metadata": {
                    "items": [item.name for item in items],
                    "source": "restaurant_chat_bot",
                },
            },
        ))

        authorization_url = data.get("authorization_url")
        if not authorization_url:
            raise GatewayError(
                "Payment service did not return a payment link",
                code="malformed_response",
            )

        elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000

        logger.info(f"Paystack: Transaction initialized - {reference}")

        return TransactionResult(
            reference=data.get("reference") or reference,
            authorization_url=authorization_url,
            access_code=data.get("access_code"),
            amount=amount,
            response_time_ms=elapsed_ms,
        )

    async def verify_transaction(self, reference: str) -> VerificationResult:
        """
        Verify a transaction via GET /transaction/verify/{reference}.

        Paystack reports "success" for a paid transaction and "failed",
        "abandoned" or "ongoing" otherwise.
        """
        data = self._as_object(
            await self._request("GET", f"/transaction/verify/{reference}")
        )

        status = data.get("status")
        if not isinstance(status, str):
            raise GatewayError(
                "Payment service returned no transaction status",
                code="malformed_response",
            )

        logger.info(f"Paystack: Verified {reference} - status={status}")

        return VerificationResult(
            reference=data.get("reference") or reference,
            status=status,
            amount=self._convert_from_kobo(data.get("amount")),
            paid_at=data.get("paid_at"),
            gateway_response=data.get("gateway_response"),
        )

    async def health_check(self) -> bool:
        """
        Verify Paystack API connectivity.

        Lists a single transaction, which checks both reachability and the
        secret key.
        """
        try:
            await self._request("GET", "/transaction", params={"perPage": 1})
            logger.debug("Paystack: Health check passed")
            return True
        except GatewayError as e:
            logger.error(f"Paystack: Health check failed - {e.message}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
