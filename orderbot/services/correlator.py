"""
Payment Correlator

Ties a pending checkout to an external payment transaction and settles it
when the gateway reports back.

Two-phase protocol:
    1. initiate_checkout(state, total): open a transaction under a fresh
       reference and park the cart snapshot on the session
    2. confirm_payment(reference, status): find the session holding the
       reference and either place the order or release the pending
       payment

reconcile(reference) glues the callback route to phase 2 by asking the
gateway for the authoritative status first.

Policies:
    - The order appended on confirmation is the cart captured at checkout,
      not the cart at confirmation time
    - A failed confirmation keeps the cart and clears the pending payment
      so the customer can check out again
    - A status that may still settle ("pending", "ongoing", ...) leaves
      the pending payment in place so a later callback can settle it
    - A verified amount that differs from the pending amount counts as a
      failed payment
    - A reference held by more than one session is treated as not found
      and nothing is mutated
"""

import asyncio
import logging
import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from orderbot.exceptions import GatewayError, PaymentNotFoundError
from orderbot.services.payment.base import (
    BasePaymentGateway,
    PENDING_STATUSES,
    STATUS_SUCCESS,
)
from orderbot.sessions import PendingPayment, SessionState, SessionStore

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "ord_"
CALLBACK_PATH = "/paystack/callback"


class ConfirmationOutcome(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    FAILED = "failed"
    NOT_FOUND = "not_found"


@dataclass
class CheckoutResult:
    """
    Outcome of initiate_checkout.

    Attributes:
        success: Whether a transaction is now pending on the session
        payment_url: Hosted payment page for the customer
        reference: Correlation reference of the pending payment
        amount: Total sent to the gateway
        error_message: Why checkout could not start
        error_code: Machine-readable error code
    """
    success: bool
    payment_url: Optional[str] = None
    reference: Optional[str] = None
    amount: Optional[int] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None


class PaymentCorrelator:
    """
    Correlates sessions with gateway transactions.

    Args:
        store: Session table scanned when a confirmation arrives
        gateway: Payment gateway collaborator
        callback_base_url: Public base URL the gateway redirects to
        timeout: Upper bound in seconds for each gateway call
    """

    def __init__(
        self,
        store: SessionStore,
        gateway: BasePaymentGateway,
        callback_base_url: Optional[str],
        timeout: float = 10.0,
    ):
        self.store = store
        self.gateway = gateway
        self.callback_base_url = callback_base_url.rstrip("/") if callback_base_url else None
        self.timeout = timeout

    def _new_reference(self) -> str:
        reference = f"{REFERENCE_PREFIX}{secrets.token_hex(12)}"
        while self.store.has_reference(reference):
            reference = f"{REFERENCE_PREFIX}{secrets.token_hex(12)}"
        return reference

    def callback_url(self, reference: str) -> str:
        if not self.callback_base_url:
            raise GatewayError(
                "Callback base URL is not configured",
                code="not_configured",
            )
        return f"{self.callback_base_url}{CALLBACK_PATH}?ref={reference}"

    async def initiate_checkout(self, state: SessionState, total: int) -> CheckoutResult:
        """
        Open a gateway transaction for the session's cart.

        On success the session gets a PendingPayment holding a snapshot of
        the cart; the cart itself stays as it is until confirmation. On
        any failure the session is left untouched.

        Args:
            state: Session checking out (cart must be non-empty)
            total: Order total in whole currency units

        Returns:
            CheckoutResult: Payment URL on success, error details otherwise
        """
        reference = self._new_reference()
        items = tuple(state.current_order)

        try:
            callback_url = self.callback_url(reference)
            txn = await asyncio.wait_for(
                self.gateway.initialize_transaction(
                    amount=total,
                    reference=reference,
                    callback_url=callback_url,
                    items=items,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"Checkout {reference}: gateway timed out after {self.timeout}s")
            return CheckoutResult(
                success=False,
                error_message="Payment service timed out",
                error_code="timeout",
            )
        except GatewayError as e:
            logger.error(f"Checkout {reference}: gateway error [{e.code}] {e.message}")
            return CheckoutResult(
                success=False,
                error_message=e.message,
                error_code=e.code,
            )
        except Exception as e:
            logger.exception(f"Checkout {reference}: unexpected gateway failure: {e}")
            return CheckoutResult(
                success=False,
                error_message="Payment initialization failed",
                error_code="unexpected_error",
            )

        if state.pending_payment is not None:
            logger.info(
                f"Checkout {reference}: replacing pending payment "
                f"{state.pending_payment.reference}"
            )
            self.gateway.discard(state.pending_payment.reference)

        state.pending_payment = PendingPayment(
            amount=total,
            reference=reference,
            items=items,
            payment_url=txn.authorization_url,
        )

        logger.info(
            f"Checkout {reference}: awaiting payment of {total} "
            f"via {self.gateway.provider_name} ({txn.response_time_ms:.0f}ms)"
        )

        return CheckoutResult(
            success=True,
            payment_url=txn.authorization_url,
            reference=reference,
            amount=total,
        )

    def _locate(self, reference: str) -> SessionState:
        matches = self.store.find_by_reference(reference)
        if not matches:
            raise PaymentNotFoundError(reference)
        if len(matches) > 1:
            logger.error(
                f"Reference {reference} is pending on {len(matches)} sessions; "
                f"refusing to settle it"
            )
            raise PaymentNotFoundError(reference)
        return matches[0][1]

    def confirm_payment(
        self,
        reference: str,
        gateway_status: str,
        amount: Optional[int] = None,
    ) -> ConfirmationOutcome:
        """
        Settle the pending payment carrying the reference.

        Args:
            reference: Correlation reference from the callback
            gateway_status: Status verified with the gateway
            amount: Amount the gateway reports as paid, if known

        Returns:
            ConfirmationOutcome: CONFIRMED, PENDING, FAILED or NOT_FOUND
        """
        try:
            state = self._locate(reference)
        except PaymentNotFoundError:
            logger.warning(f"Confirmation {reference}: no matching session")
            return ConfirmationOutcome.NOT_FOUND

        pending = state.pending_payment

        if gateway_status in PENDING_STATUSES:
            logger.info(f"Confirmation {reference}: payment {gateway_status}, still waiting")
            return ConfirmationOutcome.PENDING

        if (
            gateway_status == STATUS_SUCCESS
            and amount is not None
            and amount != pending.amount
        ):
            logger.error(
                f"Confirmation {reference}: gateway reports {amount}, "
                f"expected {pending.amount}"
            )
            gateway_status = "amount_mismatch"

        self.gateway.discard(reference)

        if gateway_status != STATUS_SUCCESS:
            state.pending_payment = None
            logger.info(
                f"Confirmation {reference}: payment {gateway_status}, cart kept"
            )
            return ConfirmationOutcome.FAILED

        state.orders.append(list(pending.items))
        state.current_order = []
        state.pending_payment = None

        logger.info(
            f"Confirmation {reference}: order #{len(state.orders)} placed "
            f"({len(pending.items)} items, total {pending.amount})"
        )
        return ConfirmationOutcome.CONFIRMED

    async def reconcile(self, reference: str) -> ConfirmationOutcome:
        """
        Verify a reference with the gateway and settle it.

        Unknown references are answered without contacting the gateway.

        Raises:
            GatewayError: If the gateway could not verify the transaction
        """
        if not self.store.has_reference(reference):
            logger.warning(f"Callback {reference}: no matching session")
            return ConfirmationOutcome.NOT_FOUND

        try:
            result = await asyncio.wait_for(
                self.gateway.verify_transaction(reference),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Callback {reference}: verification timed out")
            raise GatewayError("Payment service timed out", code="timeout") from e
        except GatewayError:
            raise
        except Exception as e:
            logger.exception(f"Callback {reference}: unexpected gateway failure: {e}")
            raise GatewayError(
                "Payment verification failed",
                code="unexpected_error",
            ) from e

        return self.confirm_payment(reference, result.status, result.amount)

    def release(self, state: SessionState) -> None:
        """Drop the session's pending payment, e.g. when the order is cancelled."""
        if state.pending_payment is None:
            return
        logger.info(f"Pending payment {state.pending_payment.reference} released")
        self.gateway.discard(state.pending_payment.reference)
        state.pending_payment = None
