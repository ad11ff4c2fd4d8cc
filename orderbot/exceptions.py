"""
Error Taxonomy

Every failure the bot recognizes maps onto one of these classes and is
recovered at a well-defined boundary:

    - UserInputError: recovered by the command interpreter into an
      "invalid input" reply
    - GatewayError: recovered at the checkout / callback boundary into a
      user-facing notice or a plain failure page
    - PaymentNotFoundError: terminal for a callback request whose reference
      matches no pending payment
"""

from typing import Optional


class OrderBotError(Exception):
    """Base class for all errors raised by the bot."""


class UserInputError(OrderBotError):
    """A chat command that matches nothing in the dispatch table."""

    def __init__(self, command: str):
        self.command = command
        super().__init__(f"Unrecognized command: {command!r}")


class GatewayError(OrderBotError):
    """
    The payment gateway could not complete a call.

    Covers network failures, timeouts, non-2xx responses, malformed
    bodies and missing credentials.

    Attributes:
        message: Human-readable description (safe to log)
        code: Machine-readable error code
        status_code: HTTP status returned by the gateway, if any
    """

    def __init__(
        self,
        message: str,
        code: str = "gateway_error",
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


class PaymentNotFoundError(OrderBotError):
    """No session has a pending payment with the given reference."""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"No pending payment for reference {reference!r}")
