"""
Session Store

Process-wide mapping from anonymous session token to per-user order
state. Sessions are created lazily on first contact and live until the
process exits; there is no expiry or eviction.

Concurrency:
    The map itself is guarded by a lock. Fields of an individual
    SessionState are mutated without locking: requests from the same
    client are expected to be sequential, and concurrent ones are
    last-write-wins.
"""

import logging
import secrets
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from orderbot.menu import MenuItem

logger = logging.getLogger(__name__)

TOKEN_BYTES = 12


class OrderMode(str, Enum):
    """Where a session sits in the ordering lifecycle."""
    IDLE = "idle"
    BUILDING = "building"
    AWAITING_PAYMENT = "awaiting_payment"


@dataclass
class PendingPayment:
    """
    A checkout handed to the payment gateway and not yet confirmed.

    Attributes:
        amount: Order total sent to the gateway
        reference: Correlation key echoed back by the gateway callback
        items: Cart contents captured when checkout started
        payment_url: Hosted payment page returned by the gateway
    """
    amount: int
    reference: str
    items: tuple[MenuItem, ...] = ()
    payment_url: Optional[str] = None


@dataclass
class SessionState:
    """Order state owned by one anonymous chat user."""
    current_order: list[MenuItem] = field(default_factory=list)
    orders: list[list[MenuItem]] = field(default_factory=list)
    pending_payment: Optional[PendingPayment] = None

    @property
    def mode(self) -> OrderMode:
        if self.pending_payment is not None:
            return OrderMode.AWAITING_PAYMENT
        if self.current_order:
            return OrderMode.BUILDING
        return OrderMode.IDLE

    @property
    def cart_total(self) -> int:
        return sum(item.price for item in self.current_order)


class SessionStore:
    """
    Thread-safe in-memory session table.

    Example:
        >>> store = SessionStore()
        >>> token, state = store.resolve(None)
        >>> store.resolve(token)[1] is state
        True
    """

    def __init__(self):
        self._sessions: dict[str, SessionState] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, token: str) -> bool:
        with self._lock:
            return token in self._sessions

    def resolve(self, token: Optional[str]) -> tuple[str, SessionState]:
        """
        Fetch the session for a token, creating one if needed.

        Args:
            token: Token presented by the client, possibly None or stale

        Returns:
            (token, state): The token to hand back to the client, which
            differs from the argument when a new session was created,
            and that session's state
        """
        with self._lock:
            if token:
                state = self._sessions.get(token)
                if state is not None:
                    return token, state

            new_token = secrets.token_hex(TOKEN_BYTES)
            while new_token in self._sessions:
                new_token = secrets.token_hex(TOKEN_BYTES)

            state = SessionState()
            self._sessions[new_token] = state

        logger.debug(f"Session created: {new_token[:6]}…")
        return new_token, state

    def get(self, token: str) -> Optional[SessionState]:
        with self._lock:
            return self._sessions.get(token)

    def save(self, token: str, state: SessionState) -> None:
        with self._lock:
            self._sessions[token] = state

    def find_by_reference(self, reference: str) -> list[tuple[str, SessionState]]:
        """
        Return every session whose pending payment carries the reference.

        Scans a snapshot of the table so sessions created during the scan
        do not disturb it. More than one match means the reference
        invariant was broken; callers decide how to treat that.
        """
        with self._lock:
            snapshot = list(self._sessions.items())

        return [
            (token, state)
            for token, state in snapshot
            if state.pending_payment is not None
            and state.pending_payment.reference == reference
        ]

    def has_reference(self, reference: str) -> bool:
        return bool(self.find_by_reference(reference))

    def clear(self) -> None:
        """Drop every session."""
        with self._lock:
            self._sessions.clear()
