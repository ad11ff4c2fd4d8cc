import asyncio
from typing import Generator, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from orderbot.exceptions import GatewayError
from orderbot.interpreter import CommandInterpreter
from orderbot.main import app as fastapi_app, get_correlator, get_interpreter, get_session_store
from orderbot.menu import MENU, MenuItem
from orderbot.services.correlator import PaymentCorrelator
from orderbot.services.payment.base import BasePaymentGateway, TransactionResult, VerificationResult
from orderbot.services.payment.mock import MockPaymentGateway
from orderbot.sessions import SessionStore

CALLBACK_BASE = "http://testserver"


# Automatic marking by folder
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/tests/unit/" in nodeid or nodeid.startswith("tests/unit/"):
            item.add_marker(pytest.mark.unit)
        elif "/tests/functional/" in nodeid or nodeid.startswith("tests/functional/"):
            item.add_marker(pytest.mark.functional)


class RecordingGateway(BasePaymentGateway):
    """Gateway double that records calls and can be told to fail or stall."""

    def __init__(self, error: Optional[Exception] = None, delay: float = 0.0, status: str = "success"):
        self.error = error
        self.delay = delay
        self.status = status
        self.paid_amount: Optional[int] = None
        self.initialized: list[dict] = []
        self.verified: list[str] = []
        self.discarded: list[str] = []

    @property
    def provider_name(self) -> str:
        return "recording"

    async def initialize_transaction(
        self,
        amount: int,
        reference: str,
        callback_url: str,
        items: Sequence[MenuItem] = (),
    ) -> TransactionResult:
        self.initialized.append(
            {"amount": amount, "reference": reference, "callback_url": callback_url, "items": tuple(items)}
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return TransactionResult(
            reference=reference,
            authorization_url=f"https://pay.example.test/{reference}",
            amount=amount,
        )

    async def verify_transaction(self, reference: str) -> VerificationResult:
        self.verified.append(reference)
        if self.error is not None:
            raise self.error
        return VerificationResult(reference=reference, status=self.status, amount=self.paid_amount)

    def discard(self, reference: str) -> None:
        self.discarded.append(reference)

    async def health_check(self) -> bool:
        return self.error is None


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def interpreter() -> CommandInterpreter:
    """Interpreter without a payment gateway: checkout places the order."""
    return CommandInterpreter(catalog=MENU)


@pytest.fixture
def gateway_factory():
    return RecordingGateway


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture
def failing_gateway() -> RecordingGateway:
    return RecordingGateway(error=GatewayError("Payment service temporarily unavailable", code="connection_error"))


@pytest.fixture
def correlator(store, gateway) -> PaymentCorrelator:
    return PaymentCorrelator(store=store, gateway=gateway, callback_base_url=CALLBACK_BASE, timeout=1.0)


@pytest.fixture
def paid_interpreter(correlator) -> CommandInterpreter:
    return CommandInterpreter(catalog=MENU, correlator=correlator)


@pytest.fixture(scope="session")
def app():
    return fastapi_app


def _client_with(app, store, correlator, interpreter) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_correlator] = lambda: correlator
    app.dependency_overrides[get_interpreter] = lambda: interpreter
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client(app, store, interpreter) -> Generator[TestClient, None, None]:
    """Client for the no-payment deployment."""
    yield from _client_with(app, store, None, interpreter)


@pytest.fixture
def mock_gateway() -> MockPaymentGateway:
    return MockPaymentGateway(failure_rate=0.0)


@pytest.fixture
def paid_client(app, store, mock_gateway) -> Generator[TestClient, None, None]:
    """Client for the payment deployment backed by the mock gateway."""
    correlator = PaymentCorrelator(store=store, gateway=mock_gateway, callback_base_url=CALLBACK_BASE, timeout=1.0)
    interpreter = CommandInterpreter(catalog=MENU, correlator=correlator)
    yield from _client_with(app, store, correlator, interpreter)


@pytest.fixture
def failing_client(app, store, failing_gateway) -> Generator[TestClient, None, None]:
    """Client whose gateway fails every call."""
    correlator = PaymentCorrelator(store=store, gateway=failing_gateway, callback_base_url=CALLBACK_BASE, timeout=1.0)
    interpreter = CommandInterpreter(catalog=MENU, correlator=correlator)
    yield from _client_with(app, store, correlator, interpreter)
