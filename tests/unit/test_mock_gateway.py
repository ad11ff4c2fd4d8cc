import pytest

from orderbot.exceptions import GatewayError
from orderbot.services.payment.mock import MockPaymentGateway


@pytest.mark.asyncio
async def test_transaction_verifies_as_success_by_default():
    gateway = MockPaymentGateway()

    txn = await gateway.initialize_transaction(700, "ord_1", "http://cb?ref=ord_1")
    result = await gateway.verify_transaction("ord_1")

    assert txn.authorization_url == "http://cb?ref=ord_1"
    assert result.is_successful
    assert result.amount == 700


@pytest.mark.asyncio
async def test_set_status_drives_verification():
    gateway = MockPaymentGateway()
    await gateway.initialize_transaction(700, "ord_2", "http://cb")

    gateway.set_status("ord_2", "failed")

    result = await gateway.verify_transaction("ord_2")
    assert result.status == "failed"


@pytest.mark.asyncio
async def test_final_status_is_forgotten_after_verification():
    gateway = MockPaymentGateway()
    await gateway.initialize_transaction(700, "ord_5", "http://cb")

    await gateway.verify_transaction("ord_5")

    assert gateway.get_status("ord_5") is None
    with pytest.raises(GatewayError):
        await gateway.verify_transaction("ord_5")


@pytest.mark.asyncio
async def test_pending_status_is_kept_for_later_verification():
    gateway = MockPaymentGateway()
    await gateway.initialize_transaction(700, "ord_6", "http://cb")
    gateway.set_status("ord_6", "pending")

    assert (await gateway.verify_transaction("ord_6")).is_pending

    gateway.set_status("ord_6", "success")
    assert (await gateway.verify_transaction("ord_6")).is_successful


@pytest.mark.asyncio
async def test_discard_forgets_transaction():
    gateway = MockPaymentGateway()
    await gateway.initialize_transaction(700, "ord_7", "http://cb")

    gateway.discard("ord_7")

    assert gateway.get_status("ord_7") is None


@pytest.mark.asyncio
async def test_unknown_transaction_is_a_gateway_error():
    with pytest.raises(GatewayError) as exc:
        await MockPaymentGateway().verify_transaction("ord_missing")
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_failure_rate_one_always_fails():
    gateway = MockPaymentGateway(failure_rate=1.0)

    with pytest.raises(GatewayError):
        await gateway.initialize_transaction(700, "ord_3", "http://cb")


@pytest.mark.asyncio
async def test_non_positive_amount_rejected():
    with pytest.raises(GatewayError) as exc:
        await MockPaymentGateway().initialize_transaction(0, "ord_4", "http://cb")
    assert exc.value.code == "invalid_amount"
