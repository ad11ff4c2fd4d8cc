from orderbot.interpreter import MSG_PAYMENT_FAILED


def chat(client, text):
    return client.post("/chat", json={"input": text}).json()["reply"]


def checkout(client, *item_ids):
    for item_id in item_ids:
        chat(client, item_id)
    reply = chat(client, "99")
    link = reply[1].removeprefix("Complete your payment here: ")
    return reply, link


def session_of(client, store):
    return store.get(client.cookies["sessionId"])


def test_checkout_replies_with_total_and_link(paid_client, store):
    reply, link = checkout(paid_client, "10", "20")

    assert reply[0] == "Your order total is ₦5300."
    assert reply[2] == "Type 97 to review your order."
    assert link.startswith("http://testserver/paystack/callback?ref=ord_")

    state = session_of(paid_client, store)
    assert state.pending_payment.amount == 5300
    assert state.pending_payment.reference == link.split("ref=")[1]
    assert chat(paid_client, "97")[-1] == "Awaiting payment of ₦5300."


def test_successful_callback_places_order(paid_client, store):
    _, link = checkout(paid_client, "10", "20")

    response = paid_client.get(link)

    assert response.status_code == 200
    assert "Payment successful" in response.text
    assert 'window.location.href = "/"' in response.text

    state = session_of(paid_client, store)
    assert [item.name for item in state.orders[0]] == ["Margherita Pizza", "Cheeseburger"]
    assert state.current_order == []
    assert state.pending_payment is None
    assert chat(paid_client, "98") == ["Order 1: Margherita Pizza, Cheeseburger"]


def test_reference_query_parameter_alias(paid_client, store):
    _, link = checkout(paid_client, "50")
    reference = link.split("ref=")[1]

    response = paid_client.get("/payments/callback", params={"reference": reference})

    assert response.status_code == 200
    assert len(session_of(paid_client, store).orders) == 1


def test_callback_is_settled_once(paid_client, store):
    _, link = checkout(paid_client, "40")

    assert paid_client.get(link).status_code == 200
    assert paid_client.get(link).status_code == 404
    assert len(session_of(paid_client, store).orders) == 1


def test_failed_payment_keeps_cart(paid_client, store, mock_gateway):
    _, link = checkout(paid_client, "30")
    mock_gateway.set_status(link.split("ref=")[1], "failed")

    response = paid_client.get(link)

    assert response.status_code == 400
    assert "still in your cart" in response.text

    state = session_of(paid_client, store)
    assert state.orders == []
    assert [item.name for item in state.current_order] == ["Jollof Rice (Large)"]
    assert state.pending_payment is None


def test_unknown_reference_changes_nothing(paid_client, store):
    checkout(paid_client, "10")
    before = session_of(paid_client, store).pending_payment

    response = paid_client.get("/paystack/callback", params={"ref": "ord_doesnotexist"})

    assert response.status_code == 404
    state = session_of(paid_client, store)
    assert state.pending_payment == before
    assert state.orders == []


def test_missing_reference(paid_client):
    assert paid_client.get("/paystack/callback").status_code == 400


def test_cancel_then_callback_is_not_found(paid_client, store):
    _, link = checkout(paid_client, "10")
    chat(paid_client, "0")

    assert paid_client.get(link).status_code == 404
    assert session_of(paid_client, store).orders == []


def test_gateway_failure_on_checkout(failing_client, store):
    chat(failing_client, "10")

    assert chat(failing_client, "99") == [MSG_PAYMENT_FAILED]

    state = session_of(failing_client, store)
    assert [item.name for item in state.current_order] == ["Margherita Pizza"]
    assert state.pending_payment is None
    assert state.orders == []


def test_callback_without_payments(client):
    response = client.get("/paystack/callback", params={"ref": "ord_abc"})
    assert response.status_code == 404


def test_health_reports_gateway(paid_client):
    body = paid_client.get("/health").json()

    assert body["payment_gateway"] == "healthy"
    assert body["status"] == "operational"


def test_pending_payment_can_settle_on_a_later_callback(paid_client, store, mock_gateway):
    _, link = checkout(paid_client, "10")
    reference = link.split("ref=")[1]
    mock_gateway.set_status(reference, "pending")

    response = paid_client.get(link)

    assert response.status_code == 202
    assert "still processing" in response.text
    assert session_of(paid_client, store).pending_payment.reference == reference

    mock_gateway.set_status(reference, "success")

    assert paid_client.get(link).status_code == 200
    assert len(session_of(paid_client, store).orders) == 1
