from fastapi.testclient import TestClient

from orderbot.interpreter import MSG_INVALID, MSG_NOTHING_TO_PLACE, MSG_ORDER_PLACED


def chat(client, text=None):
    payload = {} if text is None else {"input": text}
    response = client.post("/chat", json=payload)
    assert response.status_code == 200
    return response.json()["reply"]


def test_first_contact_gets_menu_and_cookie(client):
    assert "sessionId" not in client.cookies

    reply = chat(client)

    assert len(reply) == 6
    assert reply[0] == "Welcome to Dummy Restaurant Bot 🍽️"
    assert "sessionId" in client.cookies


def test_cookie_is_reused(client, store):
    chat(client)
    token = client.cookies["sessionId"]

    response = client.post("/chat", json={"input": "10"})

    assert "set-cookie" not in response.headers
    assert client.cookies["sessionId"] == token
    assert len(store) == 1


def test_unknown_cookie_is_replaced(client, store):
    client.cookies.set("sessionId", "forged-token")

    response = client.post("/chat", json={})

    assert response.cookies["sessionId"] != "forged-token"
    assert "forged-token" not in store


def test_menu_listing(client):
    reply = chat(client, "1")

    assert reply[0] == "Select item number to add to your order:"
    assert reply[1:] == [
        "10. Margherita Pizza - ₦3500",
        "20. Cheeseburger - ₦1800",
        "30. Jollof Rice (Large) - ₦2200",
        "40. Fried Plantain + Egg - ₦700",
        "50. Coke (330ml) - ₦300",
    ]


def test_build_review_and_place_order(client):
    assert chat(client, "10")[0] == "Added Margherita Pizza to order."
    assert chat(client, "20")[0] == "Added Cheeseburger to order."

    assert chat(client, "97") == ["Current order:", "Margherita Pizza, Cheeseburger"]

    reply = chat(client, "99")
    assert reply[0] == MSG_ORDER_PLACED
    assert len(reply) == 7

    assert chat(client, "98") == ["Order 1: Margherita Pizza, Cheeseburger"]
    assert chat(client, "97") == ["No current order."]


def test_checkout_with_empty_cart(client):
    assert chat(client, "99") == [MSG_NOTHING_TO_PLACE]


def test_cancel_clears_cart(client):
    chat(client, "30")

    reply = chat(client, "0")

    assert reply[0] == "❌ Current order cancelled."
    assert chat(client, "97") == ["No current order."]


def test_numeric_input_is_accepted(client):
    response = client.post("/chat", json={"input": 40})
    assert response.json()["reply"][0] == "Added Fried Plantain + Egg to order."


def test_invalid_input(client):
    reply = chat(client, "abc")

    assert reply[0] == MSG_INVALID
    assert len(reply) == 7


def test_non_json_body_is_empty_input(client):
    response = client.post("/chat", content=b"not json", headers={"Content-Type": "text/plain"})

    assert response.status_code == 200
    assert response.json()["reply"][0].startswith("Welcome to")


def test_sessions_are_isolated(app, client):
    chat(client, "10")

    other = TestClient(app)
    other.post("/chat", json={})
    assert other.post("/chat", json={"input": "97"}).json()["reply"] == ["No current order."]


def test_chat_page(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "Dummy Restaurant" in response.text
    assert "sessionId" in client.cookies


def test_health_without_payments(client):
    chat(client)

    body = client.get("/health").json()

    assert body["status"] == "operational"
    assert body["payment_gateway"] == "disabled"
    assert body["sessions"] == 1
