import re
import threading

from orderbot.menu import MENU
from orderbot.sessions import OrderMode, PendingPayment, SessionState, SessionStore


def test_resolve_without_token_creates_session(store):
    token, state = store.resolve(None)

    assert re.fullmatch(r"[0-9a-f]{24}", token)
    assert state.current_order == []
    assert state.orders == []
    assert state.pending_payment is None
    assert len(store) == 1


def test_resolve_is_idempotent_for_known_token(store):
    token, state = store.resolve(None)

    again_token, again_state = store.resolve(token)

    assert again_token == token
    assert again_state is state
    assert len(store) == 1


def test_resolve_unknown_token_issues_new_one(store):
    token, _ = store.resolve("not-a-real-token")

    assert token != "not-a-real-token"
    assert token in store
    assert "not-a-real-token" not in store


def test_tokens_are_distinct(store):
    tokens = {store.resolve(None)[0] for _ in range(200)}
    assert len(tokens) == 200


def test_get_and_save(store):
    state = SessionState()
    store.save("abc", state)

    assert store.get("abc") is state
    assert store.get("missing") is None
    assert store.resolve("abc")[1] is state


def test_mode_is_derived_from_fields():
    state = SessionState()
    assert state.mode == OrderMode.IDLE

    state.current_order.append(MENU.find("10"))
    assert state.mode == OrderMode.BUILDING

    state.pending_payment = PendingPayment(amount=3500, reference="ord_1")
    assert state.mode == OrderMode.AWAITING_PAYMENT


def test_cart_total():
    state = SessionState(current_order=[MENU.find("10"), MENU.find("20")])
    assert state.cart_total == 5300


def test_find_by_reference(store):
    _, first = store.resolve(None)
    _, second = store.resolve(None)
    second.pending_payment = PendingPayment(amount=300, reference="ord_abc")

    matches = store.find_by_reference("ord_abc")

    assert [state for _, state in matches] == [second]
    assert store.has_reference("ord_abc")
    assert not store.has_reference("ord_zzz")
    assert first.pending_payment is None


def test_clear(store):
    store.resolve(None)
    store.clear()
    assert len(store) == 0


class _CreatesSessionOnRead:
    """Pending-payment stand-in that opens a new session whenever it is inspected."""

    def __init__(self, store):
        self.store = store

    @property
    def reference(self):
        self.store.resolve(None)
        return "ord_other"


def test_find_by_reference_tolerates_inserts_during_scan(store):
    _, noisy = store.resolve(None)
    noisy.pending_payment = _CreatesSessionOnRead(store)
    _, target = store.resolve(None)
    target.pending_payment = PendingPayment(amount=300, reference="ord_target")

    matches = store.find_by_reference("ord_target")

    assert [state for _, state in matches] == [target]
    assert len(store) == 3


def test_find_by_reference_with_concurrent_writers(store):
    _, target = store.resolve(None)
    target.pending_payment = PendingPayment(amount=300, reference="ord_target")
    stop = threading.Event()

    def create_sessions():
        for _ in range(2000):
            if stop.is_set():
                break
            store.resolve(None)

    writers = [threading.Thread(target=create_sessions) for _ in range(4)]
    for writer in writers:
        writer.start()
    try:
        for _ in range(50):
            assert [state for _, state in store.find_by_reference("ord_target")] == [target]
    finally:
        stop.set()
        for writer in writers:
            writer.join()
