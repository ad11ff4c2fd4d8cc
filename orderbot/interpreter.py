"""
Command Interpreter

Maps (session state, raw chat text) to (session state, reply lines).

Commands are matched exactly against the trimmed input, in this order:

    ""    main menu
    "1"   list the menu
    "99"  checkout
    "98"  order history
    "97"  current order
    "0"   cancel current order
    <id>  add the menu item with that id
    *     invalid input

The session state passed in is mutated in place and also returned.
"""

import logging
from typing import Any, Optional

from orderbot.exceptions import UserInputError
from orderbot.menu import MENU, MenuCatalog, MenuItem
from orderbot.services.correlator import PaymentCorrelator
from orderbot.sessions import SessionState

logger = logging.getLogger(__name__)

CMD_LIST_MENU = "1"
CMD_CHECKOUT = "99"
CMD_HISTORY = "98"
CMD_CURRENT = "97"
CMD_CANCEL = "0"

MSG_NOTHING_TO_PLACE = "No order to place. Type 1 to start an order."
MSG_ORDER_PLACED = "✅ Order placed successfully!"
MSG_PAYMENT_FAILED = "Payment initialization failed. Please try again."
MSG_NO_HISTORY = "No order history yet."
MSG_NO_CURRENT = "No current order."
MSG_CANCELLED = "❌ Current order cancelled."
MSG_INVALID = "Invalid input. Try again."


def _names(items: list[MenuItem]) -> str:
    return ", ".join(item.name for item in items)


class CommandInterpreter:
    """
    Numeric-command dispatcher.

    Args:
        catalog: Menu items that can be added by id
        correlator: Payment correlator; None places orders at checkout
        restaurant_name: Shown in the main menu greeting
        currency_symbol: Prefix for prices

    Example:
        >>> interpreter = CommandInterpreter()
        >>> state, reply = await interpreter.interpret(SessionState(), "10")
        >>> reply[0]
        'Added Margherita Pizza to order.'
    """

    def __init__(
        self,
        catalog: MenuCatalog = MENU,
        correlator: Optional[PaymentCorrelator] = None,
        restaurant_name: str = "Dummy Restaurant",
        currency_symbol: str = "₦",
    ):
        self.catalog = catalog
        self.correlator = correlator
        self.restaurant_name = restaurant_name
        self.currency_symbol = currency_symbol

        self._commands = {
            CMD_LIST_MENU: self._list_menu,
            CMD_CHECKOUT: self._checkout,
            CMD_HISTORY: self._history,
            CMD_CURRENT: self._current_order,
            CMD_CANCEL: self._cancel,
        }

    def _price(self, amount: int) -> str:
        return f"{self.currency_symbol}{amount}"

    def main_menu(self) -> list[str]:
        return [
            f"Welcome to {self.restaurant_name} Bot 🍽️",
            "Select 1 to Place an order",
            "Select 99 to Checkout order",
            "Select 98 to See order history",
            "Select 97 to See current order",
            "Select 0 to Cancel order",
        ]

    async def interpret(
        self,
        state: SessionState,
        raw_input: Any,
    ) -> tuple[SessionState, list[str]]:
        """
        Apply one chat command to a session.

        Args:
            state: Session to read and mutate
            raw_input: Text typed by the user (None is treated as empty)

        Returns:
            (state, reply): The same session object and the reply lines
        """
        command = str(raw_input if raw_input is not None else "").strip()

        if not command:
            return state, self.main_menu()

        handler = self._commands.get(command)
        if handler is not None:
            return state, await handler(state)

        try:
            return state, self._add_item(state, command)
        except UserInputError as e:
            logger.debug(f"{e}")
            return state, [MSG_INVALID, *self.main_menu()]

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _list_menu(self, state: SessionState) -> list[str]:
        return [
            "Select item number to add to your order:",
            *(f"{item.id}. {item.name} - {self._price(item.price)}" for item in self.catalog),
        ]

    async def _checkout(self, state: SessionState) -> list[str]:
        if not state.current_order:
            return [MSG_NOTHING_TO_PLACE]

        total = state.cart_total

        if self.correlator is None:
            state.orders.append(list(state.current_order))
            state.current_order = []
            logger.info(f"Order #{len(state.orders)} placed - total {total}")
            return [MSG_ORDER_PLACED, *self.main_menu()]

        result = await self.correlator.initiate_checkout(state, total)
        if not result.success:
            return [MSG_PAYMENT_FAILED]

        return [
            f"Your order total is {self._price(total)}.",
            f"Complete your payment here: {result.payment_url}",
            "Type 97 to review your order.",
        ]

    async def _history(self, state: SessionState) -> list[str]:
        if not state.orders:
            return [MSG_NO_HISTORY]
        return [
            f"Order {number}: {_names(order)}"
            for number, order in enumerate(state.orders, start=1)
        ]

    async def _current_order(self, state: SessionState) -> list[str]:
        if not state.current_order:
            return [MSG_NO_CURRENT]

        reply = ["Current order:", _names(state.current_order)]
        if state.pending_payment is not None:
            reply.append(
                f"Awaiting payment of {self._price(state.pending_payment.amount)}."
            )
        return reply

    async def _cancel(self, state: SessionState) -> list[str]:
        state.current_order = []
        if self.correlator is not None:
            self.correlator.release(state)
        state.pending_payment = None
        return [MSG_CANCELLED, *self.main_menu()]

    def _add_item(self, state: SessionState, command: str) -> list[str]:
        item = self.catalog.find(command)
        if item is None:
            raise UserInputError(command)

        state.current_order.append(item)
        return [
            f"Added {item.name} to order.",
            "Select more items or type 99 to checkout.",
        ]
