"""
Menu Catalog

Static, immutable list of orderable items. Item ids double as chat
commands, so they must never collide with the reserved command tokens.
"""

from dataclasses import dataclass
from typing import Iterable, Optional


# Commands matched before catalog ids
RESERVED_COMMANDS = frozenset({"1", "99", "98", "97", "0"})


@dataclass(frozen=True)
class MenuItem:
    """A single orderable dish. Prices are whole currency units."""
    id: int
    name: str
    price: int


class MenuCatalog:
    """
    Ordered, read-only collection of menu items.

    Raises:
        ValueError: If two items share an id or an id shadows a
            reserved command
    """

    def __init__(self, items: Iterable[MenuItem]):
        self._items = tuple(items)
        self._by_key: dict[str, MenuItem] = {}

        for item in self._items:
            key = str(item.id)
            if key in RESERVED_COMMANDS:
                raise ValueError(
                    f"Menu item id {item.id} collides with a reserved command"
                )
            if key in self._by_key:
                raise ValueError(f"Duplicate menu item id {item.id}")
            self._by_key[key] = item

    def __iter__(self):
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> tuple[MenuItem, ...]:
        return self._items

    def find(self, command: str) -> Optional[MenuItem]:
        """Return the item whose id matches the command string exactly."""
        return self._by_key.get(command)


MENU = MenuCatalog([
    MenuItem(id=10, name="Margherita Pizza", price=3500),
    MenuItem(id=20, name="Cheeseburger", price=1800),
    MenuItem(id=30, name="Jollof Rice (Large)", price=2200),
    MenuItem(id=40, name="Fried Plantain + Egg", price=700),
    MenuItem(id=50, name="Coke (330ml)", price=300),
])
