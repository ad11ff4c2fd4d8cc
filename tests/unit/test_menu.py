import pytest

from orderbot.menu import MENU, RESERVED_COMMANDS, MenuCatalog, MenuItem


def test_default_menu_ids_are_unique_and_not_reserved():
    ids = [str(item.id) for item in MENU]
    assert len(ids) == len(set(ids))
    assert not set(ids) & RESERVED_COMMANDS


def test_find_matches_exact_id_string():
    assert MENU.find("10").name == "Margherita Pizza"
    assert MENU.find("20").price == 1800
    assert MENU.find("010") is None
    assert MENU.find("99") is None


def test_catalog_rejects_reserved_id():
    with pytest.raises(ValueError, match="reserved"):
        MenuCatalog([MenuItem(id=99, name="Mystery Box", price=100)])


def test_catalog_rejects_duplicate_id():
    with pytest.raises(ValueError, match="Duplicate"):
        MenuCatalog([
            MenuItem(id=10, name="Pizza", price=100),
            MenuItem(id=10, name="Other Pizza", price=200),
        ])


def test_menu_items_are_immutable():
    item = MENU.items[0]
    with pytest.raises(AttributeError):
        item.price = 1
