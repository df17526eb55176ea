"""Unit tests for the cart aggregator."""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List

import pytest

from modules.cart.dtos import CartItem
from modules.cart.exceptions import CartItemNotFound, CartPersistenceError
from modules.cart.services import CartService
from modules.cart.storage import ICartStorage

pytestmark = pytest.mark.unit

OWNER = "uid-alice"


class DictStorage(ICartStorage):
    """Storage double that can be told to reject writes."""

    def __init__(self) -> None:
        self.saved: Dict[str, List[CartItem]] = {}
        self.fail_writes = False

    def load(self, owner_id):
        return list(self.saved.get(owner_id, []))

    def save(self, owner_id, items):
        if self.fail_writes:
            raise CartPersistenceError("disk full")
        self.saved[owner_id] = list(items)


@pytest.fixture()
def storage():
    return DictStorage()


@pytest.fixture()
def cart(storage):
    return CartService(storage=storage, owner_id=OWNER)


def item(item_id: str, price, title: str = "") -> CartItem:
    return CartItem(id=item_id, title=title or item_id.upper(), price=price)


class TestTotals:
    def test_mixed_price_types_add_up_with_shipping(self, cart):
        cart.add(item("a", "1,500"), qty=2)
        cart.add(item("b", 2000))

        assert cart.total() == Decimal("5000")
        assert cart.total_with_shipping() == Decimal("9000")

    def test_empty_cart_has_no_shipping(self, cart):
        assert cart.total() == Decimal("0")
        assert cart.shipping_fee() == Decimal("0")
        assert cart.total_with_shipping() == Decimal("0")

    def test_unreadable_price_counts_as_zero_in_totals(self, cart):
        cart.add(item("a", "call us"))
        cart.add(item("b", 1000))
        assert cart.total() == Decimal("1000")

    def test_unreadable_price_displays_sentinel_per_line(self, cart):
        cart.add(item("a", "call us"), qty=2)
        summary = cart.summary()
        line = summary.lines[0]
        assert line.unit_price is None
        assert line.unit_price_display == "Amount unknown"
        assert line.line_total_display == "Amount unknown"
        assert summary.total_display == "NGN 4,000"

    def test_summary_lines_and_counts(self, cart):
        cart.add(item("a", "₦1,500"), qty=2)
        cart.add(item("b", 2000))
        summary = cart.summary()
        assert summary.item_count == 3
        assert [line.line_total_display for line in summary.lines] == ["NGN 3,000", "NGN 2,000"]
        assert summary.subtotal_display == "NGN 5,000"
        assert summary.shipping_fee_display == "NGN 4,000"
        assert summary.total == Decimal("9000")


class TestLines:
    def test_adding_the_same_id_merges_quantities(self, cart):
        cart.add(item("a", 100))
        cart.add(item("a", 100), qty=3)
        assert len(cart) == 1
        assert cart.get("a").qty == 4

    def test_add_rejects_non_positive_quantity(self, cart):
        with pytest.raises(ValueError):
            cart.add(item("a", 100), qty=0)

    def test_increment(self, cart):
        cart.add(item("a", 100))
        assert cart.increment("a").qty == 2

    def test_decrement_floors_at_one(self, cart):
        cart.add(item("a", 100))
        assert cart.decrement("a").qty == 1
        assert cart.get("a").qty == 1

    def test_remove_drops_the_line_whatever_the_quantity(self, cart):
        cart.add(item("a", 100), qty=5)
        cart.remove("a")
        assert cart.get("a") is None
        assert len(cart) == 0

    @pytest.mark.parametrize("command", ["increment", "decrement", "remove"])
    def test_unknown_item(self, cart, command):
        with pytest.raises(CartItemNotFound):
            getattr(cart, command)("ghost")

    def test_clear(self, cart, storage):
        cart.add(item("a", 100))
        cart.clear()
        assert cart.items == ()
        assert storage.saved[OWNER] == []


class TestPersistence:
    def test_every_mutation_is_persisted(self, cart, storage):
        cart.add(item("a", 100))
        cart.increment("a")
        assert storage.saved[OWNER] == list(cart.items)

    def test_cart_reloads_from_storage(self, cart, storage):
        cart.add(item("a", 100), qty=2)
        reloaded = CartService(storage=storage, owner_id=OWNER)
        assert reloaded.items == cart.items

    def test_failed_write_leaves_the_cart_unchanged(self, cart, storage):
        cart.add(item("a", 100))
        storage.fail_writes = True

        with pytest.raises(CartPersistenceError):
            cart.increment("a")
        with pytest.raises(CartPersistenceError):
            cart.add(item("b", 50))

        assert cart.get("a").qty == 1
        assert cart.get("b") is None
        assert list(cart.items) == storage.saved[OWNER]


class TestCartItem:
    def test_reads_camel_case_payload(self):
        line = CartItem.model_validate({"id": "a", "imageUrl": "https://img", "price": "₦5"})
        assert line.image_url == "https://img"

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValueError):
            CartItem(id="a", qty=0)
