"""Cart service layer.

``CartService`` is the cart aggregator for one owner.  Every mutation
builds the next line list, persists it, and only then swaps it in, so the
in-memory cart and the stored cart are identical after each call returns
(or both unchanged when the write fails).

Two kinds of amounts are produced, on purpose:
- checkout totals are numeric; an unreadable price counts as 0;
- per-line display strings show the unknown-amount sentinel instead.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional, Tuple

import structlog

from modules.cart.constants import SHIPPING_FEE
from modules.cart.dtos import CartItem, CartLineDTO, CartSummaryDTO
from modules.cart.exceptions import CartItemNotFound
from modules.core.money import format_amount, normalize_amount

if TYPE_CHECKING:
    from modules.cart.storage import ICartStorage

logger = structlog.get_logger(__name__)

ZERO = Decimal("0")


class CartService:
    """Application service for one customer's cart.

    Receives the storage via constructor injection (DIP).  Single-session:
    concurrent writers are last-write-wins at the storage layer.
    """

    def __init__(self, storage: ICartStorage, owner_id: str) -> None:
        self._storage = storage
        self._owner_id = owner_id
        self._items: List[CartItem] = storage.load(owner_id)
        self._log = logger.bind(owner_id=owner_id)

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def items(self) -> Tuple[CartItem, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get(self, item_id: str) -> Optional[CartItem]:
        return next((item for item in self._items if item.id == item_id), None)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def add(self, item: CartItem, qty: int = 1) -> CartItem:
        """Add *qty* of *item*, merging with an existing line of the same id."""
        if qty < 1:
            raise ValueError("Quantity must be at least 1.")
        existing = self.get(item.id)
        if existing is not None:
            line = existing.model_copy(update={"qty": existing.qty + qty})
            next_items = [line if it.id == item.id else it for it in self._items]
        else:
            line = item.model_copy(update={"qty": qty})
            next_items = [*self._items, line]
        self._commit(next_items, "cart.item_added", item_id=item.id, qty=line.qty)
        return line

    def increment(self, item_id: str) -> CartItem:
        return self._step(item_id, +1)

    def decrement(self, item_id: str) -> CartItem:
        """Lower the quantity by one, never below 1; use ``remove`` to drop."""
        return self._step(item_id, -1)

    def remove(self, item_id: str) -> None:
        if self.get(item_id) is None:
            raise CartItemNotFound(f"Item {item_id} is not in the cart.")
        next_items = [it for it in self._items if it.id != item_id]
        self._commit(next_items, "cart.item_removed", item_id=item_id)

    def clear(self) -> None:
        self._commit([], "cart.cleared")

    def _step(self, item_id: str, delta: int) -> CartItem:
        existing = self.get(item_id)
        if existing is None:
            raise CartItemNotFound(f"Item {item_id} is not in the cart.")
        line = existing.model_copy(update={"qty": max(1, existing.qty + delta)})
        next_items = [line if it.id == item_id else it for it in self._items]
        self._commit(next_items, "cart.qty_changed", item_id=item_id, qty=line.qty)
        return line

    def _commit(self, next_items: List[CartItem], event: str, **fields) -> None:
        self._storage.save(self._owner_id, next_items)
        self._items = next_items
        self._log.info(event, lines=len(next_items), **fields)

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    @staticmethod
    def unit_price(item: CartItem) -> Optional[Decimal]:
        return normalize_amount(item.price)

    def total(self) -> Decimal:
        """Sum of price x qty; unreadable prices count as 0."""
        return sum(
            ((self.unit_price(item) or ZERO) * item.qty for item in self._items),
            ZERO,
        )

    def shipping_fee(self) -> Decimal:
        return SHIPPING_FEE if self._items else ZERO

    def total_with_shipping(self) -> Decimal:
        return self.total() + self.shipping_fee()

    def line_display(self, item: CartItem) -> str:
        return format_amount(self.unit_price(item))

    def summary(self) -> CartSummaryDTO:
        lines = []
        for item in self._items:
            price = self.unit_price(item)
            lines.append(
                CartLineDTO(
                    id=item.id,
                    title=item.title,
                    image_url=item.image_url,
                    qty=item.qty,
                    unit_price=price,
                    unit_price_display=format_amount(price),
                    line_total_display=format_amount(
                        price * item.qty if price is not None else None
                    ),
                )
            )
        subtotal = self.total()
        shipping = self.shipping_fee()
        return CartSummaryDTO(
            lines=lines,
            item_count=sum(item.qty for item in self._items),
            subtotal=subtotal,
            shipping_fee=shipping,
            total=subtotal + shipping,
            subtotal_display=format_amount(subtotal),
            shipping_fee_display=format_amount(shipping),
            total_display=format_amount(subtotal + shipping),
        )
