"""Checkout service (Use Cases).

Turns the cart into a paid order:

1. ``start`` — ask the payment gateway for a hosted-payment link for the
   cart total (shipping included) under a fresh ``sachio-cart-<ms>``
   reference.
2. ``confirm`` — once the gateway redirect says the charge succeeded,
   write the order with ``status="paid"`` and that reference, then empty
   the cart.

Confirming the same reference twice returns the order written the first
time instead of creating a duplicate.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

import structlog

from modules.cart.constants import (
    CHECKOUT_CURRENCY,
    CHECKOUT_REFERENCE_PREFIX,
    DEFAULT_PAYMENT_METHOD,
    PAYMENT_SUCCESS_MARKERS,
)
from modules.cart.exceptions import EmptyCart, PaymentNotConfirmed
from modules.core.money import as_plain_number, normalize_amount
from modules.orders.constants import STATUS_PAID, OrderType

if TYPE_CHECKING:
    from modules.cart.dtos import CheckoutDetailsDTO, PaymentSessionDTO
    from modules.cart.gateways import PaymentGateway
    from modules.cart.services import CartService
    from modules.orders.dtos import OrderDocument
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.services import OrderService

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def is_payment_success_url(url: Optional[str]) -> bool:
    if not url:
        return False
    return any(marker in url for marker in PAYMENT_SUCCESS_MARKERS)


def new_reference(now: datetime) -> str:
    return f"{CHECKOUT_REFERENCE_PREFIX}-{int(now.timestamp() * 1000)}"


class CheckoutService:
    """Application service for paying for a cart.

    Receives its collaborators via constructor injection (DIP).
    """

    def __init__(
        self,
        cart: CartService,
        order_service: OrderService,
        order_repository: IOrderRepository,
        gateway: PaymentGateway,
        clock: Optional[Clock] = None,
    ) -> None:
        self._cart = cart
        self._orders = order_service
        self._order_repo = order_repository
        self._gateway = gateway
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def start(self, details: CheckoutDetailsDTO) -> PaymentSessionDTO:
        """Open a payment session for the current cart.

        Raises:
            EmptyCart: nothing to pay for.
            PaymentInitializationError: the gateway gave no link.
        """
        if not len(self._cart):
            raise EmptyCart("Cart is empty.")
        reference = new_reference(self._clock())
        amount = self._cart.total_with_shipping()
        logger.info(
            "checkout.started",
            owner_id=self._cart.owner_id,
            reference=reference,
            amount=str(amount),
        )
        return self._gateway.initialize(
            reference=reference,
            amount=amount,
            currency=CHECKOUT_CURRENCY,
            email=str(details.email),
            phone=details.phone,
            meta={"items": [{"id": it.id, "qty": it.qty} for it in self._cart.items]},
        )

    def confirm(
        self,
        reference: str,
        details: CheckoutDetailsDTO,
        redirect_url: Optional[str],
    ) -> OrderDocument:
        """Record the paid order for *reference* and clear the cart.

        Raises:
            PaymentNotConfirmed: *redirect_url* is missing or does not signal
                success.
            EmptyCart: no order exists for *reference* and the cart is empty.
            CartPersistenceError: the order was written but the cart
                could not be cleared.
        """
        log = logger.bind(owner_id=self._cart.owner_id, reference=reference)
        if not is_payment_success_url(redirect_url):
            log.warning("checkout.payment_not_confirmed")
            raise PaymentNotConfirmed(f"Payment {reference} was not confirmed.")

        existing = self._find_by_reference(reference)
        if existing is not None:
            log.info("checkout.idempotency_hit", order_id=existing.id)
            if len(self._cart):
                self._cart.clear()
            return existing

        if not len(self._cart):
            raise EmptyCart("Cart is empty.")

        order = self._orders.place_order(self._order_payload(reference, details))
        self._cart.clear()
        log.info("checkout.confirmed", order_id=order.id)
        return order

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _find_by_reference(self, reference: str) -> Optional[OrderDocument]:
        matches = self._order_repo.list(
            {"reference": reference, "userId": self._cart.owner_id}
        )
        return matches[0] if matches else None

    def _order_payload(self, reference: str, details: CheckoutDetailsDTO) -> Dict[str, Any]:
        subtotal = self._cart.total()
        shipping = self._cart.shipping_fee()
        items = []
        for item in self._cart.items:
            price = normalize_amount(item.price)
            items.append(
                {
                    "id": item.id,
                    "title": item.title,
                    "price": as_plain_number(price) if price is not None else 0,
                    "qty": item.qty,
                    "imageUrl": item.image_url or "",
                }
            )
        return {
            "items": items,
            "subtotal": as_plain_number(subtotal),
            "shippingFee": as_plain_number(shipping),
            "total": as_plain_number(subtotal + shipping),
            "type": OrderType.BUY.value,
            "paymentMethod": DEFAULT_PAYMENT_METHOD,
            "paymentMethodId": "flutterwave",
            "userId": self._cart.owner_id,
            "customerName": str(details.email),
            "customerPhone": details.phone,
            "customerAddress": details.address,
            "rentalStartDate": details.rental_start_date,
            "rentalEndDate": details.rental_end_date,
            "country": details.country,
            "city": details.city,
            "state": details.state,
            "note": details.note,
            "status": STATUS_PAID,
            "reference": reference,
        }
