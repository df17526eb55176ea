"""Cart and checkout constants."""

from decimal import Decimal

# Flat delivery charge added once per non-empty cart (Naira).
SHIPPING_FEE = Decimal("4000")

CART_STORAGE_KEY = "cart_items:{owner_id}"
CART_PERSIST_ATTEMPTS = 2

CHECKOUT_CURRENCY = "NGN"
CHECKOUT_REFERENCE_PREFIX = "sachio-cart"
DEFAULT_COUNTRY = "Nigeria"
DEFAULT_PAYMENT_METHOD = "Card"

# Any of these in the gateway's final redirect URL means the charge went through.
PAYMENT_SUCCESS_MARKERS: tuple[str, ...] = (
    "status=successful",
    "success=true",
    "sachio-mobile/close",
)
