"""Cart and checkout exceptions.

Raised by the cart service, its storage and the checkout service.  The
API layer (Views) translates them into HTTP responses.
"""

from __future__ import annotations


class CartItemNotFound(Exception):
    """No line with the given product id is in the cart."""


class CartPersistenceError(Exception):
    """The cart could not be written; the in-memory cart was left unchanged."""


class EmptyCart(Exception):
    """Checkout was attempted with no lines in the cart."""


class PaymentInitializationError(Exception):
    """The payment gateway did not return a payment link."""


class PaymentNotConfirmed(Exception):
    """The gateway redirect does not indicate a successful charge."""
