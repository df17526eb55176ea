"""Order domain exceptions.

Raised by the repositories and the service layer.  The API layer (Views)
catches these and translates them into HTTP responses.  Amount parsing
and subscription errors are not exceptions here: they degrade to a
sentinel or to the last known view.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The requested order document does not exist."""


class OrderAccessDenied(Exception):
    """The viewer does not own the order, or ownership is unknown."""


class OrderRepositoryError(Exception):
    """The document store failed to serve a read or write."""


class OrderStoreNotStarted(Exception):
    """``OrderStore.pump``/``run`` was called before ``start``."""
