"""Order repositories package.

``get_order_repository`` returns the process-wide repository selected by
``settings.ORDER_REPOSITORY`` (``firestore`` or ``memory``).
"""

from functools import lru_cache

from django.conf import settings

from modules.orders.repositories.interfaces import IOrderRepository
from modules.orders.repositories.memory_repository import InMemoryOrderRepository


@lru_cache(maxsize=None)
def get_order_repository() -> IOrderRepository:
    backend = getattr(settings, "ORDER_REPOSITORY", "firestore")
    if backend == "memory":
        return InMemoryOrderRepository()
    from modules.orders.repositories.firestore_repository import (
        FirestoreOrderRepository,
    )

    return FirestoreOrderRepository()


__all__ = ["IOrderRepository", "InMemoryOrderRepository", "get_order_repository"]
