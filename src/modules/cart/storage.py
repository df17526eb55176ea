"""Cart persistence.

The cart is owned by one customer session and is written whole on every
change under a fixed per-owner key.  ``save`` either stores the full list
or raises ``CartPersistenceError``; it never reports success for a write
that did not happen.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

import structlog
from django.core.cache import cache as default_cache
from pydantic import ValidationError

from modules.cart.constants import CART_PERSIST_ATTEMPTS, CART_STORAGE_KEY
from modules.cart.dtos import CartItem
from modules.cart.exceptions import CartPersistenceError

logger = structlog.get_logger(__name__)


class ICartStorage(ABC):
    """Storage contract for a customer's cart lines."""

    @abstractmethod
    def load(self, owner_id: str) -> List[CartItem]:
        """Return the persisted lines; a corrupt entry loads empty.

        Raises:
            CartPersistenceError: the storage could not be reached.
        """

    @abstractmethod
    def save(self, owner_id: str, items: Sequence[CartItem]) -> None:
        """Replace the persisted lines with *items*.

        Raises:
            CartPersistenceError: the write did not complete.
        """


class CacheCartStorage(ICartStorage):
    """Cart lines in the Django cache (Redis in production), no expiry."""

    def __init__(self, backend=None, attempts: int = CART_PERSIST_ATTEMPTS) -> None:
        self._cache = backend or default_cache
        self._attempts = max(1, attempts)

    @staticmethod
    def key(owner_id: str) -> str:
        return CART_STORAGE_KEY.format(owner_id=owner_id)

    def load(self, owner_id: str) -> List[CartItem]:
        try:
            raw = self._cache.get(self.key(owner_id))
        except Exception as exc:
            logger.warning("cart_storage.read_failed", owner_id=owner_id, error=str(exc))
            raise CartPersistenceError(f"Cart for {owner_id} could not be loaded.") from exc
        if not raw:
            return []
        try:
            return [CartItem.model_validate(item) for item in raw]
        except (TypeError, ValidationError) as exc:
            logger.warning("cart_storage.corrupt_entry", owner_id=owner_id, error=str(exc))
            return []

    def save(self, owner_id: str, items: Sequence[CartItem]) -> None:
        payload = [item.model_dump(mode="json", by_alias=True) for item in items]
        last_error: Exception | None = None
        for attempt in range(1, self._attempts + 1):
            try:
                self._cache.set(self.key(owner_id), payload, None)
                return
            except Exception as exc:
                last_error = exc
                logger.warning(
                    "cart_storage.write_failed",
                    owner_id=owner_id,
                    attempt=attempt,
                    error=str(exc),
                )
        raise CartPersistenceError(
            f"Cart for {owner_id} could not be saved after {self._attempts} attempts."
        ) from last_error
