"""Last-known-good order snapshots, per owner, in the Django cache.

Used to paint the overview immediately when a live feed starts and to
answer when the document store is unreachable.  The cache is an
optimisation: read or write failures are logged and ignored.
"""

from __future__ import annotations

from typing import List, Optional

import structlog
from django.core.cache import cache as default_cache
from pydantic import ValidationError

from modules.orders.constants import ORDERS_CACHE_KEY
from modules.orders.dtos import OrderDocument

logger = structlog.get_logger(__name__)


class OrderSnapshotCache:
    def __init__(self, backend=None, timeout: Optional[int] = None) -> None:
        self._cache = backend or default_cache
        self._timeout = timeout

    @staticmethod
    def key(owner_id: str) -> str:
        return ORDERS_CACHE_KEY.format(owner_id=owner_id)

    def load(self, owner_id: str) -> Optional[List[OrderDocument]]:
        try:
            raw = self._cache.get(self.key(owner_id))
        except Exception as exc:
            logger.warning("order_cache.read_failed", owner_id=owner_id, error=str(exc))
            return None
        if raw is None:
            return None
        try:
            return [OrderDocument.model_validate(item) for item in raw]
        except (TypeError, ValidationError) as exc:
            logger.warning("order_cache.corrupt_entry", owner_id=owner_id, error=str(exc))
            return None

    def save(self, owner_id: str, orders: List[OrderDocument]) -> None:
        payload = [order.model_dump(mode="json", by_alias=True) for order in orders]
        try:
            self._cache.set(self.key(owner_id), payload, self._timeout)
        except Exception as exc:
            logger.warning("order_cache.write_failed", owner_id=owner_id, error=str(exc))
