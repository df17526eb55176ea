"""In-process implementation of the Order repository.

Backs local development and the test-suite.  Documents are kept in their
storage shape (camelCase dicts); every write pushes a fresh snapshot to the
owner's open streams, mimicking the document store's listeners.
"""

from __future__ import annotations

import secrets
import threading
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog

from modules.orders.dtos import OrderDocument
from modules.orders.exceptions import OrderNotFound
from modules.orders.repositories.interfaces import IOrderRepository
from shared.infrastructure.streams import SnapshotStream

logger = structlog.get_logger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class InMemoryOrderRepository(IOrderRepository):
    """Thread-safe dict-backed order store with live owner feeds."""

    def __init__(self) -> None:
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._streams: Dict[str, List[SnapshotStream[List[OrderDocument]]]] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[OrderDocument]:
        with self._lock:
            data = self._documents.get(id)
            if data is None:
                return None
            return OrderDocument.from_snapshot(id, deepcopy(data))

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[OrderDocument]:
        with self._lock:
            matches = [
                OrderDocument.from_snapshot(doc_id, deepcopy(data))
                for doc_id, data in self._documents.items()
                if all(data.get(key) == value for key, value in (filters or {}).items())
            ]
        return sorted(matches, key=lambda o: o.created_at or _EPOCH, reverse=True)

    def list_by_owner(self, owner_id: str) -> List[OrderDocument]:
        return self.list({"userId": owner_id})

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, data: Dict[str, Any]) -> str:
        doc_id = secrets.token_urlsafe(15)
        payload = deepcopy(data)
        payload.setdefault("createdAt", datetime.now(timezone.utc))
        with self._lock:
            self._documents[doc_id] = payload
        logger.info("order_repository.created", order_id=doc_id, backend="memory")
        self._notify(payload.get("userId"))
        return doc_id

    def update(self, id: str, data: Dict[str, Any]) -> None:
        with self._lock:
            current = self._documents.get(id)
            if current is None:
                raise OrderNotFound(f"Order {id} not found.")
            current.update(deepcopy(data))
            owner_id = current.get("userId")
        self._notify(owner_id)

    def delete(self, id: str) -> bool:
        with self._lock:
            data = self._documents.pop(id, None)
        if data is None:
            return False
        self._notify(data.get("userId"))
        return True

    def clear(self) -> None:
        with self._lock:
            owners = {data.get("userId") for data in self._documents.values()}
            self._documents.clear()
        for owner_id in owners:
            self._notify(owner_id)

    # ------------------------------------------------------------------
    # Live feed
    # ------------------------------------------------------------------

    def subscribe_by_owner(self, owner_id: str) -> SnapshotStream[List[OrderDocument]]:
        stream: SnapshotStream[List[OrderDocument]] = SnapshotStream()
        with self._lock:
            self._streams.setdefault(owner_id, []).append(stream)
        stream.bind_unsubscribe(lambda: self._detach(owner_id, stream))
        stream.push(self.list_by_owner(owner_id))
        return stream

    def fail_subscribers(self, owner_id: str, error: BaseException) -> None:
        """Deliver *error* to every open feed of *owner_id*."""
        for stream in self._open_streams(owner_id):
            stream.fail(error)

    def subscriber_count(self, owner_id: str) -> int:
        return len(self._open_streams(owner_id))

    def _open_streams(self, owner_id: str) -> List[SnapshotStream[List[OrderDocument]]]:
        with self._lock:
            return list(self._streams.get(owner_id, []))

    def _detach(self, owner_id: str, stream: SnapshotStream[List[OrderDocument]]) -> None:
        with self._lock:
            streams = self._streams.get(owner_id, [])
            if stream in streams:
                streams.remove(stream)

    def _notify(self, owner_id: Optional[str]) -> None:
        if owner_id is None:
            return
        streams = self._open_streams(owner_id)
        if not streams:
            return
        snapshot = self.list_by_owner(owner_id)
        for stream in streams:
            stream.push(snapshot)
