"""Firestore implementation of the Order repository.

Orders live in the ``orders`` collection written by the mobile app and the
admin console.  The Admin SDK is initialised once per process from the
service-account file named by ``FIREBASE_CREDENTIALS`` (application default
credentials when unset).

Listener callbacks run on the SDK's watch thread; they only push into the
``SnapshotStream`` and never touch consumer state.  The SDK closes a failed
watch without calling the listener, so a monitor thread turns a watch that
stopped streaming into a stream error.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

import firebase_admin
import structlog
from django.conf import settings
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter

from modules.orders.constants import ORDERS_COLLECTION, WATCH_POLL_SECONDS
from modules.orders.dtos import OrderDocument
from modules.orders.exceptions import OrderNotFound, OrderRepositoryError
from modules.orders.repositories.interfaces import IOrderRepository
from shared.infrastructure.streams import SnapshotStream

logger = structlog.get_logger(__name__)


def get_firestore_client():
    """Return a Firestore client, initialising the default app on first use."""
    try:
        app = firebase_admin.get_app()
    except ValueError:
        cred_path = getattr(settings, "FIREBASE_CREDENTIALS", "")
        cred = credentials.Certificate(cred_path) if cred_path else None
        app = firebase_admin.initialize_app(cred)
        logger.info("firestore.app_initialized", project_id=app.project_id)
    return firestore.client(app)


class FirestoreOrderRepository(IOrderRepository):
    """Concrete Order repository backed by Cloud Firestore."""

    def __init__(self, client=None, watch_poll_seconds: float = WATCH_POLL_SECONDS) -> None:
        self._client = client or get_firestore_client()
        self._watch_poll_seconds = watch_poll_seconds

    @property
    def _collection(self):
        return self._client.collection(ORDERS_COLLECTION)

    def _owner_query(self, owner_id: str):
        return self._collection.where(
            filter=FieldFilter("userId", "==", owner_id)
        ).order_by("createdAt", direction=firestore.Query.DESCENDING)

    @staticmethod
    def _to_documents(snapshots) -> List[OrderDocument]:
        return [OrderDocument.from_snapshot(snap.id, snap.to_dict()) for snap in snapshots]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[OrderDocument]:
        try:
            snap = self._collection.document(id).get()
        except google_exceptions.GoogleAPIError as exc:
            logger.warning("order_repository.read_failed", order_id=id, error=str(exc))
            raise OrderRepositoryError(f"Could not read order {id}.") from exc
        if not snap.exists:
            return None
        return OrderDocument.from_snapshot(snap.id, snap.to_dict())

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[OrderDocument]:
        query = self._collection
        for field, value in (filters or {}).items():
            query = query.where(filter=FieldFilter(field, "==", value))
        try:
            return self._to_documents(query.stream())
        except google_exceptions.GoogleAPIError as exc:
            logger.warning("order_repository.query_failed", error=str(exc))
            raise OrderRepositoryError("Could not list orders.") from exc

    def list_by_owner(self, owner_id: str) -> List[OrderDocument]:
        try:
            return self._to_documents(self._owner_query(owner_id).stream())
        except google_exceptions.GoogleAPIError as exc:
            logger.warning("order_repository.query_failed", owner_id=owner_id, error=str(exc))
            raise OrderRepositoryError(f"Could not list orders for {owner_id}.") from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, data: Dict[str, Any]) -> str:
        payload = dict(data)
        payload.setdefault("createdAt", firestore.SERVER_TIMESTAMP)
        try:
            _, ref = self._collection.add(payload)
        except google_exceptions.GoogleAPIError as exc:
            logger.error("order_repository.create_failed", error=str(exc))
            raise OrderRepositoryError("Could not create order.") from exc
        logger.info("order_repository.created", order_id=ref.id, backend="firestore")
        return ref.id

    def update(self, id: str, data: Dict[str, Any]) -> None:
        try:
            self._collection.document(id).update(data)
        except google_exceptions.NotFound as exc:
            raise OrderNotFound(f"Order {id} not found.") from exc
        except google_exceptions.GoogleAPIError as exc:
            logger.error("order_repository.update_failed", order_id=id, error=str(exc))
            raise OrderRepositoryError(f"Could not update order {id}.") from exc

    # ------------------------------------------------------------------
    # Live feed
    # ------------------------------------------------------------------

    def subscribe_by_owner(self, owner_id: str) -> SnapshotStream[List[OrderDocument]]:
        stream: SnapshotStream[List[OrderDocument]] = SnapshotStream()

        def on_snapshot(docs, changes, read_time) -> None:
            try:
                stream.push(self._to_documents(docs))
            except Exception as exc:  # parse failures travel to the consumer
                stream.fail(exc)

        watch = self._owner_query(owner_id).on_snapshot(on_snapshot)
        stream.bind_unsubscribe(watch.unsubscribe)
        threading.Thread(
            target=_monitor_watch,
            args=(watch, stream, owner_id, self._watch_poll_seconds),
            name=f"orders-watch-{owner_id}",
            daemon=True,
        ).start()
        logger.info("order_repository.subscribed", owner_id=owner_id)
        return stream


def _monitor_watch(watch, stream: SnapshotStream, owner_id: str, interval: float) -> None:
    while not stream.wait_closed(interval):
        if not watch.is_active:
            logger.warning("order_repository.watch_closed", owner_id=owner_id)
            stream.fail(OrderRepositoryError(f"Live orders feed for {owner_id} was closed."))
            return
