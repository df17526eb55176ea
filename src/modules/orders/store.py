"""Live order overview for one owner.

``OrderStore`` owns the subscription to the owner's orders, the latest
snapshot and the grouped view derived from it.  Lifecycle is explicit:

    store = OrderStore(repository, owner_id="uid-123")
    store.start()          # paints the cached view, opens the live feed
    store.pump(timeout=1)  # applies whatever the feed delivered
    store.stop()           # unsubscribes; later deliveries are ignored

Guarantees:
- Each delivery is a full snapshot; only the most recent one is kept.
  Re-delivery of an identical snapshot changes nothing.
- A feed error never clears the view: the last good groups stay, flagged
  ``stale``, until the next snapshot arrives.
- Nothing mutates the store after ``stop()``.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Set

import structlog

from modules.orders.cache import OrderSnapshotCache
from modules.orders.dtos import GroupedOrdersDTO, OrderDocument, OrdersOverviewDTO
from modules.orders.events import OrderStatusChanged
from modules.orders.exceptions import OrderStoreNotStarted
from modules.orders.services import OrderViewBuilder, needs_quote_expiry, order_label
from shared.infrastructure.bus import event_bus
from shared.infrastructure.streams import SnapshotStream, StreamEvent

if TYPE_CHECKING:
    from modules.orders.repositories.interfaces import IOrderRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

QuoteSeeder = Callable[[str], None]
ChangeListener = Callable[[OrdersOverviewDTO], None]


def enqueue_quote_expiry(order_id: str) -> None:
    from modules.orders.tasks import seed_quote_expiry

    seed_quote_expiry.delay(order_id)


class OrderStore:
    def __init__(
        self,
        repository: IOrderRepository,
        owner_id: str,
        builder: Optional[OrderViewBuilder] = None,
        snapshot_cache: Optional[OrderSnapshotCache] = None,
        bus: Optional[IEventBus] = None,
        quote_seeder: Optional[QuoteSeeder] = enqueue_quote_expiry,
        on_change: Optional[ChangeListener] = None,
    ) -> None:
        self._repository = repository
        self._owner_id = owner_id
        self._builder = builder or OrderViewBuilder()
        self._cache = snapshot_cache or OrderSnapshotCache()
        self._bus = bus or event_bus
        self._quote_seeder = quote_seeder
        self._on_change = on_change

        self._lock = threading.Lock()
        self._stream: Optional[SnapshotStream[List[OrderDocument]]] = None
        self._orders: Optional[List[OrderDocument]] = None
        self._overview: Optional[OrdersOverviewDTO] = None
        self._statuses: Dict[str, str] = {}
        self._seeded: Set[str] = set()
        self._log = logger.bind(owner_id=owner_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._stream is not None

    def start(self) -> None:
        if self.running:
            return
        cached = self._cache.load(self._owner_id)
        if cached is not None:
            with self._lock:
                self._orders = cached
                self._overview = self._builder.overview(cached, self._owner_id, stale=True)
                self._statuses = self._status_map(cached)
        self._stream = self._repository.subscribe_by_owner(self._owner_id)
        self._log.info("order_store.started", cached=cached is not None)

    def stop(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        stream.close()
        self._log.info("order_store.stopped")

    def __enter__(self) -> OrderStore:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def overview(self) -> Optional[OrdersOverviewDTO]:
        with self._lock:
            return self._overview

    @property
    def groups(self) -> GroupedOrdersDTO:
        overview = self.overview
        return overview.groups if overview else GroupedOrdersDTO()

    @property
    def badge_count(self) -> int:
        overview = self.overview
        return overview.badge_count if overview else 0

    @property
    def is_stale(self) -> bool:
        overview = self.overview
        return overview.stale if overview else False

    # ------------------------------------------------------------------
    # Consuming the feed
    # ------------------------------------------------------------------

    def pump(self, timeout: float = 0.0, max_events: Optional[int] = None) -> int:
        """Apply queued deliveries; wait up to *timeout* for the first one.

        Returns the number of deliveries applied.
        """
        stream = self._stream
        if stream is None:
            raise OrderStoreNotStarted("OrderStore.start() must be called first.")
        applied = 0
        event = stream.get(timeout=timeout)
        while event is not None:
            self.apply(event)
            applied += 1
            if max_events is not None and applied >= max_events:
                break
            event = stream.get(timeout=0)
        return applied

    def run(self) -> None:
        """Block applying deliveries until ``stop()`` closes the feed."""
        stream = self._stream
        if stream is None:
            raise OrderStoreNotStarted("OrderStore.start() must be called first.")
        for event in stream:
            self.apply(event)

    def apply(self, event: StreamEvent[List[OrderDocument]]) -> bool:
        """Fold one delivery into the store; ``True`` if the view changed."""
        if not self.running:
            self._log.debug("order_store.delivery_after_stop")
            return False
        if event.is_error:
            return self._apply_error(event.error)
        return self._apply_snapshot(list(event.snapshot or []))

    def _apply_error(self, error: Optional[BaseException]) -> bool:
        self._log.warning("order_store.feed_error", error=str(error))
        with self._lock:
            if self._overview is None or self._overview.stale:
                return False
            self._overview = self._overview.model_copy(update={"stale": True})
            overview = self._overview
        self._notify(overview)
        return True

    def _apply_snapshot(self, orders: List[OrderDocument]) -> bool:
        with self._lock:
            if self._overview is not None and not self._overview.stale and orders == self._orders:
                return False
            previous = self._statuses
            self._orders = orders
            self._overview = self._builder.overview(orders, self._owner_id)
            self._statuses = self._status_map(orders)
            overview = self._overview

        self._log.info(
            "order_store.snapshot_applied",
            count=len(orders),
            badge_count=overview.badge_count,
        )
        self._cache.save(self._owner_id, orders)
        self._announce_status_changes(previous, orders)
        self._seed_quote_expiries(orders)
        self._notify(overview)
        return True

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    @staticmethod
    def _status_map(orders: List[OrderDocument]) -> Dict[str, str]:
        return {order.id: order.status for order in orders if order.status}

    def _announce_status_changes(
        self, previous: Dict[str, str], orders: List[OrderDocument]
    ) -> None:
        for order in orders:
            old_status = previous.get(order.id)
            if old_status is None or not order.status or old_status == order.status:
                continue
            self._bus.publish(
                OrderStatusChanged(
                    aggregate_id=order.id,
                    owner_id=self._owner_id,
                    label=order_label(order),
                    old_status=old_status,
                    new_status=order.status,
                )
            )

    def _seed_quote_expiries(self, orders: List[OrderDocument]) -> None:
        if self._quote_seeder is None:
            return
        for order in orders:
            if order.id in self._seeded or not needs_quote_expiry(order):
                continue
            self._seeded.add(order.id)
            try:
                self._quote_seeder(order.id)
            except Exception as exc:
                self._seeded.discard(order.id)
                self._log.warning(
                    "order_store.quote_seed_failed", order_id=order.id, error=str(exc)
                )

    def _notify(self, overview: OrdersOverviewDTO) -> None:
        if self._on_change is not None:
            self._on_change(overview)
