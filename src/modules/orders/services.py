"""Order service layer.

Turns raw order documents into what the client renders:

- ``OrderViewBuilder`` — one ``OrderViewDTO`` per document, bucketed
  groups and the active-orders badge.  Pure: the only input besides the
  documents is the clock used for rental quote expiry.
- ``can_view`` — fail-closed ownership check for the detail view.
- ``OrderService`` — use-cases over the repository: overview for a viewer
  (with cached fallback), guarded detail read, order placement and rental
  quote expiry seeding.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional

import structlog

from modules.core.money import first_amount, format_amount
from modules.orders.cache import OrderSnapshotCache
from modules.orders.classifier import (
    bucket_for,
    classify,
    display_status,
    is_paid,
    timeline,
)
from modules.orders.constants import (
    DEFAULT_ORDER_LABEL,
    MAX_LABEL_ITEMS,
    MISSING_DATE_PLACEHOLDER,
    QUOTE_TTL,
    OrderBucket,
    OrderType,
)
from modules.orders.dtos import (
    GroupedOrdersDTO,
    OrderDocument,
    OrdersOverviewDTO,
    OrderViewDTO,
    RentalPeriodDTO,
    TimelineStepDTO,
    Viewer,
)
from modules.orders.events import OrderPlaced
from modules.orders.exceptions import (
    OrderAccessDenied,
    OrderNotFound,
    OrderRepositoryError,
)
from shared.infrastructure.bus import event_bus

if TYPE_CHECKING:
    from modules.orders.repositories.interfaces import IOrderRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Field interpretation
# ---------------------------------------------------------------------------


def resolve_amount(order: OrderDocument) -> Optional[Decimal]:
    """First readable of ``total``, ``amount``, ``price``."""
    return first_amount(order.total, order.amount, order.price)


def order_label(order: OrderDocument) -> str:
    if order.product_title:
        return order.product_title
    titles = [line.title for line in order.items if line.title]
    if not titles:
        return DEFAULT_ORDER_LABEL
    label = ", ".join(titles[:MAX_LABEL_ITEMS])
    hidden = len(titles) - MAX_LABEL_ITEMS
    if hidden > 0:
        label = f"{label} +{hidden} more"
    return label


def rental_period(order: OrderDocument) -> Optional[RentalPeriodDTO]:
    if order.type != OrderType.RENT:
        return None
    return RentalPeriodDTO(
        start=order.rental_start_date or MISSING_DATE_PLACEHOLDER,
        end=order.rental_end_date or MISSING_DATE_PLACEHOLDER,
    )


def _has_quote(order: OrderDocument) -> bool:
    return (
        order.type == OrderType.RENT
        and resolve_amount(order) is not None
        and not is_paid(order.status)
    )


def quote_expires_at(order: OrderDocument) -> Optional[datetime]:
    """When an unpaid rental quote stops being payable, if it has one."""
    if not _has_quote(order):
        return None
    if order.expires_at is not None:
        return order.expires_at
    if order.price_set_at is not None:
        return order.price_set_at + QUOTE_TTL
    return None


def needs_quote_expiry(order: OrderDocument) -> bool:
    return _has_quote(order) and order.expires_at is None


def can_view(order: OrderDocument, viewer: Optional[Viewer]) -> bool:
    """Only the owner may open an order.

    Fails closed: no viewer, or an order without ``userId``, is a denial.
    """
    if viewer is None or not viewer.id:
        return False
    if not order.user_id:
        return False
    return order.user_id == viewer.id


def badge_count(orders: Iterable[OrderDocument], viewer_id: Optional[str]) -> int:
    if not viewer_id:
        return 0
    return sum(
        1
        for order in orders
        if order.user_id == viewer_id and bucket_for(order.status) == OrderBucket.ACTIVE
    )


# ---------------------------------------------------------------------------
# View builder
# ---------------------------------------------------------------------------


class OrderViewBuilder:
    """Builds render models from order documents."""

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or utc_now

    def build(self, order: OrderDocument) -> OrderViewDTO:
        classification = classify(order.status)
        amount = resolve_amount(order)
        expires_at = quote_expires_at(order)
        return OrderViewDTO(
            id=order.id,
            label=order_label(order),
            status=display_status(order.status),
            bucket=classification.bucket.value,
            stage=int(classification.stage),
            stage_label=classification.stage.label,
            timeline=[
                TimelineStepDTO(index=int(step.stage), label=step.label, reached=step.reached)
                for step in timeline(classification.stage)
            ],
            amount=amount,
            total_display=format_amount(amount),
            awaiting_price=amount is None,
            is_paid=is_paid(order.status),
            type=order.type,
            rental=rental_period(order),
            created_at=order.created_at,
            reference=order.reference,
            quote_expires_at=expires_at,
            quote_expired=expires_at is not None and expires_at <= self._clock(),
        )

    def group(self, orders: Iterable[OrderDocument]) -> GroupedOrdersDTO:
        """Partition into active/past/cancelled, keeping input order."""
        buckets: Dict[str, List[OrderViewDTO]] = {bucket.value: [] for bucket in OrderBucket}
        for order in orders:
            view = self.build(order)
            buckets[view.bucket].append(view)
        return GroupedOrdersDTO(**buckets)

    def overview(
        self,
        orders: List[OrderDocument],
        viewer_id: Optional[str],
        stale: bool = False,
    ) -> OrdersOverviewDTO:
        return OrdersOverviewDTO(
            groups=self.group(orders),
            badge_count=badge_count(orders, viewer_id),
            stale=stale,
        )


# ---------------------------------------------------------------------------
# Use-cases
# ---------------------------------------------------------------------------


class OrderService:
    """Application service for order read models and writes.

    Receives the repository via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        builder: Optional[OrderViewBuilder] = None,
        snapshot_cache: Optional[OrderSnapshotCache] = None,
        bus: Optional[IEventBus] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._order_repo = order_repository
        self._clock = clock or utc_now
        self._builder = builder or OrderViewBuilder(clock=self._clock)
        self._cache = snapshot_cache or OrderSnapshotCache()
        self._bus = bus or event_bus

    @property
    def builder(self) -> OrderViewBuilder:
        return self._builder

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def overview_for(self, viewer: Viewer) -> OrdersOverviewDTO:
        """Grouped orders of *viewer*.

        When the store is unreachable the last cached snapshot is served
        with ``stale=True``; with no cache either, the error propagates.
        """
        log = logger.bind(owner_id=viewer.id)
        try:
            orders = self._order_repo.list_by_owner(viewer.id)
        except OrderRepositoryError:
            cached = self._cache.load(viewer.id)
            if cached is None:
                raise
            log.warning("order.overview_served_stale", count=len(cached))
            return self._builder.overview(cached, viewer.id, stale=True)

        self._cache.save(viewer.id, orders)
        return self._builder.overview(orders, viewer.id)

    def get_order_for(self, order_id: str, viewer: Optional[Viewer]) -> OrderViewDTO:
        """Detail view of one order, only for its owner.

        Raises:
            OrderNotFound: the document does not exist.
            OrderAccessDenied: ``can_view`` failed.
        """
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        if not can_view(order, viewer):
            logger.warning(
                "order.access_denied",
                order_id=order_id,
                viewer_id=viewer.id if viewer else None,
            )
            raise OrderAccessDenied(f"Order {order_id} is not viewable.")
        return self._builder.build(order)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def place_order(self, data: Dict[str, Any]) -> OrderDocument:
        """Write a new order document and announce it.

        ``data`` is in storage shape (camelCase keys) and must carry
        ``userId`` and ``status``.
        """
        order_id = self._order_repo.create(data)
        order = self._order_repo.get_by_id(order_id) or OrderDocument.from_snapshot(order_id, data)
        logger.info(
            "order.placed",
            order_id=order_id,
            owner_id=order.user_id,
            status=order.status,
        )
        self._bus.publish(
            OrderPlaced(
                aggregate_id=order_id,
                owner_id=order.user_id or "",
                reference=order.reference,
                total=resolve_amount(order) or Decimal("0"),
            )
        )
        return order

    def seed_quote_expiry(self, order_id: str) -> bool:
        """Stamp ``priceSetAt``/``expiresAt`` on an unpaid priced rental.

        Returns ``False`` when the order is gone or no longer needs it.
        """
        order = self._order_repo.get_by_id(order_id)
        if order is None or not needs_quote_expiry(order):
            return False
        now = self._clock()
        self._order_repo.update(
            order_id,
            {"priceSetAt": now, "expiresAt": now + QUOTE_TTL},
        )
        logger.info("order.quote_expiry_seeded", order_id=order_id)
        return True
