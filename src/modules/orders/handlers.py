"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import OrderPlaced, OrderStatusChanged
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderPlacedHandler(IEventHandler[OrderPlaced]):
    def handle(self, event: OrderPlaced) -> None:
        logger.info(
            f"Order {event.aggregate_id} placed",
            order_id=event.aggregate_id,
            owner_id=event.owner_id,
            reference=event.reference,
            total=str(event.total),
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    """Logs the owner-facing "<label> is now <status>" notice."""

    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            event.message,
            order_id=event.aggregate_id,
            owner_id=event.owner_id,
            old_status=event.old_status,
            new_status=event.new_status,
        )


order_placed_handler = OrderPlacedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
