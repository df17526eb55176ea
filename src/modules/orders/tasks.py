"""Asynchronous tasks for the orders module."""

import structlog
from celery import shared_task

from modules.orders.exceptions import OrderNotFound, OrderRepositoryError
from modules.orders.repositories import get_order_repository
from modules.orders.services import OrderService

logger = structlog.get_logger(__name__)


@shared_task(
    name="orders.seed_quote_expiry",
    autoretry_for=(OrderRepositoryError,),
    retry_backoff=True,
    max_retries=3,
)
def seed_quote_expiry(order_id: str) -> bool:
    """Stamp the 24h payment window on an unpaid priced rental quote."""
    service = OrderService(order_repository=get_order_repository())
    try:
        seeded = service.seed_quote_expiry(order_id)
    except OrderNotFound:
        seeded = False
    logger.info("seed_quote_expiry.executed", order_id=order_id, seeded=seeded)
    return seeded
