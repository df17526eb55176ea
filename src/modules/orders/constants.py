"""Order domain constants.

Statuses are free text written by admins and payment callbacks; there is
no enum of legal values and no transition table.  The constants below are
the keywords the classifier looks for, the coarse lifecycle buckets and
the four-step delivery timeline shown to customers.
"""

from datetime import timedelta

from django.db import models


class OrderBucket(models.TextChoices):
    ACTIVE = "active", "Active"
    PAST = "past", "Past"
    CANCELLED = "cancelled", "Cancelled"


class TimelineStage(models.IntegerChoices):
    PROCESSING = 0, "Processing"
    DISPATCHED = 1, "Dispatched"
    IN_TRANSIT = 2, "In Transit"
    DELIVERED = 3, "Delivered"


class OrderType(models.TextChoices):
    BUY = "buy", "Buy"
    RENT = "rent", "Rent"


# Substrings matched against the lower-cased status, in precedence order.
CANCELLED_KEYWORDS: tuple[str, ...] = ("cancel",)
PAST_KEYWORDS: tuple[str, ...] = ("delivered", "completed")
PAID_KEYWORDS: tuple[str, ...] = ("paid", "completed", "delivered")
UNPAID_KEYWORDS: tuple[str, ...] = ("unpaid", "not paid", "not_paid")

# Highest stage first: the first keyword found wins.
STAGE_KEYWORDS: tuple[tuple[TimelineStage, str], ...] = (
    (TimelineStage.DELIVERED, "deliver"),
    (TimelineStage.IN_TRANSIT, "transit"),
    (TimelineStage.DISPATCHED, "dispatch"),
    (TimelineStage.PROCESSING, "process"),
)

DEFAULT_STATUS = "processing"

# Statuses written when an order is first created.
STATUS_PENDING_TRANSFER = "pending_transfer"
STATUS_PAID = "paid"
STATUS_WAITING_ADMIN_PRICE = "waiting_admin_price"

ORDERS_COLLECTION = "orders"
# How often a live Firestore watch is checked for having been closed.
WATCH_POLL_SECONDS = 5.0

# A rental price quote stays payable for a day after the admin sets it.
QUOTE_TTL = timedelta(hours=24)

DEFAULT_ORDER_LABEL = "Order"
MAX_LABEL_ITEMS = 2
MISSING_DATE_PLACEHOLDER = "—"

ORDERS_CACHE_KEY = "orders_cache:{owner_id}"
