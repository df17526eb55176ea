"""Order DTOs.

Framework-agnostic data transfer objects using Pydantic v2.

- ``OrderDocument``: tolerant parse of a raw order document as stored
  (camelCase keys, mixed-type amounts, two timestamp shapes).
- ``OrderLineDocument``: one entry of an order's ``items`` array.
- ``Viewer``: the user asking to see orders.
- ``OrderViewDTO``: everything the client needs to render one order.
- ``GroupedOrdersDTO`` / ``OrdersOverviewDTO``: bucketed lists + badge.

Documents are immutable (``frozen=True``).
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_TIMESTAMP_ACCESSORS = ("to_datetime", "ToDatetime")


def coerce_timestamp(value: Any) -> Optional[datetime]:
    """Read a stored timestamp.

    Accepts ``datetime`` (including Firestore's ``DatetimeWithNanoseconds``),
    a ``{"seconds", "nanoseconds"}`` mapping (``_seconds`` in REST exports),
    an object exposing ``to_datetime()``/``ToDatetime()``, or an ISO string.
    Anything else reads as ``None``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            nanos = value.get("nanoseconds", value.get("_nanoseconds")) or 0
            return datetime.fromtimestamp(seconds + nanos / 1e9, tz=timezone.utc)
        return None
    if isinstance(value, str):
        try:
            return coerce_timestamp(datetime.fromisoformat(value))
        except ValueError:
            return None
    for accessor in _TIMESTAMP_ACCESSORS:
        method = getattr(value, accessor, None)
        if callable(method):
            return coerce_timestamp(method())
    return None


# ---------------------------------------------------------------------------
# Input documents
# ---------------------------------------------------------------------------


class _Document(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


class OrderLineDocument(_Document):
    """A line inside an order's ``items`` array."""

    id: Optional[str] = None
    title: Optional[str] = None
    price: Any = None
    qty: int = 1
    image_url: Optional[str] = None

    @field_validator("qty", mode="before")
    @classmethod
    def qty_defaults_to_one(cls, v: Any) -> int:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return 1
        return max(1, int(v))


class OrderDocument(_Document):
    """An order as read from the document store.

    Only ``id`` is required.  ``price``/``amount``/``total`` keep their raw
    values; interpretation belongs to the view builder.
    """

    id: str
    status: Optional[str] = None
    type: Optional[str] = None
    price: Any = None
    amount: Any = None
    total: Any = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    product_title: Optional[str] = None
    items: List[OrderLineDocument] = Field(default_factory=list)
    rental_start_date: Optional[str] = None
    rental_end_date: Optional[str] = None
    reference: Optional[str] = None
    price_set_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    @field_validator("status", "type", "user_id", "product_title", "reference", mode="before")
    @classmethod
    def text_or_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return str(v)

    @field_validator("rental_start_date", "rental_end_date", mode="before")
    @classmethod
    def opaque_date_text(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v)

    @field_validator("created_at", "price_set_at", "expires_at", mode="before")
    @classmethod
    def timestamp_shapes(cls, v: Any) -> Optional[datetime]:
        return coerce_timestamp(v)

    @field_validator("items", mode="before")
    @classmethod
    def items_list(cls, v: Any) -> List[Any]:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, Mapping)]

    @classmethod
    def from_snapshot(cls, doc_id: str, data: Optional[Mapping[str, Any]]) -> OrderDocument:
        payload: Dict[str, Any] = dict(data or {})
        payload["id"] = doc_id
        return cls.model_validate(payload)


class Viewer(BaseModel):
    """The authenticated user looking at orders (storage-side uid)."""

    model_config = ConfigDict(frozen=True)

    id: str


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class TimelineStepDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    label: str
    reached: bool


class RentalPeriodDTO(BaseModel):
    """Rental dates as opaque display strings ("—" when missing)."""

    model_config = ConfigDict(frozen=True)

    start: str
    end: str


class OrderViewDTO(BaseModel):
    """Immutable render model for one order."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    status: str
    bucket: str
    stage: int
    stage_label: str
    timeline: List[TimelineStepDTO]
    amount: Optional[Decimal]
    total_display: str
    awaiting_price: bool
    is_paid: bool
    type: Optional[str]
    rental: Optional[RentalPeriodDTO]
    created_at: Optional[datetime]
    reference: Optional[str]
    quote_expires_at: Optional[datetime] = None
    quote_expired: bool = False


class GroupedOrdersDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    active: List[OrderViewDTO] = Field(default_factory=list)
    past: List[OrderViewDTO] = Field(default_factory=list)
    cancelled: List[OrderViewDTO] = Field(default_factory=list)

    def all(self) -> List[OrderViewDTO]:
        return [*self.active, *self.past, *self.cancelled]


class OrdersOverviewDTO(BaseModel):
    """Grouped orders for one viewer, plus the badge and staleness flag."""

    model_config = ConfigDict(frozen=True)

    groups: GroupedOrdersDTO
    badge_count: int
    stale: bool = False
