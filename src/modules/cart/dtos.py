"""Cart DTOs.

Framework-agnostic data transfer objects using Pydantic v2.

- ``CartItem``: one persisted cart line (price kept as stored).
- ``CartLineDTO`` / ``CartSummaryDTO``: what the cart screen renders.
- ``CheckoutDetailsDTO``: delivery form submitted with a checkout.
- ``PaymentSessionDTO``: the gateway link the client opens to pay.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from pydantic.alias_generators import to_camel

from modules.cart.constants import DEFAULT_COUNTRY


class CartItem(BaseModel):
    """Immutable cart line.

    ``price`` may be a number or a currency-formatted string; it is only
    interpreted when totals are computed.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: str
    title: str = ""
    price: Any = None
    image_url: Optional[str] = None
    qty: int = 1

    @field_validator("qty")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CartLineDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    image_url: Optional[str]
    qty: int
    unit_price: Optional[Decimal]
    unit_price_display: str
    line_total_display: str


class CartSummaryDTO(BaseModel):
    """Immutable cart render model with checkout totals."""

    model_config = ConfigDict(frozen=True)

    lines: List[CartLineDTO]
    item_count: int
    subtotal: Decimal
    shipping_fee: Decimal
    total: Decimal
    subtotal_display: str
    shipping_fee_display: str
    total_display: str


class CheckoutDetailsDTO(BaseModel):
    """Delivery details collected before payment.

    Validates:
    - address, city, state, phone and email are required and non-blank.
    - rental dates are free text, stored as typed.
    """

    model_config = ConfigDict(frozen=True)

    country: str = DEFAULT_COUNTRY
    address: str
    city: str
    state: str
    phone: str
    email: EmailStr
    note: Optional[str] = None
    rental_start_date: Optional[str] = None
    rental_end_date: Optional[str] = None

    @field_validator("country", "address", "city", "state", "phone")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("This field may not be blank.")
        return v


class PaymentSessionDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    reference: str
    redirect_url: str
    amount: Decimal
    currency: str
