"""Amount normalisation for loosely typed price fields.

Order and product documents carry prices as numbers or as
currency-formatted strings (``"₦1,500"``, ``"NGN 2,000.50"``).  This module
turns them into ``Decimal`` values without ever guessing a zero:

- ``normalize_amount`` — tolerant coercion, ``None`` when unparseable.
- ``Money.parse`` — strict smart constructor, raises ``AmountParseError``.
- ``format_amount`` — ``"NGN 1,500"`` or the unknown-amount sentinel.

No rounding and no currency-unit conversion happen here; the canonical unit
is whatever the document stored (whole Naira).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

CURRENCY_CODE = "NGN"
UNKNOWN_AMOUNT_LABEL = "Amount unknown"

AmountInput = Union[int, float, Decimal, str, None]

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")


class AmountParseError(ValueError):
    """The value cannot be read as a monetary amount."""


def _from_number(value: Union[int, float, Decimal]) -> Optional[Decimal]:
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return Decimal(repr(value))
    return Decimal(value)


def _from_string(value: str) -> Optional[Decimal]:
    cleaned = _NON_NUMERIC.sub("", value)
    match = _LEADING_NUMBER.match(cleaned)
    if match is None:
        return None
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return None


def normalize_amount(value: Any) -> Optional[Decimal]:
    """Coerce a number or currency-formatted string into a ``Decimal``.

    Returns ``None`` for ``None``, ``NaN``/infinite numbers, booleans and
    strings holding no readable number.  Never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        return _from_number(value)
    if isinstance(value, str):
        return _from_string(value)
    return None


def first_amount(*candidates: Any) -> Optional[Decimal]:
    """Return the first candidate that normalises to a value."""
    for candidate in candidates:
        amount = normalize_amount(candidate)
        if amount is not None:
            return amount
    return None


def _group_thousands(value: Decimal) -> str:
    if value == value.to_integral_value():
        return f"{int(value):,}"
    return f"{value.quantize(Decimal('0.01')):,}"


def format_amount(value: Optional[Decimal]) -> str:
    """Render ``NGN 1,500``; ``None`` renders the unknown-amount sentinel."""
    if value is None:
        return UNKNOWN_AMOUNT_LABEL
    return f"{CURRENCY_CODE} {_group_thousands(value)}"


@dataclass(frozen=True)
class Money:
    """A parsed, known amount in the store's currency."""

    amount: Decimal
    currency: str = CURRENCY_CODE

    @classmethod
    def parse(cls, value: Any) -> Money:
        amount = normalize_amount(value)
        if amount is None:
            raise AmountParseError(f"Cannot read an amount from {value!r}.")
        return cls(amount=amount)

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __mul__(self, factor: int) -> Money:
        return Money(amount=self.amount * factor, currency=self.currency)

    def format(self) -> str:
        return f"{self.currency} {_group_thousands(self.amount)}"

    def __str__(self) -> str:
        return self.format()


def as_plain_number(value: Decimal) -> Union[int, float]:
    """``int`` for whole amounts, else ``float``; for stores without Decimal."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)
