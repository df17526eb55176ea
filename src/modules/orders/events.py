"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    """Raised when checkout writes a paid order."""

    owner_id: str = ""
    reference: Optional[str] = None
    total: Decimal = Decimal("0")


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when a live snapshot shows a new status for a known order."""

    owner_id: str = ""
    label: str = ""
    old_status: Optional[str] = None
    new_status: Optional[str] = None

    @property
    def message(self) -> str:
        return f"{self.label or 'Order'} is now {self.new_status}"
