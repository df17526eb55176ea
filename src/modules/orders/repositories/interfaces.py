"""Order repository interface.

Extends ``IRepository[OrderDocument]`` with the two things the order
views need from the document store: an owner-scoped query ordered by
recency, and a live subscription to that same query.

The Service Layer and the ``OrderStore`` depend exclusively on this
contract (DIP).  No transactions are required; eventual consistency is
acceptable.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.dtos import OrderDocument
    from shared.infrastructure.streams import SnapshotStream


class IOrderRepository(IRepository["OrderDocument"]):
    """Repository contract for order documents."""

    @abstractmethod
    def list_by_owner(self, owner_id: str) -> List[OrderDocument]:
        """Orders whose ``userId`` equals *owner_id*, newest first."""

    @abstractmethod
    def subscribe_by_owner(self, owner_id: str) -> SnapshotStream[List[OrderDocument]]:
        """Open a live feed of full snapshots of ``list_by_owner``.

        The first snapshot is delivered as soon as the store answers; a new
        full snapshot follows every remote change.  Closing the returned
        stream unsubscribes upstream.
        """
