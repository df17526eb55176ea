"""Generic repository interface (Dependency Inversion Principle).

Provides ``IRepository[T]``, the base abstract class that all
domain-specific repository interfaces extend.  Service-layer code
depends on this abstraction, never on a storage SDK directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base generic repository contract.

    Type parameter ``T`` is the document type handed back to callers
    (e.g. ``OrderDocument``).  Writes take plain dicts in storage shape,
    since the store owns id and timestamp assignment.
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve a document by id, ``None`` when it does not exist."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[T]:
        """List documents matching equality filters."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> str:
        """Persist a new document and return its storage-assigned id."""

    @abstractmethod
    def update(self, id: str, data: Dict[str, Any]) -> None:
        """Merge *data* into an existing document."""
