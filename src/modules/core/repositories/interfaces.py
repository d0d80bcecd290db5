"""Generic repository contract.

Services in ``orders`` and ``errands`` depend on these abstractions and
receive the Django implementations by constructor injection, which keeps
the use cases testable with ``MagicMock`` repositories.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Iterable, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base contract for an aggregate root repository."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an aggregate with its children eager-loaded."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[T]:
        """Retrieve an aggregate with a row-level lock held until commit."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[T]:
        """List aggregates with optional ORM-style filters."""

    @abstractmethod
    def save(self, entity: T, update_fields: Optional[list[str]] = None) -> T:
        """Persist an aggregate and flush its domain events to the outbox."""
