"""
wrenchd/repositories/base.py

Repository and unit-of-work interfaces used by the stock reconciler.

The reconciler only needs three capabilities:
- read an order (purchase order or return) while holding it exclusively
- atomically add a delta to an inventory item's quantity
- compare-and-set an order's status

Two implementations exist:
- repositories.memory: in-process dicts with per-key locks (unit tests, scripts)
- repositories.sql:    SQLAlchemy session (the Flask app)

Records returned by either implementation expose the same attribute names
(status, items, inventory_item_id, quantity, track_stock, low_stock_threshold, ...).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional


class InventoryRepository(ABC):
    @abstractmethod
    def get(self, item_id: str) -> Optional[Any]:
        """Return the inventory record or None."""

    @abstractmethod
    def list(self) -> list:
        """Return all inventory records."""

    @abstractmethod
    def adjust_quantity(self, item_id: str, delta: int) -> Optional[int]:
        """
        Atomically apply quantity = quantity + delta.

        Returns the new quantity, or None if the item does not exist.
        """


class OrderRepository(ABC):
    """Purchase orders and returns share this shape."""

    @abstractmethod
    def get(self, order_id: str) -> Optional[Any]:
        """Return the order record (with .items) or None."""

    @abstractmethod
    def get_for_update(self, order_id: str) -> Optional[Any]:
        """
        Return the order record and hold it exclusively until the unit of work ends.

        Concurrent callers for the same order block here.
        """

    @abstractmethod
    def compare_and_set_status(
        self,
        order_id: str,
        expected: str,
        new: str,
        approved_at: Optional[datetime] = None,
    ) -> bool:
        """Set status to `new` only if it is still `expected`. Returns True on success."""


class UnitOfWork(ABC):
    """
    Transaction scope over the repositories.

    Usage:
        with uow:
            ...            # commit on clean exit, rollback on exception
    """

    inventory: InventoryRepository
    purchase_orders: OrderRepository
    returns: OrderRepository

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Make every change in this unit of work durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard every change in this unit of work."""
