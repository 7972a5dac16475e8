"""
wrenchd/repositories/memory.py

In-memory store and unit of work.

- One threading.Lock per (kind, id) key; orders stay locked for the whole unit of work,
  inventory items only for the duration of a single adjustment.
- Every mutation appends an undo step to the unit of work's journal; rollback replays
  the journal in reverse.
"""

from __future__ import annotations

import threading
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple

from .base import InventoryRepository, OrderRepository, UnitOfWork


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class MemoryInventoryItem:
    name: str
    quantity: int = 0
    low_stock_threshold: int = 5
    track_stock: bool = True
    part_number: Optional[str] = None
    category: Optional[str] = None
    id: str = field(default_factory=_new_id)


@dataclass
class MemoryLineItem:
    item_name: str
    quantity: int
    unit_price: Decimal = Decimal("0.00")
    inventory_item_id: Optional[str] = None


@dataclass
class MemoryOrder:
    items: List[MemoryLineItem] = field(default_factory=list)
    status: str = "pending"
    approved_at: Optional[datetime] = None
    id: str = field(default_factory=_new_id)


class MemoryStore:
    """Key -> record maps shared by every unit of work created over it."""

    def __init__(self):
        self.inventory: Dict[str, MemoryInventoryItem] = {}
        self.purchase_orders: Dict[str, MemoryOrder] = {}
        self.returns: Dict[str, MemoryOrder] = {}
        self._locks: Dict[Tuple[str, str], threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def lock_for(self, kind: str, key: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[(kind, key)]

    def add_inventory_item(self, **kwargs) -> MemoryInventoryItem:
        item = MemoryInventoryItem(**kwargs)
        self.inventory[item.id] = item
        return item

    def add_purchase_order(self, items: List[MemoryLineItem], **kwargs) -> MemoryOrder:
        order = MemoryOrder(items=list(items), **kwargs)
        self.purchase_orders[order.id] = order
        return order

    def add_return(self, items: List[MemoryLineItem], **kwargs) -> MemoryOrder:
        order = MemoryOrder(items=list(items), **kwargs)
        self.returns[order.id] = order
        return order


class MemoryInventoryRepository(InventoryRepository):
    def __init__(self, store: MemoryStore, uow: "MemoryUnitOfWork"):
        self._store = store
        self._uow = uow

    def get(self, item_id: str) -> Optional[MemoryInventoryItem]:
        return self._store.inventory.get(item_id)

    def list(self) -> list:
        return sorted(self._store.inventory.values(), key=lambda i: i.name)

    def adjust_quantity(self, item_id: str, delta: int) -> Optional[int]:
        item = self._store.inventory.get(item_id)
        if item is None:
            return None

        lock = self._store.lock_for("inventory", item_id)
        with lock:
            item.quantity = (item.quantity or 0) + delta
            new_quantity = item.quantity

        def undo():
            with lock:
                item.quantity -= delta

        self._uow.journal(undo)
        return new_quantity


class MemoryOrderRepository(OrderRepository):
    def __init__(self, store: MemoryStore, kind: str, records: Dict[str, MemoryOrder], uow: "MemoryUnitOfWork"):
        self._store = store
        self._kind = kind
        self._records = records
        self._uow = uow

    def get(self, order_id: str) -> Optional[MemoryOrder]:
        return self._records.get(order_id)

    def get_for_update(self, order_id: str) -> Optional[MemoryOrder]:
        self._uow.hold(self._store.lock_for(self._kind, order_id), (self._kind, order_id))
        return self._records.get(order_id)

    def compare_and_set_status(
        self,
        order_id: str,
        expected: str,
        new: str,
        approved_at: Optional[datetime] = None,
    ) -> bool:
        order = self._records.get(order_id)
        if order is None or order.status != expected:
            return False

        previous_approved_at = order.approved_at
        order.status = new
        if approved_at is not None:
            order.approved_at = approved_at

        def undo():
            order.status = expected
            order.approved_at = previous_approved_at

        self._uow.journal(undo)
        return True


class MemoryUnitOfWork(UnitOfWork):
    def __init__(self, store: MemoryStore):
        self.store = store
        self.inventory = MemoryInventoryRepository(store, self)
        self.purchase_orders = MemoryOrderRepository(store, "purchase_order", store.purchase_orders, self)
        self.returns = MemoryOrderRepository(store, "return", store.returns, self)
        self._undo: List[Callable[[], None]] = []
        self._held: Dict[Tuple[str, str], threading.Lock] = {}

    def hold(self, lock: threading.Lock, key: Tuple[str, str]) -> None:
        if key in self._held:
            return
        lock.acquire()
        self._held[key] = lock

    def journal(self, undo: Callable[[], None]) -> None:
        self._undo.append(undo)

    def commit(self) -> None:
        self._undo.clear()
        self._release()

    def rollback(self) -> None:
        try:
            while self._undo:
                self._undo.pop()()
        finally:
            self._release()

    def _release(self) -> None:
        for lock in self._held.values():
            lock.release()
        self._held.clear()
