"""
wrenchd/repositories/sql.py

SQLAlchemy implementation of the repository / unit-of-work interfaces.

- One unit of work == the current session transaction. Commit on clean exit, rollback otherwise.
- adjust_quantity is a single UPDATE ... SET quantity = quantity + :delta (no read-modify-write).
- get_for_update issues SELECT ... FOR UPDATE where the dialect supports it.
- compare_and_set_status is UPDATE ... WHERE status = :expected; a zero rowcount means
  another transaction changed the order first.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..models import InventoryItem, PurchaseOrder, Return
from .base import InventoryRepository, OrderRepository, UnitOfWork


class SqlInventoryRepository(InventoryRepository):
    def __init__(self, session: Session):
        self.session = session

    def get(self, item_id: str) -> Optional[InventoryItem]:
        return self.session.get(InventoryItem, item_id)

    def list(self) -> list:
        return list(self.session.execute(select(InventoryItem).order_by(InventoryItem.name.asc())).scalars())

    def adjust_quantity(self, item_id: str, delta: int) -> Optional[int]:
        result = self.session.execute(
            update(InventoryItem)
            .where(InventoryItem.id == item_id)
            .values(quantity=InventoryItem.quantity + delta)
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            return None
        return self.session.execute(
            select(InventoryItem.quantity).where(InventoryItem.id == item_id)
        ).scalar_one()


class SqlOrderRepository(OrderRepository):
    def __init__(self, session: Session, model):
        self.session = session
        self.model = model

    def get(self, order_id: str):
        return self.session.get(self.model, order_id)

    def get_for_update(self, order_id: str):
        return self.session.get(self.model, order_id, with_for_update=True, populate_existing=True)

    def compare_and_set_status(
        self,
        order_id: str,
        expected: str,
        new: str,
        approved_at: Optional[datetime] = None,
    ) -> bool:
        values = {"status": new}
        if approved_at is not None:
            values["approved_at"] = approved_at

        result = self.session.execute(
            update(self.model)
            .where(self.model.id == order_id, self.model.status == expected)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1


class SqlUnitOfWork(UnitOfWork):
    def __init__(self, session: Session):
        self.session = session
        self.inventory = SqlInventoryRepository(session)
        self.purchase_orders = SqlOrderRepository(session, PurchaseOrder)
        self.returns = SqlOrderRepository(session, Return)

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
