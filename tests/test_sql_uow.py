"""Tests for the SQLAlchemy unit of work driving the reconciler."""

from decimal import Decimal

import pytest

from wrenchd.errors import StateTransitionError
from wrenchd.extensions import db
from wrenchd.models import InventoryItem, PurchaseOrder, PurchaseOrderItem, Return, ReturnItem, Supplier
from wrenchd.repositories.sql import SqlUnitOfWork
from wrenchd.stock import approve_purchase_order, approve_return


@pytest.fixture
def stocked(app):
    supplier = Supplier(name="Parts Direct Ltd")
    item = InventoryItem(name="Spark Plug", quantity=10, low_stock_threshold=5)
    db.session.add_all([supplier, item])
    db.session.commit()
    return supplier, item


def _purchase_order(supplier, item, quantity):
    order = PurchaseOrder(order_number=f"PO-TEST-{quantity}", supplier_id=supplier.id)
    order.items = [
        PurchaseOrderItem(
            line_no=0,
            inventory_item_id=item.id,
            item_name=item.name,
            quantity=quantity,
            unit_price=Decimal("2.00"),
            total_price=Decimal("2.00") * quantity,
        )
    ]
    order.recalc_totals(Decimal("0.20"))
    db.session.add(order)
    db.session.commit()
    return order


class TestSqlInventoryRepository:
    def test_adjust_quantity_returns_new_value(self, stocked):
        _, item = stocked
        uow = SqlUnitOfWork(db.session)
        assert uow.inventory.adjust_quantity(item.id, 7) == 17
        assert uow.inventory.adjust_quantity(item.id, -2) == 15
        uow.rollback()
        assert db.session.get(InventoryItem, item.id).quantity == 10

    def test_adjust_missing_item(self, app):
        assert SqlUnitOfWork(db.session).inventory.adjust_quantity("missing", 1) is None


class TestSqlApproval:
    def test_purchase_order_approval_commits_stock_and_status(self, stocked):
        supplier, item = stocked
        order = _purchase_order(supplier, item, 5)

        with SqlUnitOfWork(db.session) as uow:
            approve_purchase_order(uow, order.id)

        db.session.expire_all()
        assert db.session.get(InventoryItem, item.id).quantity == 15
        refreshed = db.session.get(PurchaseOrder, order.id)
        assert refreshed.status == "approved"
        assert refreshed.approved_at is not None

    def test_reapproval_rolls_back_and_keeps_stock(self, stocked):
        supplier, item = stocked
        order = _purchase_order(supplier, item, 5)

        with SqlUnitOfWork(db.session) as uow:
            approve_purchase_order(uow, order.id)
        with pytest.raises(StateTransitionError):
            with SqlUnitOfWork(db.session) as uow:
                approve_purchase_order(uow, order.id)

        db.session.expire_all()
        assert db.session.get(InventoryItem, item.id).quantity == 15

    def test_compare_and_set_detects_lost_race(self, stocked):
        supplier, item = stocked
        order = _purchase_order(supplier, item, 5)

        uow = SqlUnitOfWork(db.session)
        assert uow.purchase_orders.compare_and_set_status(order.id, "pending", "cancelled") is True
        assert uow.purchase_orders.compare_and_set_status(order.id, "pending", "approved") is False
        uow.commit()

    def test_return_approval(self, stocked):
        supplier, item = stocked
        ret = Return(return_number="RTN-TEST", supplier_id=supplier.id, reason="Wrong size")
        ret.items = [
            ReturnItem(
                line_no=0,
                inventory_item_id=item.id,
                item_name=item.name,
                quantity=3,
                unit_price=Decimal("2.00"),
                total_price=Decimal("6.00"),
            )
        ]
        ret.recalc_totals()
        db.session.add(ret)
        db.session.commit()

        with SqlUnitOfWork(db.session) as uow:
            approve_return(uow, ret.id)

        db.session.expire_all()
        assert db.session.get(InventoryItem, item.id).quantity == 7
        assert db.session.get(Return, ret.id).refund_amount == Decimal("6.00")
