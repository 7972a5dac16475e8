"""
wrenchd/stock.py

Stock-level classification and purchase-order / return reconciliation.

Classifier (pure):
- low stock    : track_stock and quantity <= low_stock_threshold
- out of stock : track_stock and quantity <= 0
- untracked items are always "in_stock"

Reconciler:
- Status changes go through an explicit transition table.
- Only the genuine pending -> approved transition touches stock:
    purchase order: +quantity per bound line item
    return:         -quantity per bound line item
- Re-approving (approved, or any later status) raises StateTransitionError.
  Stock is never applied twice.
- Everything runs inside the caller's unit of work: the order is held exclusively,
  each quantity change is a single atomic adjustment, and the status write is a
  compare-and-set against the status read under the lock. Any failure rolls back
  every adjustment.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Iterable

from .errors import NotFoundError, StateTransitionError, ValidationError
from .repositories.base import InventoryRepository, OrderRepository, UnitOfWork

logger = logging.getLogger(__name__)

IN_STOCK = "in_stock"
LOW_STOCK = "low_stock"
OUT_OF_STOCK = "out_of_stock"
STOCK_LEVELS = (IN_STOCK, LOW_STOCK, OUT_OF_STOCK)

APPROVED = "approved"

PURCHASE_ORDER_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "pending": frozenset({"approved", "cancelled"}),
    "approved": frozenset({"shipped", "delivered"}),
    "shipped": frozenset({"delivered"}),
    "delivered": frozenset(),
    "cancelled": frozenset(),
}

RETURN_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "pending": frozenset({"approved"}),
    "approved": frozenset({"processed"}),
    "processed": frozenset({"completed"}),
    "completed": frozenset(),
}


# ---------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------
def is_low_stock(item: Any) -> bool:
    if not item.track_stock:
        return False
    return (item.quantity or 0) <= (item.low_stock_threshold or 0)


def is_out_of_stock(item: Any) -> bool:
    return bool(item.track_stock) and (item.quantity or 0) <= 0


def stock_level(item: Any) -> str:
    if is_out_of_stock(item):
        return OUT_OF_STOCK
    if is_low_stock(item):
        return LOW_STOCK
    return IN_STOCK


def low_stock_items(items: Iterable[Any]) -> list:
    return [item for item in items if is_low_stock(item)]


def filter_by_stock_level(items: Iterable[Any], level: str) -> list:
    if level not in STOCK_LEVELS:
        raise ValidationError("Invalid stock level", {"stockLevel": f"must be one of {', '.join(STOCK_LEVELS)}"})
    return [item for item in items if stock_level(item) == level]


# ---------------------------------------------------------------------
# Reconciler
# ---------------------------------------------------------------------
def _reconcile(inventory: InventoryRepository, items: Iterable[Any], sign: int, label: str, order_id: str) -> None:
    for line in items:
        inventory_item_id = getattr(line, "inventory_item_id", None)
        if not inventory_item_id:
            logger.warning("%s %s: line %r has no inventory item, skipped", label, order_id, line.item_name)
            continue

        delta = sign * int(line.quantity)
        new_quantity = inventory.adjust_quantity(inventory_item_id, delta)
        if new_quantity is None:
            logger.warning(
                "%s %s: inventory item %s no longer exists, line skipped",
                label, order_id, inventory_item_id,
            )
            continue

        logger.info("%s %s: inventory item %s %+d -> %d", label, order_id, inventory_item_id, delta, new_quantity)
        if new_quantity < 0:
            logger.warning("Inventory item %s is now negative (%d)", inventory_item_id, new_quantity)


def _transition(
    repo: OrderRepository,
    inventory: InventoryRepository,
    order_id: str,
    requested: str,
    transitions: Dict[str, FrozenSet[str]],
    sign: int,
    label: str,
) -> Any:
    if requested not in transitions:
        raise ValidationError(
            f"Invalid {label} status",
            {"status": f"must be one of {', '.join(transitions)}"},
        )

    order = repo.get_for_update(order_id)
    if order is None:
        raise NotFoundError(f"{label.capitalize()} not found")

    current = order.status
    if requested == current and requested != APPROVED:
        return order

    if requested not in transitions.get(current, frozenset()):
        if requested == APPROVED:
            raise StateTransitionError(f"{label.capitalize()} is already {current} and cannot be approved again")
        raise StateTransitionError(f"Cannot change {label} status from {current} to {requested}")

    approved_at = None
    if requested == APPROVED:
        _reconcile(inventory, order.items, sign, label, order_id)
        approved_at = datetime.now(timezone.utc).replace(tzinfo=None)

    if not repo.compare_and_set_status(order_id, current, requested, approved_at=approved_at):
        raise StateTransitionError(f"{label.capitalize()} was changed by another request, try again")

    logger.info("%s %s: %s -> %s", label, order_id, current, requested)
    return order


def transition_purchase_order(uow: UnitOfWork, order_id: str, requested: str) -> Any:
    """Change a purchase order's status; pending -> approved adds ordered quantities to stock."""
    return _transition(
        uow.purchase_orders, uow.inventory, order_id, requested,
        PURCHASE_ORDER_TRANSITIONS, +1, "purchase order",
    )


def transition_return(uow: UnitOfWork, return_id: str, requested: str) -> Any:
    """Change a return's status; pending -> approved removes returned quantities from stock."""
    return _transition(
        uow.returns, uow.inventory, return_id, requested,
        RETURN_TRANSITIONS, -1, "return",
    )


def approve_purchase_order(uow: UnitOfWork, order_id: str) -> Any:
    return transition_purchase_order(uow, order_id, APPROVED)


def approve_return(uow: UnitOfWork, return_id: str) -> Any:
    return transition_return(uow, return_id, APPROVED)
