"""
wrenchd/blueprints/procurement/routes.py

Purchase orders and supplier returns.

Workflow:
- Orders and returns are created as "pending" with server-priced items.
  If the create payload asks for another status, the record is created pending and
  then moved through the normal transition in the same transaction.
- Status changes (PUT with "status", or POST .../approve) go through stock.py:
    purchase order pending -> approved : stock += ordered quantity
    return         pending -> approved : stock -= returned quantity
  Re-approving is refused with 409; stock is never applied twice.
- Items can only be replaced while the record is still pending.

AUDIT:
- CREATE/UPDATE/DELETE plus APPROVE/STATUS transitions are audited.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from flask import Blueprint, jsonify, request

from ...audit import APPROVE, CREATE, DELETE, STATUS, UPDATE, log_action, serialize_model
from ...errors import StateTransitionError, ValidationError
from ...extensions import db
from ...models import InventoryItem, PurchaseOrder, PurchaseOrderItem, Return, ReturnItem, Supplier
from ...pricing import check_client_totals, price_line
from ...schemas import PurchaseOrderIn, PurchaseOrderStatus, ReturnIn, ReturnStatus, parse_payload
from ...stock import APPROVED, transition_purchase_order, transition_return
from ...utils import apply_fields, get_or_404, json_body, next_document_number, tax_rate, totals_tolerance, unit_of_work

logger = logging.getLogger(__name__)

procurement_bp = Blueprint("procurement", __name__, url_prefix="/api")

PENDING = "pending"


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _ensure_supplier(supplier_id: str) -> None:
    if db.session.get(Supplier, supplier_id) is None:
        raise ValidationError("Invalid request data", {"supplierId": "supplier does not exist"})


def _ensure_unique_number(model, column, value: str, field: str, current_id: str | None = None) -> None:
    existing = model.query.filter(column == value).first()
    if existing is not None and existing.id != current_id:
        raise ValidationError("Invalid request data", {field: "already in use"})


def _price_items(model_cls, lines: List[Dict[str, Any]], extra_fields) -> list:
    """Validate and price PO / return lines into rows, in submitted order."""
    rows = []
    for idx, line in enumerate(lines):
        label = f"items.{idx}"
        inventory_item_id = line.get("inventory_item_id")
        if inventory_item_id and db.session.get(InventoryItem, inventory_item_id) is None:
            raise ValidationError("Invalid request data", {f"{label}.inventoryItemId": "inventory item does not exist"})

        priced = price_line(line["quantity"], line["unit_price"])
        if line.get("total_price") is not None:
            check_client_totals(
                {f"{label}.totalPrice": line["total_price"]},
                {f"{label}.totalPrice": priced.total_price},
                totals_tolerance(),
            )

        rows.append(
            model_cls(
                line_no=idx,
                inventory_item_id=inventory_item_id,
                item_name=line["item_name"],
                quantity=priced.quantity,
                unit_price=priced.unit_price,
                total_price=priced.total_price,
                **{name: line.get(name) for name in extra_fields},
            )
        )
    return rows


def _drop_empty_dates(data: Dict[str, Any], *fields: str) -> None:
    """Let column defaults apply instead of writing NULL."""
    for name in fields:
        if name in data and data[name] is None:
            del data[name]


def _run_transition(record, transition, requested: str) -> None:
    """Apply a status change through the reconciler and audit it (caller commits)."""
    previous = record.status

    db.session.flush()
    transition(unit_of_work(), record.id, requested)

    if previous != record.status:
        log_action(
            record,
            APPROVE if record.status == APPROVED else STATUS,
            before={"status": previous},
            after={"status": record.status, "approved_at": record.approved_at.isoformat() if record.approved_at else None},
        )


# ----------------------------------------------------------------------
# PURCHASE ORDERS
# ----------------------------------------------------------------------
@procurement_bp.get("/purchase-orders")
def list_purchase_orders():
    query = PurchaseOrder.query
    status = (request.args.get("status") or "").strip()
    if status:
        query = query.filter(PurchaseOrder.status == status)
    orders = query.order_by(PurchaseOrder.created_at.desc()).all()
    return jsonify([order.to_dict() for order in orders])


@procurement_bp.get("/purchase-orders/<order_id>")
def get_purchase_order(order_id: str):
    order = get_or_404(PurchaseOrder, order_id, "Purchase order not found")
    return jsonify(order.to_dict())


@procurement_bp.post("/purchase-orders")
def create_purchase_order():
    data = parse_payload(PurchaseOrderIn, json_body())
    lines = data.pop("items", None) or []
    hints = {"subtotal": data.pop("subtotal"), "tax": data.pop("tax"), "total": data.pop("total")}
    requested: PurchaseOrderStatus = data.pop("status")

    _ensure_supplier(data["supplier_id"])
    order_number = data.pop("order_number", None) or next_document_number("PO")
    _ensure_unique_number(PurchaseOrder, PurchaseOrder.order_number, order_number, "orderNumber")
    _drop_empty_dates(data, "order_date")

    order = PurchaseOrder(order_number=order_number, status=PENDING)
    apply_fields(order, data)
    order.items = _price_items(PurchaseOrderItem, lines, ("item_description",))

    totals = order.recalc_totals(tax_rate())
    check_client_totals(
        hints,
        {"subtotal": totals.subtotal, "tax": totals.tax, "total": totals.total},
        totals_tolerance(),
    )

    db.session.add(order)
    db.session.flush()
    log_action(order, CREATE, after=serialize_model(order))

    if requested != PENDING:
        _run_transition(order, transition_purchase_order, requested)

    db.session.commit()
    return jsonify(order.to_dict()), 201


@procurement_bp.put("/purchase-orders/<order_id>")
def update_purchase_order(order_id: str):
    order = get_or_404(PurchaseOrder, order_id, "Purchase order not found")
    data = parse_payload(PurchaseOrderIn, json_body(), partial=True)
    lines = data.pop("items", None)
    hints = {name: data.pop(name, None) for name in ("subtotal", "tax", "total")}
    requested = data.pop("status", None)

    if "supplier_id" in data:
        _ensure_supplier(data["supplier_id"])
    if data.get("order_number"):
        _ensure_unique_number(PurchaseOrder, PurchaseOrder.order_number, data["order_number"], "orderNumber", order.id)
    else:
        data.pop("order_number", None)
    _drop_empty_dates(data, "order_date")

    before = serialize_model(order)
    apply_fields(order, data)

    if lines is not None:
        if order.status != PENDING:
            raise StateTransitionError(f"Items can only be changed while the purchase order is pending (status: {order.status})")
        order.items = _price_items(PurchaseOrderItem, lines, ("item_description",))

    totals = order.recalc_totals(tax_rate())
    check_client_totals(
        hints,
        {"subtotal": totals.subtotal, "tax": totals.tax, "total": totals.total},
        totals_tolerance(),
    )
    db.session.flush()
    log_action(order, UPDATE, before=before, after=serialize_model(order))

    if requested is not None:
        _run_transition(order, transition_purchase_order, requested)

    db.session.commit()
    return jsonify(order.to_dict())


@procurement_bp.post("/purchase-orders/<order_id>/approve")
def approve_purchase_order(order_id: str):
    order = get_or_404(PurchaseOrder, order_id, "Purchase order not found")
    _run_transition(order, transition_purchase_order, APPROVED)
    db.session.commit()
    return jsonify(order.to_dict())


@procurement_bp.delete("/purchase-orders/<order_id>")
def delete_purchase_order(order_id: str):
    """Delete an order and its items. Stock already received is not reversed."""
    order = get_or_404(PurchaseOrder, order_id, "Purchase order not found")
    if order.status != PENDING:
        logger.warning(
            "Deleting purchase order %s in status %s; received stock is not reversed",
            order.order_number, order.status,
        )
    before = serialize_model(order)

    Return.query.filter_by(purchase_order_id=order.id).update({"purchase_order_id": None}, synchronize_session="fetch")
    db.session.delete(order)
    db.session.flush()

    log_action(order, DELETE, before=before)
    db.session.commit()
    return "", 204


# ----------------------------------------------------------------------
# RETURNS
# ----------------------------------------------------------------------
def _ensure_purchase_order(purchase_order_id) -> None:
    if purchase_order_id and db.session.get(PurchaseOrder, purchase_order_id) is None:
        raise ValidationError("Invalid request data", {"purchaseOrderId": "purchase order does not exist"})


@procurement_bp.get("/returns")
def list_returns():
    query = Return.query
    status = (request.args.get("status") or "").strip()
    if status:
        query = query.filter(Return.status == status)
    returns = query.order_by(Return.created_at.desc()).all()
    return jsonify([r.to_dict() for r in returns])


@procurement_bp.get("/returns/<return_id>")
def get_return(return_id: str):
    record = get_or_404(Return, return_id, "Return not found")
    return jsonify(record.to_dict())


@procurement_bp.post("/returns")
def create_return():
    data = parse_payload(ReturnIn, json_body())
    lines = data.pop("items", None) or []
    refund_hint = data.pop("refund_amount")
    requested: ReturnStatus = data.pop("status")

    _ensure_supplier(data["supplier_id"])
    _ensure_purchase_order(data.get("purchase_order_id"))
    return_number = data.pop("return_number", None) or next_document_number("RTN")
    _ensure_unique_number(Return, Return.return_number, return_number, "returnNumber")
    _drop_empty_dates(data, "return_date")

    record = Return(return_number=return_number, status=PENDING)
    apply_fields(record, data)
    record.items = _price_items(ReturnItem, lines, ("condition",))

    refund = record.recalc_totals()
    check_client_totals({"refundAmount": refund_hint}, {"refundAmount": refund}, totals_tolerance())

    db.session.add(record)
    db.session.flush()
    log_action(record, CREATE, after=serialize_model(record))

    if requested != PENDING:
        _run_transition(record, transition_return, requested)

    db.session.commit()
    return jsonify(record.to_dict()), 201


@procurement_bp.put("/returns/<return_id>")
def update_return(return_id: str):
    record = get_or_404(Return, return_id, "Return not found")
    data = parse_payload(ReturnIn, json_body(), partial=True)
    lines = data.pop("items", None)
    refund_hint = data.pop("refund_amount", None)
    requested = data.pop("status", None)

    if "supplier_id" in data:
        _ensure_supplier(data["supplier_id"])
    _ensure_purchase_order(data.get("purchase_order_id"))
    if data.get("return_number"):
        _ensure_unique_number(Return, Return.return_number, data["return_number"], "returnNumber", record.id)
    else:
        data.pop("return_number", None)
    _drop_empty_dates(data, "return_date")

    before = serialize_model(record)
    apply_fields(record, data)

    if lines is not None:
        if record.status != PENDING:
            raise StateTransitionError(f"Items can only be changed while the return is pending (status: {record.status})")
        record.items = _price_items(ReturnItem, lines, ("condition",))

    refund = record.recalc_totals()
    check_client_totals({"refundAmount": refund_hint}, {"refundAmount": refund}, totals_tolerance())
    db.session.flush()
    log_action(record, UPDATE, before=before, after=serialize_model(record))

    if requested is not None:
        _run_transition(record, transition_return, requested)

    db.session.commit()
    return jsonify(record.to_dict())


@procurement_bp.post("/returns/<return_id>/approve")
def approve_return(return_id: str):
    record = get_or_404(Return, return_id, "Return not found")
    _run_transition(record, transition_return, APPROVED)
    db.session.commit()
    return jsonify(record.to_dict())


@procurement_bp.delete("/returns/<return_id>")
def delete_return(return_id: str):
    record = get_or_404(Return, return_id, "Return not found")
    before = serialize_model(record)

    db.session.delete(record)
    db.session.flush()

    log_action(record, DELETE, before=before)
    db.session.commit()
    return "", 204
