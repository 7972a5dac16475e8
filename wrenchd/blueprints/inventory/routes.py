"""
wrenchd/blueprints/inventory/routes.py

Inventory routes.

- GET /api/inventory supports ?search=, ?category= and ?stockLevel=in_stock|low_stock|out_of_stock.
- GET /api/inventory/low-stock lists tracked items at or below their threshold.
- Direct edits may set quantity; approvals change it through stock.py only.
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from ...audit import CREATE, DELETE, UPDATE, log_action, serialize_model
from ...errors import ValidationError
from ...extensions import db
from ...models import InventoryItem, Supplier
from ...schemas import InventoryItemIn, parse_payload
from ...stock import filter_by_stock_level, low_stock_items
from ...utils import apply_fields, get_or_404, json_body

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api")


def _ensure_supplier(supplier_id):
    if supplier_id and db.session.get(Supplier, supplier_id) is None:
        raise ValidationError("Invalid inventory item data", {"supplierId": "supplier does not exist"})


@inventory_bp.get("/inventory")
def list_inventory():
    search = (request.args.get("search") or "").strip()
    category = (request.args.get("category") or "").strip()
    level = (request.args.get("stockLevel") or "").strip()

    query = InventoryItem.query
    if search:
        like = f"%{search}%"
        query = query.filter(
            db.or_(
                InventoryItem.name.ilike(like),
                InventoryItem.part_number.ilike(like),
                InventoryItem.description.ilike(like),
            )
        )
    if category:
        query = query.filter(InventoryItem.category == category)

    items = query.order_by(InventoryItem.name.asc()).all()
    if level:
        items = filter_by_stock_level(items, level)
    return jsonify([item.to_dict() for item in items])


@inventory_bp.get("/inventory/low-stock")
def low_stock():
    items = InventoryItem.query.filter_by(track_stock=True).order_by(InventoryItem.quantity.asc()).all()
    return jsonify([item.to_dict() for item in low_stock_items(items)])


@inventory_bp.get("/inventory/<item_id>")
def get_item(item_id: str):
    item = get_or_404(InventoryItem, item_id, "Inventory item not found")
    return jsonify(item.to_dict())


@inventory_bp.post("/inventory")
def create_item():
    data = parse_payload(InventoryItemIn, json_body())
    _ensure_supplier(data.get("supplier_id"))

    item = InventoryItem()
    apply_fields(item, data)
    db.session.add(item)
    db.session.flush()

    log_action(item, CREATE, after=serialize_model(item))
    db.session.commit()
    return jsonify(item.to_dict()), 201


@inventory_bp.put("/inventory/<item_id>")
def update_item(item_id: str):
    item = get_or_404(InventoryItem, item_id, "Inventory item not found")
    data = parse_payload(InventoryItemIn, json_body(), partial=True)
    _ensure_supplier(data.get("supplier_id"))
    before = serialize_model(item)

    apply_fields(item, data)
    db.session.flush()

    log_action(item, UPDATE, before=before, after=serialize_model(item))
    db.session.commit()
    return jsonify(item.to_dict())


@inventory_bp.delete("/inventory/<item_id>")
def delete_item(item_id: str):
    item = get_or_404(InventoryItem, item_id, "Inventory item not found")
    before = serialize_model(item)

    db.session.delete(item)
    db.session.flush()

    log_action(item, DELETE, before=before)
    db.session.commit()
    return "", 204
