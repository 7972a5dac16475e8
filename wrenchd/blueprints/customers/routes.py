"""
wrenchd/blueprints/customers/routes.py

Master data routes: customers, vehicles, suppliers.

Rules:
- A vehicle always belongs to an existing customer.
- Deleting a customer deletes their vehicles, but is refused while jobs or quotes
  still reference the customer (they are the workshop's history).
- A vehicle or supplier that is referenced by documents cannot be deleted either.

AUDIT:
- CREATE/UPDATE/DELETE is audited via wrenchd/audit.py in the same transaction.
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from ...audit import CREATE, DELETE, UPDATE, log_action, serialize_model
from ...errors import ValidationError
from ...extensions import db
from ...models import Customer, Job, PurchaseOrder, Quote, Return, Supplier, Vehicle
from ...schemas import CustomerIn, SupplierIn, VehicleIn, parse_payload
from ...utils import apply_fields, get_or_404, json_body

customers_bp = Blueprint("customers", __name__, url_prefix="/api")


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _ensure_customer(customer_id: str) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise ValidationError("Invalid vehicle data", {"customerId": "customer does not exist"})
    return customer


def _is_referenced(model, column, value) -> bool:
    return db.session.query(model.id).filter(column == value).first() is not None


# ----------------------------------------------------------------------
# CUSTOMERS
# ----------------------------------------------------------------------
@customers_bp.get("/customers")
def list_customers():
    search = (request.args.get("search") or "").strip()
    query = Customer.query
    if search:
        like = f"%{search}%"
        query = query.filter(
            db.or_(Customer.name.ilike(like), Customer.email.ilike(like), Customer.phone.ilike(like))
        )
    customers = query.order_by(Customer.name.asc()).all()
    return jsonify([c.to_dict() for c in customers])


@customers_bp.get("/customers/<customer_id>")
def get_customer(customer_id: str):
    customer = get_or_404(Customer, customer_id, "Customer not found")
    return jsonify(customer.to_dict())


@customers_bp.get("/customers/<customer_id>/vehicles")
def customer_vehicles(customer_id: str):
    customer = get_or_404(Customer, customer_id, "Customer not found")
    vehicles = (
        Vehicle.query.filter_by(customer_id=customer.id)
        .order_by(Vehicle.created_at.asc())
        .all()
    )
    return jsonify([v.to_dict() for v in vehicles])


@customers_bp.post("/customers")
def create_customer():
    data = parse_payload(CustomerIn, json_body())

    customer = Customer()
    apply_fields(customer, data)
    db.session.add(customer)
    db.session.flush()

    log_action(customer, CREATE, after=serialize_model(customer))
    db.session.commit()
    return jsonify(customer.to_dict()), 201


@customers_bp.put("/customers/<customer_id>")
def update_customer(customer_id: str):
    customer = get_or_404(Customer, customer_id, "Customer not found")
    data = parse_payload(CustomerIn, json_body(), partial=True)
    before = serialize_model(customer)

    apply_fields(customer, data)
    db.session.flush()

    log_action(customer, UPDATE, before=before, after=serialize_model(customer))
    db.session.commit()
    return jsonify(customer.to_dict())


@customers_bp.delete("/customers/<customer_id>")
def delete_customer(customer_id: str):
    customer = get_or_404(Customer, customer_id, "Customer not found")
    if _is_referenced(Job, Job.customer_id, customer.id) or _is_referenced(Quote, Quote.customer_id, customer.id):
        raise ValidationError("Customer has jobs or quotes and cannot be deleted")

    before = serialize_model(customer)
    db.session.delete(customer)
    db.session.flush()

    log_action(customer, DELETE, before=before)
    db.session.commit()
    return "", 204


# ----------------------------------------------------------------------
# VEHICLES
# ----------------------------------------------------------------------
@customers_bp.get("/vehicles")
def list_vehicles():
    vehicles = Vehicle.query.order_by(Vehicle.created_at.desc()).all()
    return jsonify([v.to_dict(with_customer=True) for v in vehicles])


@customers_bp.get("/vehicles/<vehicle_id>")
def get_vehicle(vehicle_id: str):
    vehicle = get_or_404(Vehicle, vehicle_id, "Vehicle not found")
    return jsonify(vehicle.to_dict(with_customer=True))


@customers_bp.post("/vehicles")
def create_vehicle():
    data = parse_payload(VehicleIn, json_body())
    _ensure_customer(data["customer_id"])

    vehicle = Vehicle()
    apply_fields(vehicle, data)
    db.session.add(vehicle)
    db.session.flush()

    log_action(vehicle, CREATE, after=serialize_model(vehicle))
    db.session.commit()
    return jsonify(vehicle.to_dict()), 201


@customers_bp.put("/vehicles/<vehicle_id>")
def update_vehicle(vehicle_id: str):
    vehicle = get_or_404(Vehicle, vehicle_id, "Vehicle not found")
    data = parse_payload(VehicleIn, json_body(), partial=True)
    if "customer_id" in data:
        _ensure_customer(data["customer_id"])
    before = serialize_model(vehicle)

    apply_fields(vehicle, data)
    db.session.flush()

    log_action(vehicle, UPDATE, before=before, after=serialize_model(vehicle))
    db.session.commit()
    return jsonify(vehicle.to_dict())


@customers_bp.delete("/vehicles/<vehicle_id>")
def delete_vehicle(vehicle_id: str):
    vehicle = get_or_404(Vehicle, vehicle_id, "Vehicle not found")
    if _is_referenced(Job, Job.vehicle_id, vehicle.id) or _is_referenced(Quote, Quote.vehicle_id, vehicle.id):
        raise ValidationError("Vehicle has jobs or quotes and cannot be deleted")

    before = serialize_model(vehicle)
    db.session.delete(vehicle)
    db.session.flush()

    log_action(vehicle, DELETE, before=before)
    db.session.commit()
    return "", 204


# ----------------------------------------------------------------------
# SUPPLIERS
# ----------------------------------------------------------------------
@customers_bp.get("/suppliers")
def list_suppliers():
    suppliers = Supplier.query.order_by(Supplier.name.asc()).all()
    return jsonify([s.to_dict() for s in suppliers])


@customers_bp.get("/suppliers/<supplier_id>")
def get_supplier(supplier_id: str):
    supplier = get_or_404(Supplier, supplier_id, "Supplier not found")
    return jsonify(supplier.to_dict())


@customers_bp.post("/suppliers")
def create_supplier():
    data = parse_payload(SupplierIn, json_body())

    supplier = Supplier()
    apply_fields(supplier, data)
    db.session.add(supplier)
    db.session.flush()

    log_action(supplier, CREATE, after=serialize_model(supplier))
    db.session.commit()
    return jsonify(supplier.to_dict()), 201


@customers_bp.put("/suppliers/<supplier_id>")
def update_supplier(supplier_id: str):
    supplier = get_or_404(Supplier, supplier_id, "Supplier not found")
    data = parse_payload(SupplierIn, json_body(), partial=True)
    before = serialize_model(supplier)

    apply_fields(supplier, data)
    db.session.flush()

    log_action(supplier, UPDATE, before=before, after=serialize_model(supplier))
    db.session.commit()
    return jsonify(supplier.to_dict())


@customers_bp.delete("/suppliers/<supplier_id>")
def delete_supplier(supplier_id: str):
    supplier = get_or_404(Supplier, supplier_id, "Supplier not found")
    if _is_referenced(PurchaseOrder, PurchaseOrder.supplier_id, supplier.id) or _is_referenced(
        Return, Return.supplier_id, supplier.id
    ):
        raise ValidationError("Supplier has purchase orders or returns and cannot be deleted")

    before = serialize_model(supplier)
    db.session.delete(supplier)
    db.session.flush()

    log_action(supplier, DELETE, before=before)
    db.session.commit()
    return "", 204
