"""
WRENCH'D Workshop Back Office - Domain Models

Master data:
- Customer, Vehicle, Supplier, InventoryItem, ServiceBay

Work & sales documents (line items owned by their parent, deleted with it):
- Job / JobPart
- Quote / QuotePart
- Receipt

Procurement documents (approval drives stock reconciliation, see stock.py):
- PurchaseOrder / PurchaseOrderItem
- Return / ReturnItem

Presentation & traceability:
- BusinessSettings (single row), CustomTemplate, AuditLog

IMPORTANT:
- Money columns are Numeric(10, 2) and serialized as strings ("12.50").
- Totals are computed server-side (pricing.py); client totals are never stored verbatim.
- to_dict() produces the camelCase wire format consumed by the SPA.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from .extensions import db
from .pricing import PricedLine, money, money_str, price_job, price_purchase_order, price_return, to_decimal
from .stock import stock_level


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# ---------------------------------------------------------------------
# Customers, vehicles, suppliers
# ---------------------------------------------------------------------
class Customer(db.Model):
    __tablename__ = "customers"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)

    name = db.Column(db.String(255), nullable=False, index=True)
    email = db.Column(db.String(255))
    phone = db.Column(db.String(50))
    address = db.Column(db.Text)
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=_utcnow, index=True)

    vehicles = db.relationship(
        "Vehicle",
        back_populates="customer",
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<Customer {self.name}>"


class Vehicle(db.Model):
    __tablename__ = "vehicles"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)

    customer_id = db.Column(
        db.String(36),
        db.ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    make = db.Column(db.String(100), nullable=False)
    model = db.Column(db.String(100), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    trim = db.Column(db.String(100))
    color = db.Column(db.String(50))
    vin = db.Column(db.String(32), index=True)
    license_plate = db.Column(db.String(20), index=True)
    mileage = db.Column(db.Integer)
    engine_size = db.Column(db.String(50))
    fuel_type = db.Column(db.String(50))
    transmission = db.Column(db.String(50))
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=_utcnow, index=True)

    customer = db.relationship("Customer", back_populates="vehicles")

    def display_name(self) -> str:
        return f"{self.year} {self.make} {self.model}".strip()

    def to_dict(self, with_customer: bool = False) -> dict:
        data = {
            "id": self.id,
            "customerId": self.customer_id,
            "make": self.make,
            "model": self.model,
            "year": self.year,
            "trim": self.trim,
            "color": self.color,
            "vin": self.vin,
            "licensePlate": self.license_plate,
            "mileage": self.mileage,
            "engineSize": self.engine_size,
            "fuelType": self.fuel_type,
            "transmission": self.transmission,
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
        }
        if with_customer:
            data["customer"] = self.customer.to_dict() if self.customer else None
        return data

    def __repr__(self):
        return f"<Vehicle {self.display_name()}>"


class Supplier(db.Model):
    __tablename__ = "suppliers"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)

    name = db.Column(db.String(255), nullable=False, index=True)
    contact_name = db.Column(db.String(255))
    phone = db.Column(db.String(50))
    email = db.Column(db.String(255))
    address = db.Column(db.Text)
    website = db.Column(db.String(255))
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=_utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contactName": self.contact_name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "website": self.website,
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<Supplier {self.name}>"


# ---------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------
class InventoryItem(db.Model):
    """
    Stocked part.

    quantity is only changed by direct edits and by purchase-order / return
    approval (stock.py). Job parts do not consume stock.
    """

    __tablename__ = "inventory_items"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)

    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text)
    part_number = db.Column(db.String(100), index=True)
    category = db.Column(db.String(100), index=True)

    supplier_id = db.Column(
        db.String(36),
        db.ForeignKey("suppliers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    cost_price = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    retail_price = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    quantity = db.Column(db.Integer, nullable=False, default=0)
    low_stock_threshold = db.Column(db.Integer, nullable=False, default=5)
    track_stock = db.Column(db.Boolean, nullable=False, default=True)

    image_url = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=_utcnow, index=True)

    supplier = db.relationship("Supplier", backref=db.backref("inventory_items", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "partNumber": self.part_number,
            "category": self.category,
            "supplierId": self.supplier_id,
            "costPrice": money_str(self.cost_price),
            "retailPrice": money_str(self.retail_price),
            "quantity": self.quantity,
            "lowStockThreshold": self.low_stock_threshold,
            "trackStock": self.track_stock,
            "imageUrl": self.image_url,
            "stockLevel": stock_level(self),
            "createdAt": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<InventoryItem {self.name} qty={self.quantity}>"


class ServiceBay(db.Model):
    """Workshop bay (calendar column). Jobs may be scheduled into one."""

    __tablename__ = "service_bays"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)

    name = db.Column(db.String(100), nullable=False, unique=True)
    description = db.Column(db.Text)
    color = db.Column(db.String(20), nullable=False, default="#3B82F6")
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "isActive": self.is_active,
            "sortOrder": self.sort_order,
        }


# ---------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------
class _PartLineMixin:
    """Snapshot of a part at the time it was added to a job or quote."""

    line_no = db.Column(db.Integer, nullable=False, default=0)
    part_name = db.Column(db.String(255), nullable=False)
    part_number = db.Column(db.String(100))
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)

    def line_dict(self) -> dict:
        return {
            "id": self.id,
            "inventoryItemId": self.inventory_item_id,
            "partName": self.part_name,
            "partNumber": self.part_number,
            "quantity": self.quantity,
            "unitPrice": money_str(self.unit_price),
            "totalPrice": money_str(self.total_price),
        }


class JobPart(_PartLineMixin, db.Model):
    __tablename__ = "job_parts"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)

    job_id = db.Column(
        db.String(36),
        db.ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    inventory_item_id = db.Column(
        db.String(36),
        db.ForeignKey("inventory_items.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    job = db.relationship("Job", back_populates="parts")

    def to_dict(self) -> dict:
        data = self.line_dict()
        data["jobId"] = self.job_id
        return data


class QuotePart(_PartLineMixin, db.Model):
    __tablename__ = "quote_parts"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)

    quote_id = db.Column(
        db.String(36),
        db.ForeignKey("quotes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    inventory_item_id = db.Column(
        db.String(36),
        db.ForeignKey("inventory_items.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    quote = db.relationship("Quote", back_populates="parts")

    def to_dict(self) -> dict:
        data = self.line_dict()
        data["quoteId"] = self.quote_id
        return data


# ---------------------------------------------------------------------
# Jobs & quotes
# ---------------------------------------------------------------------
class _PricedWorkMixin:
    """Labour + parts pricing shared by jobs and quotes."""

    labor_hours = db.Column(db.Numeric(5, 2), nullable=False, default=Decimal("0.00"))
    labor_rate = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    parts_total = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    labor_total = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    def recalc_totals(self):
        """Recompute parts/labour/total from the attached line items."""
        lines = [
            PricedLine(part.quantity, Decimal(str(part.unit_price)), Decimal(str(part.total_price)))
            for part in self.parts
        ]
        # column scale; laborTotal is always the stored hours times the stored rate
        self.labor_hours = money(to_decimal(self.labor_hours))
        self.labor_rate = money(to_decimal(self.labor_rate))
        totals = price_job(lines, self.labor_hours, self.labor_rate)
        self.parts_total = totals.parts_total
        self.labor_total = totals.labor_total
        self.total_amount = totals.total_amount
        return totals

    def pricing_dict(self) -> dict:
        return {
            "laborHours": money_str(self.labor_hours),
            "laborRate": money_str(self.labor_rate),
            "partsTotal": money_str(self.parts_total),
            "laborTotal": money_str(self.labor_total),
            "totalAmount": money_str(self.total_amount),
        }


class Job(_PricedWorkMixin, db.Model):
    __tablename__ = "jobs"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    job_number = db.Column(db.String(50), nullable=False, unique=True, index=True)

    customer_id = db.Column(
        db.String(36),
        db.ForeignKey("customers.id"),
        nullable=False,
        index=True,
    )
    vehicle_id = db.Column(
        db.String(36),
        db.ForeignKey("vehicles.id"),
        nullable=False,
        index=True,
    )
    service_bay_id = db.Column(
        db.String(36),
        db.ForeignKey("service_bays.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default="scheduled", index=True)

    scheduled_date = db.Column(db.DateTime, index=True)
    completed_date = db.Column(db.DateTime)

    notes = db.Column(db.Text)
    photos = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, default=_utcnow, index=True)

    customer = db.relationship("Customer")
    vehicle = db.relationship("Vehicle")
    service_bay = db.relationship("ServiceBay")

    parts = db.relationship(
        "JobPart",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="JobPart.line_no",
    )

    def to_dict(self, with_details: bool = True) -> dict:
        data = {
            "id": self.id,
            "jobNumber": self.job_number,
            "customerId": self.customer_id,
            "vehicleId": self.vehicle_id,
            "serviceBayId": self.service_bay_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "scheduledDate": _iso(self.scheduled_date),
            "completedDate": _iso(self.completed_date),
            "notes": self.notes,
            "photos": list(self.photos or []),
            "createdAt": _iso(self.created_at),
        }
        data.update(self.pricing_dict())
        if with_details:
            data["customer"] = self.customer.to_dict() if self.customer else None
            data["vehicle"] = self.vehicle.to_dict() if self.vehicle else None
            data["parts"] = [part.to_dict() for part in self.parts]
        return data

    def __repr__(self):
        return f"<Job {self.job_number} {self.status}>"


class Quote(_PricedWorkMixin, db.Model):
    __tablename__ = "quotes"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)

    customer_id = db.Column(
        db.String(36),
        db.ForeignKey("customers.id"),
        nullable=False,
        index=True,
    )
    vehicle_id = db.Column(
        db.String(36),
        db.ForeignKey("vehicles.id"),
        nullable=False,
        index=True,
    )

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    valid_until = db.Column(db.DateTime)
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=_utcnow, index=True)

    customer = db.relationship("Customer")
    vehicle = db.relationship("Vehicle")

    parts = db.relationship(
        "QuotePart",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuotePart.line_no",
    )

    def to_dict(self, with_details: bool = True) -> dict:
        data = {
            "id": self.id,
            "customerId": self.customer_id,
            "vehicleId": self.vehicle_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "validUntil": _iso(self.valid_until),
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
        }
        data.update(self.pricing_dict())
        if with_details:
            data["customer"] = self.customer.to_dict() if self.customer else None
            data["vehicle"] = self.vehicle.to_dict() if self.vehicle else None
            data["parts"] = [part.to_dict() for part in self.parts]
        return data


class Receipt(db.Model):
    __tablename__ = "receipts"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)

    job_id = db.Column(db.String(36), db.ForeignKey("jobs.id", ondelete="SET NULL"), index=True)
    quote_id = db.Column(db.String(36), db.ForeignKey("quotes.id", ondelete="SET NULL"), index=True)

    type = db.Column(db.String(20), nullable=False)  # job, quote, purchase_order, return
    receipt_number = db.Column(db.String(50), nullable=False, unique=True, index=True)
    pdf_url = db.Column(db.Text)
    email_sent = db.Column(db.Boolean, nullable=False, default=False)

    archived = db.Column(db.Boolean, nullable=False, default=False, index=True)
    archived_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=_utcnow, index=True)

    job = db.relationship("Job")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "jobId": self.job_id,
            "quoteId": self.quote_id,
            "type": self.type,
            "receiptNumber": self.receipt_number,
            "pdfUrl": self.pdf_url,
            "emailSent": self.email_sent,
            "archived": self.archived,
            "archivedAt": _iso(self.archived_at),
            "createdAt": _iso(self.created_at),
        }


# ---------------------------------------------------------------------
# Procurement: purchase orders & returns
# ---------------------------------------------------------------------
class PurchaseOrder(db.Model):
    __tablename__ = "purchase_orders"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    order_number = db.Column(db.String(50), nullable=False, unique=True, index=True)

    supplier_id = db.Column(
        db.String(36),
        db.ForeignKey("suppliers.id"),
        nullable=False,
        index=True,
    )

    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    order_date = db.Column(db.DateTime, default=_utcnow)
    expected_delivery = db.Column(db.DateTime)
    approved_at = db.Column(db.DateTime)
    notes = db.Column(db.Text)

    subtotal = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    tax = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    created_at = db.Column(db.DateTime, default=_utcnow, index=True)

    supplier = db.relationship("Supplier", backref=db.backref("purchase_orders", lazy=True))

    items = db.relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.line_no",
    )

    def recalc_totals(self, tax_rate):
        lines = [
            PricedLine(item.quantity, Decimal(str(item.unit_price)), Decimal(str(item.total_price)))
            for item in self.items
        ]
        totals = price_purchase_order(lines, tax_rate)
        self.subtotal = totals.subtotal
        self.tax = totals.tax
        self.total = totals.total
        return totals

    def to_dict(self, with_details: bool = True) -> dict:
        data = {
            "id": self.id,
            "orderNumber": self.order_number,
            "supplierId": self.supplier_id,
            "status": self.status,
            "orderDate": _iso(self.order_date),
            "expectedDelivery": _iso(self.expected_delivery),
            "approvedAt": _iso(self.approved_at),
            "notes": self.notes,
            "subtotal": money_str(self.subtotal),
            "tax": money_str(self.tax),
            "total": money_str(self.total),
            "createdAt": _iso(self.created_at),
        }
        if with_details:
            data["supplier"] = self.supplier.to_dict() if self.supplier else None
            data["items"] = [item.to_dict() for item in self.items]
        return data


class PurchaseOrderItem(db.Model):
    __tablename__ = "purchase_order_items"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)

    purchase_order_id = db.Column(
        db.String(36),
        db.ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    inventory_item_id = db.Column(
        db.String(36),
        db.ForeignKey("inventory_items.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    line_no = db.Column(db.Integer, nullable=False, default=0)
    item_name = db.Column(db.String(255), nullable=False)
    item_description = db.Column(db.Text)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)

    purchase_order = db.relationship("PurchaseOrder", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchaseOrderId": self.purchase_order_id,
            "inventoryItemId": self.inventory_item_id,
            "itemName": self.item_name,
            "itemDescription": self.item_description,
            "quantity": self.quantity,
            "unitPrice": money_str(self.unit_price),
            "totalPrice": money_str(self.total_price),
        }


class Return(db.Model):
    __tablename__ = "returns"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    return_number = db.Column(db.String(50), nullable=False, unique=True, index=True)

    supplier_id = db.Column(
        db.String(36),
        db.ForeignKey("suppliers.id"),
        nullable=False,
        index=True,
    )
    purchase_order_id = db.Column(
        db.String(36),
        db.ForeignKey("purchase_orders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    reason = db.Column(db.Text, nullable=False)
    notes = db.Column(db.Text)
    return_date = db.Column(db.DateTime, default=_utcnow)
    approved_at = db.Column(db.DateTime)

    refund_amount = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    created_at = db.Column(db.DateTime, default=_utcnow, index=True)

    supplier = db.relationship("Supplier", backref=db.backref("returns", lazy=True))
    purchase_order = db.relationship("PurchaseOrder")

    items = db.relationship(
        "ReturnItem",
        back_populates="return_",
        cascade="all, delete-orphan",
        order_by="ReturnItem.line_no",
    )

    def recalc_totals(self):
        lines = [
            PricedLine(item.quantity, Decimal(str(item.unit_price)), Decimal(str(item.total_price)))
            for item in self.items
        ]
        self.refund_amount = price_return(lines)
        return self.refund_amount

    def to_dict(self, with_details: bool = True) -> dict:
        data = {
            "id": self.id,
            "returnNumber": self.return_number,
            "supplierId": self.supplier_id,
            "purchaseOrderId": self.purchase_order_id,
            "status": self.status,
            "reason": self.reason,
            "notes": self.notes,
            "returnDate": _iso(self.return_date),
            "approvedAt": _iso(self.approved_at),
            "refundAmount": money_str(self.refund_amount),
            "createdAt": _iso(self.created_at),
        }
        if with_details:
            data["supplier"] = self.supplier.to_dict() if self.supplier else None
            data["purchaseOrder"] = (
                self.purchase_order.to_dict(with_details=False) if self.purchase_order else None
            )
            data["items"] = [item.to_dict() for item in self.items]
        return data


class ReturnItem(db.Model):
    __tablename__ = "return_items"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)

    return_id = db.Column(
        db.String(36),
        db.ForeignKey("returns.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    inventory_item_id = db.Column(
        db.String(36),
        db.ForeignKey("inventory_items.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    line_no = db.Column(db.Integer, nullable=False, default=0)
    item_name = db.Column(db.String(255), nullable=False)
    condition = db.Column(db.String(50), nullable=False, default="new")
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)

    return_ = db.relationship("Return", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "returnId": self.return_id,
            "inventoryItemId": self.inventory_item_id,
            "itemName": self.item_name,
            "condition": self.condition,
            "quantity": self.quantity,
            "unitPrice": money_str(self.unit_price),
            "totalPrice": money_str(self.total_price),
        }


# ---------------------------------------------------------------------
# Presentation settings
# ---------------------------------------------------------------------
class BusinessSettings(db.Model):
    """Single row. Created with defaults on first read (see seed.ensure_business_settings)."""

    __tablename__ = "business_settings"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)

    business_name = db.Column(db.String(255))
    business_email = db.Column(db.String(255))
    business_phone = db.Column(db.String(50))
    business_address = db.Column(db.Text)
    currency = db.Column(db.String(3), nullable=False, default="GBP")
    logo_url = db.Column(db.Text)

    header_color = db.Column(db.String(20), default="#000000")
    accent_color = db.Column(db.String(20), default="#22c55e")
    header_font_size = db.Column(db.Integer, default=20)
    font_size = db.Column(db.Integer, default=12)
    show_logo = db.Column(db.Boolean, default=True)
    logo_position = db.Column(db.String(10), default="left")
    header_layout = db.Column(db.String(20), default="standard")

    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "businessName": self.business_name,
            "businessEmail": self.business_email,
            "businessPhone": self.business_phone,
            "businessAddress": self.business_address,
            "currency": self.currency,
            "logoUrl": self.logo_url,
            "headerColor": self.header_color,
            "accentColor": self.accent_color,
            "headerFontSize": self.header_font_size,
            "fontSize": self.font_size,
            "showLogo": self.show_logo,
            "logoPosition": self.logo_position,
            "headerLayout": self.header_layout,
            "updatedAt": _iso(self.updated_at),
        }


class CustomTemplate(db.Model):
    """Document template. At most one active per template_type (see settings routes)."""

    __tablename__ = "custom_templates"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)

    name = db.Column(db.String(255), nullable=False)
    template_type = db.Column(db.String(30), nullable=False, index=True)
    content = db.Column(db.JSON, nullable=False, default=dict)
    is_active = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "templateType": self.template_type,
            "content": self.content or {},
            "isActive": self.is_active,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


# ---------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------
class AuditLog(db.Model):
    """Before/after snapshot of every mutation, written in the mutation's transaction."""

    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)

    entity_type = db.Column(db.String(50), nullable=False, index=True)
    entity_id = db.Column(db.String(36), nullable=False, index=True)

    action = db.Column(db.String(20), nullable=False, index=True)

    before_data = db.Column(db.Text, nullable=True)
    after_data = db.Column(db.Text, nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)

    created_at = db.Column(db.DateTime, default=_utcnow, index=True)
