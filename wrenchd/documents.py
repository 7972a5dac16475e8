"""
wrenchd/documents.py

Document assembler: flattens a purchase order, return, quote or receipt into the
plain dict the SPA renders to PDF.

- Money values are strings ("12.50"), dates are ISO strings.
- Records are fetched through caller-supplied loaders, so this module never
  touches the session:
      loaders = {"purchase-order": fn(id), "return": fn(id), "quote": fn(id), "receipt": fn(id)}
  A loader returns the aggregate or None. The receipt loader returns a Receipt
  whose .job is loaded.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional

from .errors import NotFoundError, ValidationError
from .pricing import ZERO, money, money_str

DOCUMENT_TYPES = ("purchase-order", "return", "quote", "receipt")

Loader = Callable[[str], Any]


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _party(record) -> Optional[Dict[str, Any]]:
    if record is None:
        return None
    return {
        "name": record.name,
        "email": record.email,
        "phone": record.phone,
        "address": record.address,
    }


def _vehicle(vehicle) -> Optional[Dict[str, Any]]:
    if vehicle is None:
        return None
    return {
        "description": vehicle.display_name(),
        "registration": vehicle.license_plate,
        "vin": vehicle.vin,
        "mileage": vehicle.mileage,
    }


def _purchase_order(order) -> Dict[str, Any]:
    return {
        "title": "Purchase Order",
        "orderNumber": order.order_number,
        "supplier": _party(order.supplier),
        "orderDate": _iso(order.order_date),
        "expectedDelivery": _iso(order.expected_delivery),
        "status": order.status,
        "items": [
            {
                "itemName": item.item_name,
                "itemDescription": item.item_description,
                "quantity": item.quantity,
                "unitPrice": money_str(item.unit_price),
                "totalPrice": money_str(item.total_price),
            }
            for item in order.items
        ],
        "subtotal": money_str(order.subtotal),
        "tax": money_str(order.tax),
        "total": money_str(order.total),
        "notes": order.notes,
    }


def _return(record) -> Dict[str, Any]:
    return {
        "title": "Supplier Return",
        "returnNumber": record.return_number,
        "supplier": _party(record.supplier),
        "purchaseOrder": record.purchase_order.order_number if record.purchase_order else None,
        "returnDate": _iso(record.return_date),
        "reason": record.reason,
        "status": record.status,
        "items": [
            {
                "itemName": item.item_name,
                "quantity": item.quantity,
                "condition": item.condition,
                "unitPrice": money_str(item.unit_price),
                "totalPrice": money_str(item.total_price),
            }
            for item in record.items
        ],
        "refundAmount": money_str(record.refund_amount),
        "notes": record.notes,
    }


def _quote(quote) -> Dict[str, Any]:
    return {
        "title": quote.title,
        "customer": _party(quote.customer),
        "vehicle": _vehicle(quote.vehicle),
        "quoteDate": _iso(quote.created_at),
        "validUntil": _iso(quote.valid_until),
        "laborHours": money_str(quote.labor_hours),
        "laborRate": money_str(quote.labor_rate),
        "laborTotal": money_str(quote.labor_total),
        "parts": [
            {
                "name": part.part_name,
                "partNumber": part.part_number,
                "quantity": part.quantity,
                "unitPrice": money_str(part.unit_price),
                "totalPrice": money_str(part.total_price),
            }
            for part in quote.parts
        ],
        "subtotal": money_str(quote.total_amount),
        "tax": money_str(ZERO),
        "total": money_str(quote.total_amount),
        "notes": quote.notes,
    }


def _receipt(receipt) -> Dict[str, Any]:
    job = receipt.job
    if job is None:
        raise NotFoundError("Job not found")

    services = []
    if money(job.labor_total) > ZERO:
        services.append(
            {
                "description": f"Labour ({money_str(job.labor_hours)} h @ {money_str(job.labor_rate)})",
                "amount": money_str(job.labor_total),
            }
        )
    for part in job.parts:
        services.append(
            {
                "description": f"{part.part_name} x{part.quantity}",
                "amount": money_str(part.total_price),
            }
        )

    return {
        "title": "Receipt",
        "receiptNumber": receipt.receipt_number,
        "customer": _party(job.customer),
        "vehicle": _vehicle(job.vehicle),
        "jobTitle": job.title,
        "receiptDate": _iso(job.completed_date or receipt.created_at),
        "paymentMethod": None,
        "services": services,
        "total": money_str(job.total_amount),
        "notes": job.notes,
    }


_BUILDERS: Dict[str, Callable[[Any], Dict[str, Any]]] = {
    "purchase-order": _purchase_order,
    "return": _return,
    "quote": _quote,
    "receipt": _receipt,
}

_NOT_FOUND = {
    "purchase-order": "Purchase order not found",
    "return": "Return not found",
    "quote": "Quote not found",
    "receipt": "Job not found",
}


def assemble_document(
    doc_type: str,
    doc_id: str,
    loaders: Mapping[str, Loader],
    business: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build the printable payload for one document.

    Raises ValidationError for an unknown type and NotFoundError when the
    loader finds nothing. `business` (BusinessSettings.to_dict()) is attached
    as the letterhead when given.
    """
    if doc_type not in _BUILDERS:
        raise ValidationError(
            "Invalid document type",
            {"type": f"must be one of {', '.join(DOCUMENT_TYPES)}"},
        )

    loader = loaders.get(doc_type)
    record = loader(doc_id) if loader is not None else None
    if record is None:
        raise NotFoundError(_NOT_FOUND[doc_type])

    data = _BUILDERS[doc_type](record)
    data["documentType"] = doc_type
    if business is not None:
        data["business"] = business
    return data
