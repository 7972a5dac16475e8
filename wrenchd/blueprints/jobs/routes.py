"""
wrenchd/blueprints/jobs/routes.py

Jobs, job parts and quotes.

Pricing (see pricing.py):
- Every line is priced server-side: totalPrice = quantity * unitPrice.
- partsTotal / laborTotal / totalAmount are recomputed on every change to the
  parent or to any of its parts, in the same transaction.
- Totals sent by the client are compared to the server's and rejected (400) when
  they differ by more than TOTALS_TOLERANCE; the server values are what is stored.

Stock:
- Job and quote parts do not change inventory quantities.

AUDIT:
- CREATE/UPDATE/DELETE on jobs, job parts and quotes is audited.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, get_args

from flask import Blueprint, jsonify, request
from pydantic.alias_generators import to_camel

from ...audit import CREATE, DELETE, UPDATE, log_action, serialize_model
from ...errors import ValidationError
from ...extensions import db
from ...models import Customer, InventoryItem, Job, JobPart, Quote, QuotePart, Receipt, ServiceBay, Vehicle
from ...pricing import check_client_totals, price_line
from ...schemas import JobIn, JobStatus, PartLineIn, QuoteIn, QuoteStatus, parse_payload
from ...utils import apply_fields, get_or_404, json_body, next_document_number, totals_tolerance

jobs_bp = Blueprint("jobs", __name__, url_prefix="/api")

JOB_STATUSES = get_args(JobStatus)
QUOTE_STATUSES = get_args(QuoteStatus)

HINT_FIELDS = {
    "parts_total": "partsTotal",
    "labor_total": "laborTotal",
    "total_amount": "totalAmount",
}


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _pop_hints(data: Dict[str, Any]) -> Dict[str, Any]:
    """Remove client totals from the payload; they are never assigned directly."""
    return {wire: data.pop(field, None) for field, wire in HINT_FIELDS.items()}


def _check_hints(hints: Dict[str, Any], totals) -> None:
    check_client_totals(
        hints,
        {
            "partsTotal": totals.parts_total,
            "laborTotal": totals.labor_total,
            "totalAmount": totals.total_amount,
        },
        totals_tolerance(),
    )


def _ensure_customer_vehicle(customer_id: str, vehicle_id: str) -> None:
    if db.session.get(Customer, customer_id) is None:
        raise ValidationError("Invalid request data", {"customerId": "customer does not exist"})
    vehicle = db.session.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise ValidationError("Invalid request data", {"vehicleId": "vehicle does not exist"})
    if vehicle.customer_id != customer_id:
        raise ValidationError("Invalid request data", {"vehicleId": "vehicle belongs to another customer"})


def _ensure_service_bay(service_bay_id) -> None:
    if service_bay_id and db.session.get(ServiceBay, service_bay_id) is None:
        raise ValidationError("Invalid request data", {"serviceBayId": "service bay does not exist"})


def _price_part(line: Dict[str, Any], label: str) -> Dict[str, Any]:
    """Validate and price one PartLineIn dict; returns the column values for the row."""
    inventory_item_id = line.get("inventory_item_id")
    if inventory_item_id and db.session.get(InventoryItem, inventory_item_id) is None:
        raise ValidationError(
            "Invalid request data",
            {f"{label}.inventoryItemId": "inventory item does not exist"},
        )

    priced = price_line(line["quantity"], line["unit_price"])
    if line.get("total_price") is not None:
        check_client_totals(
            {f"{label}.totalPrice": line["total_price"]},
            {f"{label}.totalPrice": priced.total_price},
            totals_tolerance(),
        )

    return {
        "inventory_item_id": inventory_item_id,
        "part_name": line["part_name"],
        "part_number": line.get("part_number"),
        "quantity": priced.quantity,
        "unit_price": priced.unit_price,
        "total_price": priced.total_price,
    }


def _build_part(model_cls, line: Dict[str, Any], line_no: int, label: str):
    return model_cls(line_no=line_no, **_price_part(line, label))


def _build_parts(model_cls, lines: List[Dict[str, Any]], label: str) -> list:
    return [_build_part(model_cls, line, idx, f"{label}.{idx}") for idx, line in enumerate(lines)]


def _next_line_no(parts) -> int:
    return max((p.line_no for p in parts), default=-1) + 1


def _save_work(record, data: Dict[str, Any], parts_key: str, part_model, is_new: bool):
    """
    Shared create/update flow for jobs and quotes.

    data is the parsed payload (snake_case). Parts, when present, replace the
    existing parts wholesale.
    """
    lines = data.pop(parts_key, None)
    hints = _pop_hints(data)

    customer_id = data.get("customer_id", record.customer_id)
    vehicle_id = data.get("vehicle_id", record.vehicle_id)
    if is_new or "customer_id" in data or "vehicle_id" in data:
        _ensure_customer_vehicle(customer_id, vehicle_id)

    before = None if is_new else serialize_model(record)
    apply_fields(record, data)

    if lines is not None:
        record.parts = _build_parts(part_model, lines, to_camel(parts_key))

    totals = record.recalc_totals()
    _check_hints(hints, totals)

    if is_new:
        db.session.add(record)
    db.session.flush()

    if is_new:
        log_action(record, CREATE, after=serialize_model(record))
    else:
        log_action(record, UPDATE, before=before, after=serialize_model(record))
    db.session.commit()
    return record


def _parent_recalc(parent) -> None:
    before = serialize_model(parent)
    parent.recalc_totals()
    db.session.flush()
    log_action(parent, UPDATE, before=before, after=serialize_model(parent))


# ----------------------------------------------------------------------
# JOBS
# ----------------------------------------------------------------------
@jobs_bp.get("/jobs")
def list_jobs():
    query = Job.query
    status = (request.args.get("status") or "").strip()
    if status:
        if status not in JOB_STATUSES:
            raise ValidationError("Invalid job status", {"status": f"must be one of {', '.join(JOB_STATUSES)}"})
        query = query.filter(Job.status == status)
    jobs = query.order_by(Job.created_at.desc()).all()
    return jsonify([job.to_dict() for job in jobs])


@jobs_bp.get("/jobs/status/<status>")
def jobs_by_status(status: str):
    if status not in JOB_STATUSES:
        raise ValidationError("Invalid job status", {"status": f"must be one of {', '.join(JOB_STATUSES)}"})
    jobs = Job.query.filter(Job.status == status).order_by(Job.scheduled_date.asc()).all()
    return jsonify([job.to_dict() for job in jobs])


@jobs_bp.get("/jobs/<job_id>")
def get_job(job_id: str):
    job = get_or_404(Job, job_id, "Job not found")
    return jsonify(job.to_dict())


@jobs_bp.post("/jobs")
def create_job():
    data = parse_payload(JobIn, json_body())
    _ensure_service_bay(data.get("service_bay_id"))
    if data.get("status") == "completed" and data.get("completed_date") is None:
        data["completed_date"] = datetime.now(timezone.utc).replace(tzinfo=None)

    job = Job(job_number=next_document_number("JOB"))
    _save_work(job, data, "job_parts", JobPart, is_new=True)
    return jsonify(job.to_dict()), 201


@jobs_bp.put("/jobs/<job_id>")
def update_job(job_id: str):
    job = get_or_404(Job, job_id, "Job not found")
    data = parse_payload(JobIn, json_body(), partial=True)
    _ensure_service_bay(data.get("service_bay_id"))
    if data.get("status") == "completed" and job.completed_date is None and "completed_date" not in data:
        data["completed_date"] = datetime.now(timezone.utc).replace(tzinfo=None)

    _save_work(job, data, "job_parts", JobPart, is_new=False)
    return jsonify(job.to_dict())


@jobs_bp.delete("/jobs/<job_id>")
def delete_job(job_id: str):
    """Delete a job together with its parts; receipts keep their number but lose the link."""
    job = get_or_404(Job, job_id, "Job not found")
    before = serialize_model(job)

    Receipt.query.filter_by(job_id=job.id).update({"job_id": None}, synchronize_session="fetch")
    db.session.delete(job)
    db.session.flush()

    log_action(job, DELETE, before=before)
    db.session.commit()
    return "", 204


# ----------------------------------------------------------------------
# JOB PARTS
# ----------------------------------------------------------------------
@jobs_bp.get("/jobs/<job_id>/parts")
def list_job_parts(job_id: str):
    job = get_or_404(Job, job_id, "Job not found")
    return jsonify([part.to_dict() for part in job.parts])


@jobs_bp.post("/jobs/<job_id>/parts")
def add_job_part(job_id: str):
    job = get_or_404(Job, job_id, "Job not found")
    line = parse_payload(PartLineIn, json_body())

    part = _build_part(JobPart, line, _next_line_no(job.parts), "jobPart")
    job.parts.append(part)
    db.session.flush()

    log_action(part, CREATE, after=serialize_model(part))
    _parent_recalc(job)
    db.session.commit()
    return jsonify(part.to_dict()), 201


@jobs_bp.put("/job-parts/<part_id>")
def update_job_part(part_id: str):
    """Partial update: the body is merged over the stored line and re-priced."""
    part = get_or_404(JobPart, part_id, "Job part not found")
    body = json_body()
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    current = {k: v for k, v in part.line_dict().items() if k not in ("id", "totalPrice")}
    line = parse_payload(PartLineIn, {**current, **body})
    before = serialize_model(part)

    apply_fields(part, _price_part(line, "jobPart"))
    db.session.flush()

    log_action(part, UPDATE, before=before, after=serialize_model(part))
    _parent_recalc(part.job)
    db.session.commit()
    return jsonify(part.to_dict())


@jobs_bp.delete("/job-parts/<part_id>")
def delete_job_part(part_id: str):
    part = get_or_404(JobPart, part_id, "Job part not found")
    job = part.job
    before = serialize_model(part)

    job.parts.remove(part)
    db.session.flush()

    log_action(part, DELETE, before=before)
    _parent_recalc(job)
    db.session.commit()
    return "", 204


# ----------------------------------------------------------------------
# QUOTES
# ----------------------------------------------------------------------
@jobs_bp.get("/quotes")
def list_quotes():
    query = Quote.query
    status = (request.args.get("status") or "").strip()
    if status:
        if status not in QUOTE_STATUSES:
            raise ValidationError("Invalid quote status", {"status": f"must be one of {', '.join(QUOTE_STATUSES)}"})
        query = query.filter(Quote.status == status)
    quotes = query.order_by(Quote.created_at.desc()).all()
    return jsonify([quote.to_dict() for quote in quotes])


@jobs_bp.get("/quotes/<quote_id>")
def get_quote(quote_id: str):
    quote = get_or_404(Quote, quote_id, "Quote not found")
    return jsonify(quote.to_dict())


@jobs_bp.post("/quotes")
def create_quote():
    data = parse_payload(QuoteIn, json_body())
    quote = Quote()
    _save_work(quote, data, "quote_parts", QuotePart, is_new=True)
    return jsonify(quote.to_dict()), 201


@jobs_bp.put("/quotes/<quote_id>")
def update_quote(quote_id: str):
    quote = get_or_404(Quote, quote_id, "Quote not found")
    data = parse_payload(QuoteIn, json_body(), partial=True)
    _save_work(quote, data, "quote_parts", QuotePart, is_new=False)
    return jsonify(quote.to_dict())


@jobs_bp.delete("/quotes/<quote_id>")
def delete_quote(quote_id: str):
    quote = get_or_404(Quote, quote_id, "Quote not found")
    before = serialize_model(quote)

    Receipt.query.filter_by(quote_id=quote.id).update({"quote_id": None}, synchronize_session="fetch")
    db.session.delete(quote)
    db.session.flush()

    log_action(quote, DELETE, before=before)
    db.session.commit()
    return "", 204
