"""
wrenchd/blueprints/documents/routes.py

Printable documents and receipts.

- POST /api/generate-pdf {type, id} returns {success, data}; the browser renders the PDF.
  For type "receipt" the id is a job id: the job's receipt row (RCP-...) is created on
  first use so reprints keep the same number.
- Receipts can be archived; archived receipts are hidden unless ?archived=true.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from flask import Blueprint, jsonify, request

from ...audit import CREATE, UPDATE, log_action, serialize_model
from ...documents import assemble_document
from ...extensions import db
from ...models import Job, PurchaseOrder, Quote, Receipt, Return
from ...schemas import GeneratePdfIn, parse_payload
from ...seed import ensure_business_settings
from ...utils import get_or_404, json_body, next_document_number

documents_bp = Blueprint("documents", __name__, url_prefix="/api")


def _receipt_for_job(job_id: str) -> Optional[Receipt]:
    job = db.session.get(Job, job_id)
    if job is None:
        return None

    receipt = Receipt.query.filter_by(job_id=job.id, type="job").first()
    if receipt is None:
        receipt = Receipt(job_id=job.id, type="job", receipt_number=next_document_number("RCP"))
        db.session.add(receipt)
        db.session.flush()
        log_action(receipt, CREATE, after=serialize_model(receipt))
    return receipt


@documents_bp.post("/generate-pdf")
def generate_pdf():
    payload = parse_payload(GeneratePdfIn, json_body())

    loaders = {
        "purchase-order": lambda doc_id: db.session.get(PurchaseOrder, doc_id),
        "return": lambda doc_id: db.session.get(Return, doc_id),
        "quote": lambda doc_id: db.session.get(Quote, doc_id),
        "receipt": _receipt_for_job,
    }
    business = ensure_business_settings().to_dict()

    data = assemble_document(payload["type"], payload["id"], loaders, business=business)
    db.session.commit()
    return jsonify({"success": True, "data": data})


@documents_bp.get("/receipts")
def list_receipts():
    archived = (request.args.get("archived") or "").strip().lower() in ("1", "true", "yes")
    receipts = (
        Receipt.query.filter(Receipt.archived.is_(archived))
        .order_by(Receipt.created_at.desc())
        .all()
    )
    return jsonify([r.to_dict() for r in receipts])


@documents_bp.post("/receipts/<receipt_id>/archive")
def archive_receipt(receipt_id: str):
    receipt = get_or_404(Receipt, receipt_id, "Receipt not found")
    if not receipt.archived:
        before = serialize_model(receipt)
        receipt.archived = True
        receipt.archived_at = datetime.now(timezone.utc).replace(tzinfo=None)
        db.session.flush()
        log_action(receipt, UPDATE, before=before, after=serialize_model(receipt))
        db.session.commit()
    return jsonify(receipt.to_dict())
