"""
Utility functions shared by the API blueprints. This includes:
- json_body / get_or_404: request parsing and lookups that raise domain errors.
- apply_fields: copy parsed payload fields onto a model instance.
- next_document_number: human-facing numbers for jobs, orders, returns and receipts.
- unit_of_work: the SQL unit of work bound to the request session.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable

from flask import current_app, request

from .errors import NotFoundError
from .extensions import db
from .repositories.sql import SqlUnitOfWork


def json_body() -> Any:
    """Parsed JSON body, or None when the body is missing or not JSON."""
    return request.get_json(silent=True)


def get_or_404(model, record_id: str, message: str):
    record = db.session.get(model, record_id)
    if record is None:
        raise NotFoundError(message)
    return record


def apply_fields(instance: Any, data: Dict[str, Any], exclude: Iterable[str] = ()) -> None:
    """Set every key of `data` (snake_case) on `instance`, skipping `exclude`."""
    skip = set(exclude)
    for key, value in data.items():
        if key in skip:
            continue
        setattr(instance, key, value)


def next_document_number(prefix: str) -> str:
    """
    e.g. JOB-20240315-4F2A9C

    The unique constraint on the number column rejects collisions.
    """
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d")
    return f"{prefix}-{stamp}-{uuid.uuid4().hex[:6].upper()}"


def unit_of_work() -> SqlUnitOfWork:
    return SqlUnitOfWork(db.session)


def tax_rate():
    return current_app.config["TAX_RATE"]


def totals_tolerance():
    return current_app.config["TOTALS_TOLERANCE"]
