"""
wrenchd/audit.py

Audit logging helpers.

Goals:
- Record WHAT changed on WHICH entity, with BEFORE/AFTER column snapshots.
- Store the caller's IP address for traceability.

IMPORTANT:
- This helper ADDS AuditLog entries to the current SQLAlchemy session.
  The calling route controls transaction boundaries (commit/rollback), so an
  audit row is persisted exactly when the mutation it describes is.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from flask import has_request_context, request

from .extensions import db
from .models import AuditLog

CREATE = "CREATE"
UPDATE = "UPDATE"
DELETE = "DELETE"
APPROVE = "APPROVE"
STATUS = "STATUS"


def _safe_str(value: Any) -> Optional[str]:
    """
    Convert a column value to a stable string for JSON storage.

    Decimal("12.50") -> "12.50", datetime -> isoformat, None stays None.
    """
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, sort_keys=True)
    return str(value)


def serialize_model(instance: Any) -> Dict[str, Optional[str]]:
    """
    Snapshot a model instance's scalar columns (relationships are not followed).
    """
    data: Dict[str, Optional[str]] = {}
    for column in instance.__table__.columns:
        data[column.name] = _safe_str(getattr(instance, column.key))
    return data


def log_action(
    entity: Any,
    action: str,
    *,
    before: Optional[Dict[str, Any]] = None,
    after: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Add an AuditLog entry to the current db session.

    Parameters:
        entity: model instance with an id (flush first for new rows)
        action: CREATE / UPDATE / DELETE / APPROVE / STATUS
        before: snapshot from serialize_model() before the change (optional)
        after:  snapshot after the change (optional)
    """
    entity_id = getattr(entity, "id", None)
    if entity_id is None:
        raise ValueError("log_action entity must have an 'id' attribute (after flush).")

    entry = AuditLog(
        entity_type=entity.__class__.__name__,
        entity_id=str(entity_id),
        action=str(action),
        before_data=json.dumps(before, ensure_ascii=False) if before else None,
        after_data=json.dumps(after, ensure_ascii=False) if after else None,
        ip_address=request.remote_addr if has_request_context() else None,
    )
    db.session.add(entry)
    return entry
