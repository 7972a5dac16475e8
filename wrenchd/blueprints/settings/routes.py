"""
wrenchd/blueprints/settings/routes.py

Settings & presentation master data.

Scope:
- Business settings (single row, created with defaults on first read)
- Custom document templates (at most one active per template type)
- Service bays (calendar columns)

AUDIT:
- CREATE/UPDATE/DELETE is audited via wrenchd/audit.py.
"""

from __future__ import annotations

from typing import get_args

from flask import Blueprint, jsonify, request

from ...audit import CREATE, DELETE, UPDATE, log_action, serialize_model
from ...errors import NotFoundError, ValidationError
from ...extensions import db
from ...models import CustomTemplate, Job, ServiceBay
from ...schemas import BusinessSettingsIn, CustomTemplateIn, ServiceBayIn, TemplateType, parse_payload
from ...seed import ensure_business_settings
from ...utils import apply_fields, get_or_404, json_body

settings_bp = Blueprint("settings", __name__, url_prefix="/api")

TEMPLATE_TYPES = get_args(TemplateType)


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _validate_template_type(template_type: str) -> None:
    if template_type not in TEMPLATE_TYPES:
        raise ValidationError(
            "Invalid template type",
            {"templateType": f"must be one of {', '.join(TEMPLATE_TYPES)}"},
        )


def _deactivate_others(template: CustomTemplate) -> None:
    """Clear is_active on every other template of the same type (same transaction)."""
    others = CustomTemplate.query.filter(
        CustomTemplate.template_type == template.template_type,
        CustomTemplate.id != template.id,
        CustomTemplate.is_active.is_(True),
    ).all()
    for other in others:
        before = serialize_model(other)
        other.is_active = False
        log_action(other, UPDATE, before=before, after=serialize_model(other))


def _ensure_unique_bay_name(name: str, current_id: str | None = None) -> None:
    existing = ServiceBay.query.filter_by(name=name).first()
    if existing is not None and existing.id != current_id:
        raise ValidationError("Invalid request data", {"name": "a service bay with this name already exists"})


# ----------------------------------------------------------------------
# BUSINESS SETTINGS
# ----------------------------------------------------------------------
@settings_bp.get("/settings/business")
def get_business_settings():
    settings = ensure_business_settings()
    db.session.commit()
    return jsonify(settings.to_dict())


@settings_bp.put("/settings/business")
def update_business_settings():
    data = parse_payload(BusinessSettingsIn, json_body(), partial=True)
    if data.get("currency") is None:
        data.pop("currency", None)
    else:
        data["currency"] = data["currency"].upper()

    settings = ensure_business_settings()
    before = serialize_model(settings)

    apply_fields(settings, data)
    db.session.flush()

    log_action(settings, UPDATE, before=before, after=serialize_model(settings))
    db.session.commit()
    return jsonify(settings.to_dict())


# ----------------------------------------------------------------------
# CUSTOM TEMPLATES
# ----------------------------------------------------------------------
@settings_bp.get("/templates")
def list_templates():
    query = CustomTemplate.query
    template_type = (request.args.get("type") or "").strip()
    if template_type:
        _validate_template_type(template_type)
        query = query.filter(CustomTemplate.template_type == template_type)
    templates = query.order_by(CustomTemplate.template_type.asc(), CustomTemplate.name.asc()).all()
    return jsonify([t.to_dict() for t in templates])


@settings_bp.get("/templates/active/<template_type>")
def active_template(template_type: str):
    _validate_template_type(template_type)
    template = CustomTemplate.query.filter_by(template_type=template_type, is_active=True).first()
    if template is None:
        raise NotFoundError("No active template for this type")
    return jsonify(template.to_dict())


@settings_bp.post("/templates")
def create_template():
    data = parse_payload(CustomTemplateIn, json_body())

    template = CustomTemplate()
    apply_fields(template, data)
    db.session.add(template)
    db.session.flush()

    if template.is_active:
        _deactivate_others(template)

    log_action(template, CREATE, after=serialize_model(template))
    db.session.commit()
    return jsonify(template.to_dict()), 201


@settings_bp.put("/templates/<template_id>")
def update_template(template_id: str):
    template = get_or_404(CustomTemplate, template_id, "Template not found")
    data = parse_payload(CustomTemplateIn, json_body(), partial=True)
    before = serialize_model(template)

    apply_fields(template, data)
    db.session.flush()

    if template.is_active:
        _deactivate_others(template)

    log_action(template, UPDATE, before=before, after=serialize_model(template))
    db.session.commit()
    return jsonify(template.to_dict())


@settings_bp.post("/templates/<template_id>/activate")
def activate_template(template_id: str):
    template = get_or_404(CustomTemplate, template_id, "Template not found")
    before = serialize_model(template)

    template.is_active = True
    _deactivate_others(template)
    db.session.flush()

    log_action(template, UPDATE, before=before, after=serialize_model(template))
    db.session.commit()
    return jsonify(template.to_dict())


@settings_bp.delete("/templates/<template_id>")
def delete_template(template_id: str):
    template = get_or_404(CustomTemplate, template_id, "Template not found")
    before = serialize_model(template)

    db.session.delete(template)
    db.session.flush()

    log_action(template, DELETE, before=before)
    db.session.commit()
    return "", 204


# ----------------------------------------------------------------------
# SERVICE BAYS
# ----------------------------------------------------------------------
@settings_bp.get("/service-bays")
def list_service_bays():
    query = ServiceBay.query
    if (request.args.get("active") or "").strip().lower() in ("1", "true", "yes"):
        query = query.filter(ServiceBay.is_active.is_(True))
    bays = query.order_by(ServiceBay.sort_order.asc(), ServiceBay.name.asc()).all()
    return jsonify([b.to_dict() for b in bays])


@settings_bp.post("/service-bays")
def create_service_bay():
    data = parse_payload(ServiceBayIn, json_body())
    _ensure_unique_bay_name(data["name"])

    bay = ServiceBay()
    apply_fields(bay, data)
    db.session.add(bay)
    db.session.flush()

    log_action(bay, CREATE, after=serialize_model(bay))
    db.session.commit()
    return jsonify(bay.to_dict()), 201


@settings_bp.put("/service-bays/<bay_id>")
def update_service_bay(bay_id: str):
    bay = get_or_404(ServiceBay, bay_id, "Service bay not found")
    data = parse_payload(ServiceBayIn, json_body(), partial=True)
    if data.get("name"):
        _ensure_unique_bay_name(data["name"], bay.id)
    before = serialize_model(bay)

    apply_fields(bay, data)
    db.session.flush()

    log_action(bay, UPDATE, before=before, after=serialize_model(bay))
    db.session.commit()
    return jsonify(bay.to_dict())


@settings_bp.delete("/service-bays/<bay_id>")
def delete_service_bay(bay_id: str):
    """Delete a bay; jobs scheduled into it become unassigned."""
    bay = get_or_404(ServiceBay, bay_id, "Service bay not found")
    before = serialize_model(bay)

    Job.query.filter_by(service_bay_id=bay.id).update({"service_bay_id": None}, synchronize_session="fetch")
    db.session.delete(bay)
    db.session.flush()

    log_action(bay, DELETE, before=before)
    db.session.commit()
    return "", 204
