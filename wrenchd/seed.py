"""
wrenchd/seed.py

Seed default business settings and service bays.

Rules:
- Safe to run multiple times (idempotent).
- ensure_business_settings() is also called lazily by GET /api/settings/business,
  so a fresh database always has exactly one settings row.
"""

from __future__ import annotations

from flask import current_app

from .extensions import db
from .models import BusinessSettings, ServiceBay


DEFAULT_SERVICE_BAYS = [
    # name, description, color
    ("Bay 1", "General servicing", "#3B82F6"),
    ("Bay 2", "Diagnostics", "#22C55E"),
    ("MOT Bay", "MOT testing", "#F59E0B"),
]


def ensure_business_settings() -> BusinessSettings:
    """
    Return the settings row, creating it with defaults if missing.

    Adds to the session and flushes; the caller commits.
    """
    settings = BusinessSettings.query.order_by(BusinessSettings.updated_at.asc()).first()
    if settings is not None:
        return settings

    settings = BusinessSettings(
        business_name=current_app.config.get("APP_NAME"),
        currency=current_app.config.get("DEFAULT_CURRENCY", "GBP"),
    )
    db.session.add(settings)
    db.session.flush()
    return settings


def seed_defaults() -> None:
    """Create the settings row and default service bays if they don't exist."""
    ensure_business_settings()

    for idx, (name, description, color) in enumerate(DEFAULT_SERVICE_BAYS):
        exists = ServiceBay.query.filter_by(name=name).first()
        if exists:
            continue
        db.session.add(
            ServiceBay(
                name=name,
                description=description,
                color=color,
                is_active=True,
                sort_order=idx,
            )
        )

    db.session.commit()
