"""
wrenchd/blueprints/dashboard/__init__.py

Blueprint package export.

IMPORTANT:
- Must expose dashboard_bp for app factory registration.
- Keep import minimal to avoid side effects.
"""

from __future__ import annotations

from .routes import dashboard_bp  # noqa: F401
