"""
wrenchd/blueprints/settings/__init__.py

Blueprint package export.

IMPORTANT:
- Must expose settings_bp for app factory registration.
- Keep import minimal to avoid side effects.
"""

from __future__ import annotations

from .routes import settings_bp  # noqa: F401
