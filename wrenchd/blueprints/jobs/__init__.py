"""
wrenchd/blueprints/jobs/__init__.py

Blueprint package export.

IMPORTANT:
- Must expose jobs_bp for app factory registration.
- Keep import minimal to avoid side effects.
"""

from __future__ import annotations

from .routes import jobs_bp  # noqa: F401
