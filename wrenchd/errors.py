"""
wrenchd/errors.py

Error taxonomy and JSON error handlers.

- ValidationError       -> 400 (payload rejected, bad line item, totals mismatch)
- NotFoundError         -> 404 (missing id)
- StateTransitionError  -> 409 (illegal status change, e.g. re-approving an order)
- anything else         -> 500 with a generic message (details go to the log only)

IMPORTANT:
- Domain code raises these; it never builds HTTP responses itself.
- The 500 handler rolls back the session so a half-applied unit of work is never committed.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Flask, jsonify
from flask_wtf.csrf import CSRFError
from werkzeug.exceptions import HTTPException

from .extensions import db

logger = logging.getLogger(__name__)


class WrenchdError(Exception):
    """Base class for errors that map to a client-visible HTTP status."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"message": self.message}
        if self.details:
            payload["errors"] = self.details
        return payload


class ValidationError(WrenchdError):
    status_code = 400


class NotFoundError(WrenchdError):
    status_code = 404


class StateTransitionError(WrenchdError):
    status_code = 409


def register_error_handlers(app: Flask) -> None:
    """Attach JSON error handlers to the app."""

    @app.errorhandler(WrenchdError)
    def _handle_domain_error(exc: WrenchdError):
        db.session.rollback()
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(CSRFError)
    def _handle_csrf_error(exc: CSRFError):
        return jsonify({"message": exc.description or "CSRF token missing or invalid"}), 400

    @app.errorhandler(HTTPException)
    def _handle_http_error(exc: HTTPException):
        return jsonify({"message": exc.description or exc.name}), exc.code or 500

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        logger.exception("Unhandled error")
        db.session.rollback()
        return jsonify({"message": "Internal server error"}), 500
