"""
wrenchd/__init__.py

Flask application factory for the WRENCH'D workshop back office.

- JSON API only; the SPA is served separately and talks to /api/*.
- SQLite for development, any SQLAlchemy URL via DATABASE_URL (migrations via Flask-Migrate).
- Mutating requests carry a CSRF token (GET /api/csrf-token, echoed in X-CSRFToken).
"""

from __future__ import annotations

import logging

import click
from flask import Flask, jsonify
from flask_wtf.csrf import generate_csrf

from .errors import register_error_handlers
from .extensions import csrf, db, migrate

# Blueprint imports kept inside create_app() to reduce import side effects.


def _configure_logging(app: Flask) -> None:
    """Attach one stream handler to the package logger (idempotent across app instances)."""
    logger = logging.getLogger("wrenchd")
    logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        logger.addHandler(handler)


def create_app(config_object: str | object = "config.Config") -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    _configure_logging(app)

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    register_error_handlers(app)

    # ----------------------------------------------------------------------
    # Blueprints
    # ----------------------------------------------------------------------
    from .blueprints.customers import customers_bp
    from .blueprints.dashboard import dashboard_bp
    from .blueprints.documents import documents_bp
    from .blueprints.inventory import inventory_bp
    from .blueprints.jobs import jobs_bp
    from .blueprints.procurement import procurement_bp
    from .blueprints.settings import settings_bp

    app.register_blueprint(customers_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(jobs_bp)
    app.register_blueprint(procurement_bp)
    app.register_blueprint(documents_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(dashboard_bp)

    @app.get("/api/csrf-token")
    def csrf_token():
        """Token for the SPA to send back in the X-CSRFToken header."""
        return jsonify({"csrfToken": generate_csrf()})

    # ----------------------------------------------------------------------
    # CLI
    # ----------------------------------------------------------------------
    @app.cli.command("seed")
    def seed_command():
        """Seed business settings and default service bays."""
        from .seed import seed_defaults

        seed_defaults()
        click.echo("Default settings and service bays seeded.")

    # ----------------------------------------------------------------------
    # Health
    # ----------------------------------------------------------------------
    @app.get("/")
    def index():
        return jsonify({"name": app.config.get("APP_NAME"), "status": "ok"})

    return app
