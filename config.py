"""
Application configuration.
This module defines the configuration settings for the workshop back office, including database connection,
secret key, pricing constants and logging. It uses environment variables for sensitive information and defaults
for development. In production, make sure to set the appropriate environment variables and secure the secret key.
"""

import os
from decimal import Decimal
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Base configuration shared by all environments."""

    # IMPORTANT: change this in production
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me-please")

    # Database: SQLite for development (simple file in project folder)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'wrenchd.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # CSRF protection for mutating API calls (SPA sends X-CSRFToken)
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = None

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Pricing
    TAX_RATE = Decimal("0.20")
    TOTALS_TOLERANCE = Decimal("0.01")

    # Inventory
    DEFAULT_LOW_STOCK_THRESHOLD = 5

    # Business defaults (used when settings row is first created)
    APP_NAME = "WRENCH'D Auto Repairs"
    DEFAULT_CURRENCY = "GBP"


class TestingConfig(Config):
    """In-memory database, no CSRF."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    WTF_CSRF_ENABLED = False
    LOG_LEVEL = "WARNING"
