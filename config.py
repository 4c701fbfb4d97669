import os
from decimal import Decimal

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to app.py as repairdesk.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "repairdesk.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Commission policy for cash-on-delivery jobs
    COMMISSION_RATE = Decimal(os.getenv("COMMISSION_RATE", "0.10"))
    COMMISSION_DUE_DAYS = int(os.getenv("COMMISSION_DUE_DAYS", "7"))
    DEFAULT_COLLECTION_METHOD = os.getenv("DEFAULT_COLLECTION_METHOD", "upi")

    # Admin endpoints (header X-Admin-Token); unset disables admin routes
    ADMIN_API_TOKEN = os.getenv("ADMIN_API_TOKEN")

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    # Stripe (commission payoff by providers)
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
    STRIPE_SUCCESS_URL = os.getenv("STRIPE_SUCCESS_URL")
    STRIPE_CANCEL_URL = os.getenv("STRIPE_CANCEL_URL")
    STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "inr")

    # Basic app settings
    DEBUG = False
