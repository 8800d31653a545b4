import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./test.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    ENABLE_SENTRY = data.get("ENABLE_SENTRY", 0)
    DSN_SENTRY = data.get("DSN_SENTRY", "")
    SENTRY_ENVIRONMENT = data.get("SENTRY_ENVIRONMENT", "dev")
    AUTO_CREATE_TABLES = bool(data.get("AUTO_CREATE_TABLES", False))

    # Stripe
    STRIPE_SECRET_KEY = data.get("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET = data.get("STRIPE_WEBHOOK_SECRET", "")
    STRIPE_CURRENCY = data.get("STRIPE_CURRENCY", "vnd")
    CHECKOUT_EXPIRES_SECONDS = data.get("CHECKOUT_EXPIRES_SECONDS", 1800)  # 30 minutes

    # Top-up bounds (VND, 1 credit = 1 VND)
    MIN_TOPUP_AMOUNT = data.get("MIN_TOPUP_AMOUNT", 100_000)
    MAX_TOPUP_AMOUNT = data.get("MAX_TOPUP_AMOUNT", 10_000_000)

    # Webhook idempotency
    WEBHOOK_PROCESSED_TTL_SECONDS = data.get("WEBHOOK_PROCESSED_TTL_SECONDS", 7 * 24 * 3600)
    WEBHOOK_LOCK_TTL_SECONDS = data.get("WEBHOOK_LOCK_TTL_SECONDS", 60)
    IDEMPOTENCY_KEY_PREFIX = data.get("IDEMPOTENCY_KEY_PREFIX", "stripe_event:")

    # Alerts
    LOW_BALANCE_ALERT_COOLDOWN_HOURS = data.get("LOW_BALANCE_ALERT_COOLDOWN_HOURS", 24)
    EXPIRATION_ALERT_DAYS = data.get("EXPIRATION_ALERT_DAYS", 3)

    # Promotion lifecycle sweeps
    SWEEP_BATCH_SIZE = data.get("SWEEP_BATCH_SIZE", 100)
    AUTO_RENEWAL_WINDOW_MINUTES = data.get("AUTO_RENEWAL_WINDOW_MINUTES", 60)
    PROMOTION_LIFECYCLE_INTERVAL_SECONDS = data.get("PROMOTION_LIFECYCLE_INTERVAL_SECONDS", 3600)
    AUTO_RENEWAL_INTERVAL_SECONDS = data.get("AUTO_RENEWAL_INTERVAL_SECONDS", 900)
    CRON_SECRET = data.get("CRON_SECRET", "")

    # Email
    RESEND_API_KEY = data.get("RESEND_API_KEY", "")
    EMAIL_FROM = data.get("EMAIL_FROM", "")
    APP_URL = data.get("APP_URL", "http://localhost:3000")
    NOTIFICATION_WEBHOOK_URL = data.get("NOTIFICATION_WEBHOOK_URL", None)
    NOTIFICATION_MAX_ATTEMPTS = data.get("NOTIFICATION_MAX_ATTEMPTS", 5)
    NOTIFICATION_DISPATCH_INTERVAL_SECONDS = data.get("NOTIFICATION_DISPATCH_INTERVAL_SECONDS", 60)

    # Ledger Reconciliation
    RECONCILIATION_ENABLED = bool(data.get("RECONCILIATION_ENABLED", True))
    RECONCILIATION_INTERVAL_SECONDS = data.get("RECONCILIATION_INTERVAL_SECONDS", 86400)  # Daily
    RECONCILIATION_UNLINKED_GRACE_MINUTES = data.get("RECONCILIATION_UNLINKED_GRACE_MINUTES", 15)
