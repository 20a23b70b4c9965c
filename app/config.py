import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

APP_NAME = os.getenv("APP_NAME", "Playdoo")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./courtbook.db")
# Pool size applies to server databases only; queries slower than the threshold are logged
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_SLOW_QUERY_THRESHOLD = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Frontend base URL for links inside emails
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Booking policy
# Flat charge for moving a booking to another date (same-day time changes are free)
MODIFICATION_FEE = int(os.getenv("BOOKING_MODIFICATION_FEE", "50"))
# Bookings can only be modified or cancelled this many hours before they start
MODIFICATION_CUTOFF_HOURS = int(os.getenv("BOOKING_MODIFICATION_CUTOFF_HOURS", "24"))

# Redis / arq job queue
REDIS_URL = os.getenv("REDIS_URL")
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD")
REDIS_SSL = os.getenv("REDIS_SSL", "false").lower() == "true"
REDIS_DB = int(os.getenv("REDIS_EMAIL_DB", os.getenv("REDIS_DB", "0")))

EMAIL_QUEUE_NAME = os.getenv("EMAIL_QUEUE_NAME", "arq:email-queue")
EMAIL_MAX_TRIES = int(os.getenv("EMAIL_MAX_TRIES", "3"))
# Base delay (seconds) for exponential backoff between delivery attempts
EMAIL_RETRY_DELAY = int(os.getenv("EMAIL_RETRY_DELAY", "2"))
# Backlog thresholds used by the email health endpoint
EMAIL_QUEUE_MAX_FAILED = int(os.getenv("EMAIL_QUEUE_MAX_FAILED", "100"))
EMAIL_QUEUE_MAX_WAITING = int(os.getenv("EMAIL_QUEUE_MAX_WAITING", "1000"))

# Email delivery (worker side)
# SMTP is used when SMTP_HOST is set, Resend otherwise
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASS = os.getenv("SMTP_PASS")
SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
FROM_NAME = os.getenv("FROM_NAME", APP_NAME)
FROM_EMAIL = os.getenv("FROM_EMAIL", SMTP_USER or "noreply@playdoo.app")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", f"{FROM_NAME} <{FROM_EMAIL}>")
SUPPORT_EMAIL = os.getenv("SUPPORT_EMAIL", "support@playdoo.app")
