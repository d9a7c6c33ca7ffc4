"""
Notify Engine Configuration

Configuration class for the notification dispatch and scheduling engine.
"""
import os
from pathlib import Path
from urllib.parse import quote_plus
from dotenv import load_dotenv

# Load .env file from project root
_env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(_env_path)


class Config:
    """Configuration class for Notify Engine API"""

    # Base paths
    BASE_DIR = Path(__file__).parent.parent.parent
    MIGRATIONS_DIR = Path(__file__).parent / "migrations"

    # Database settings
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME", "notify")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")

    # API settings
    API_HOST = os.getenv("API_HOST", "127.0.0.1")
    API_PORT = int(os.getenv("API_PORT", "8100"))

    # JWT settings (tokens are issued by the identity service, only verified here)
    JWT_SECRET = os.getenv("JWT_SECRET", "notify-secret-key-change-in-production")
    JWT_ALGORITHM = "HS256"

    # Scheduler settings
    SCHEDULER_POLL_INTERVAL = os.getenv("SCHEDULER_POLL_INTERVAL", "30")
    SCHEDULER_BATCH_SIZE = int(os.getenv("SCHEDULER_BATCH_SIZE", "50"))
    SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"

    # Queue retry policy (0 delay = eligible again on the next sweep)
    QUEUE_MAX_RETRIES = int(os.getenv("QUEUE_MAX_RETRIES", "3"))
    QUEUE_RETRY_DELAY_SECONDS = float(os.getenv("QUEUE_RETRY_DELAY_SECONDS", "0"))
    QUEUE_RETRY_BACKOFF = float(os.getenv("QUEUE_RETRY_BACKOFF", "1"))

    # Template / channel cache
    CACHE_TTL_SECONDS = float(os.getenv("CACHE_TTL_SECONDS", "300"))

    # Preference evaluation
    QUIET_HOURS_TIMEZONE = os.getenv("QUIET_HOURS_TIMEZONE", "")

    # Delivery log
    CONTENT_PREVIEW_LENGTH = int(os.getenv("CONTENT_PREVIEW_LENGTH", "100"))

    # Email transport: 'smtp' or 'resend'
    EMAIL_PROVIDER = os.getenv("EMAIL_PROVIDER", "smtp").lower()
    FROM_EMAIL = os.getenv("FROM_EMAIL", "noreply@example.com")
    FROM_NAME = os.getenv("FROM_NAME", "Subscriptions")

    # SMTP
    SMTP_HOST = os.getenv("SMTP_HOST", "")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER = os.getenv("SMTP_USER", "")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")

    # Resend HTTP API
    RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
    RESEND_API_URL = os.getenv("RESEND_API_URL", "https://api.resend.com/emails")

    @staticmethod
    def get_postgres_dsn() -> str:
        """Get PostgreSQL DSN with password handling"""
        dsn = os.getenv("POSTGRES_DSN")
        if dsn:
            return dsn
        if Config.DB_PASSWORD:
            password = quote_plus(Config.DB_PASSWORD)
            return f"postgresql://{Config.DB_USER}:{password}@{Config.DB_HOST}:{Config.DB_PORT}/{Config.DB_NAME}"
        return f"postgresql://{Config.DB_USER}@{Config.DB_HOST}:{Config.DB_PORT}/{Config.DB_NAME}"
