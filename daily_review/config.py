"""Centralized environment configuration with timezone support."""
import os
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

# App timezone setting - defaults to China Standard Time
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Asia/Shanghai")

SECRET_KEY = os.getenv("SECRET_KEY", "your-super-secret-key-change-in-production-min-32-chars")
SESSION_EXPIRE_MINUTES = int(os.getenv("SESSION_EXPIRE_MINUTES", str(60 * 24 * 7)))

# Accounts are keyed by a synthetic email derived from the username
USER_EMAIL_DOMAIN = os.getenv("USER_EMAIL_DOMAIN", "review.app")

REVIEW_MODEL = os.getenv("REVIEW_MODEL", "claude-3-7-sonnet-20250219")
REVIEW_MAX_TOKENS = 2000
REVIEW_TEMPERATURE = 0.7

DEBUG = os.getenv("DEBUG", "false").lower() == "true"


def get_admin_api_key() -> str:
    """Admin key for invite management. Empty means the admin API is closed."""
    return os.getenv("ADMIN_API_KEY", "")


def get_anthropic_api_key() -> str:
    return os.getenv("ANTHROPIC_API_KEY", "")


def get_app_tz() -> ZoneInfo:
    """Get the application timezone."""
    return ZoneInfo(APP_TIMEZONE)


def local_today():
    """Today's date in the app timezone."""
    return datetime.now(get_app_tz()).date()


def to_epoch_ms(dt: datetime) -> int:
    """Convert a stored datetime to epoch milliseconds.

    Naive datetimes are assumed to be UTC, which is how the models store them.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def from_epoch_ms(ms: int) -> datetime:
    """Convert epoch milliseconds to a naive UTC datetime for storage."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).replace(tzinfo=None)
