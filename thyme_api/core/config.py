import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
DEBUG = _get_bool(os.getenv("DEBUG"), default=False)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

API_PREFIX = os.getenv("API_PREFIX", "/api")
CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:3000"])

AIRTABLE_API_KEY = os.getenv("AIRTABLE_API_KEY", "")
AIRTABLE_BASE_ID = os.getenv("AIRTABLE_BASE_ID", "")
AIRTABLE_API_URL = os.getenv("AIRTABLE_API_URL", "https://api.airtable.com/v0")
AIRTABLE_TIMEOUT_SECONDS = float(os.getenv("AIRTABLE_TIMEOUT_SECONDS", "10"))

# "airtable" or "memory"
RECORD_STORE = os.getenv("RECORD_STORE", "airtable").strip().lower()

HOME_TIMEZONE = os.getenv("HOME_TIMEZONE", "America/Denver")
ADVISORS = _get_list(os.getenv("ADVISORS"), ["Heidi Lynn", "Illiana"])

SLOT_DURATION_MINUTES = int(os.getenv("SLOT_DURATION_MINUTES", "60"))
BUSINESS_START_HOUR = int(os.getenv("BUSINESS_START_HOUR", "9"))
BUSINESS_END_HOUR = int(os.getenv("BUSINESS_END_HOUR", "17"))

BOOKED_DATES_CACHE_SECONDS = int(os.getenv("BOOKED_DATES_CACHE_SECONDS", "300"))
STORE_MAX_WORKERS = int(os.getenv("STORE_MAX_WORKERS", "4"))

def validate_runtime_config() -> None:
    if RECORD_STORE not in {"airtable", "memory"}:
        raise RuntimeError(f"RECORD_STORE must be 'airtable' or 'memory', got {RECORD_STORE!r}.")
    if APP_ENV.lower() == "production" and RECORD_STORE == "memory":
        raise RuntimeError("RECORD_STORE=memory is not allowed in production.")
    try:
        ZoneInfo(HOME_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise RuntimeError(f"HOME_TIMEZONE {HOME_TIMEZONE!r} is not a known IANA timezone.") from exc
    if not 0 <= BUSINESS_START_HOUR < BUSINESS_END_HOUR <= 24:
        raise RuntimeError("BUSINESS_START_HOUR must be before BUSINESS_END_HOUR, both within 0-24.")
    if SLOT_DURATION_MINUTES <= 0:
        raise RuntimeError("SLOT_DURATION_MINUTES must be positive.")
    if not ADVISORS:
        raise RuntimeError("ADVISORS must name at least one advisor.")
