import os

from dotenv import find_dotenv, load_dotenv

# Values from a .env file in the working directory apply before any constant below is read.
load_dotenv(find_dotenv(usecwd=True))


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic.db")
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:4200"])

# Search windows used by the scheduling engine, in minutes.
DEFAULT_MAX_TIME_SHIFT_MINUTES = _get_int(os.getenv("DEFAULT_MAX_TIME_SHIFT_MINUTES"), 60)
RESOLVE_GET_MAX_TIME_SHIFT_MINUTES = _get_int(os.getenv("RESOLVE_GET_MAX_TIME_SHIFT_MINUTES"), 120)
SUGGESTION_STEP_MINUTES = _get_int(os.getenv("SUGGESTION_STEP_MINUTES"), 30)
RESOLVER_STEP_MINUTES = _get_int(os.getenv("RESOLVER_STEP_MINUTES"), 15)
OPEN_SLOT_STEP_MINUTES = _get_int(os.getenv("OPEN_SLOT_STEP_MINUTES"), 15)
DAY_STATUS_SLOT_MINUTES = _get_int(os.getenv("DAY_STATUS_SLOT_MINUTES"), 60)

MIN_SESSION_DURATION_MINUTES = _get_int(os.getenv("MIN_SESSION_DURATION_MINUTES"), 15)
MAX_SESSION_DURATION_MINUTES = _get_int(os.getenv("MAX_SESSION_DURATION_MINUTES"), 480)
MAX_TIME_SHIFT_LIMIT_MINUTES = _get_int(os.getenv("MAX_TIME_SHIFT_LIMIT_MINUTES"), 480)

BOOKING_MAX_ATTEMPTS = _get_int(os.getenv("BOOKING_MAX_ATTEMPTS"), 2)

def validate_runtime_config() -> None:
    step_settings = {
        "SUGGESTION_STEP_MINUTES": SUGGESTION_STEP_MINUTES,
        "RESOLVER_STEP_MINUTES": RESOLVER_STEP_MINUTES,
        "OPEN_SLOT_STEP_MINUTES": OPEN_SLOT_STEP_MINUTES,
        "DAY_STATUS_SLOT_MINUTES": DAY_STATUS_SLOT_MINUTES,
    }
    for name, value in step_settings.items():
        if value <= 0:
            raise RuntimeError(f"{name} must be a positive number of minutes.")

    if BOOKING_MAX_ATTEMPTS < 1:
        raise RuntimeError("BOOKING_MAX_ATTEMPTS must be at least 1.")

    if MIN_SESSION_DURATION_MINUTES > MAX_SESSION_DURATION_MINUTES:
        raise RuntimeError("MIN_SESSION_DURATION_MINUTES cannot exceed MAX_SESSION_DURATION_MINUTES.")
