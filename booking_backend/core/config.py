import os



def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


def _get_time_of_day(value: str | None, default: str) -> int:
    raw = (value or default).strip()
    hours, minutes = raw.split(":")
    return int(hours) * 60 + int(minutes)


def _get_list(value: str | None, default: str) -> list[str]:
    return [item.strip() for item in (value or default).split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
DEBUG = _get_bool(os.getenv("DEBUG"), default=False)

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), "http://localhost:3000")

MINUTES_PER_DAY = 24 * 60

SLOT_GRANULARITY_MINUTES = _get_int(os.getenv("SLOT_GRANULARITY_MINUTES"), 30)
DEFAULT_BUSINESS_HOURS_START = _get_time_of_day(os.getenv("DEFAULT_BUSINESS_HOURS_START"), "09:00")
DEFAULT_BUSINESS_HOURS_END = _get_time_of_day(os.getenv("DEFAULT_BUSINESS_HOURS_END"), "17:30")
DEFAULT_APPOINTMENT_DURATION_MINUTES = _get_int(os.getenv("DEFAULT_APPOINTMENT_DURATION_MINUTES"), 60)
BOOKING_COMMIT_MAX_ATTEMPTS = _get_int(os.getenv("BOOKING_COMMIT_MAX_ATTEMPTS"), 5)
MAX_APPOINTMENT_NOTES_LENGTH = 600

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if SLOT_GRANULARITY_MINUTES <= 0 or MINUTES_PER_DAY % SLOT_GRANULARITY_MINUTES != 0:
        raise RuntimeError("SLOT_GRANULARITY_MINUTES must be a positive divisor of 1440.")
    if not 0 <= DEFAULT_BUSINESS_HOURS_START < DEFAULT_BUSINESS_HOURS_END <= MINUTES_PER_DAY:
        raise RuntimeError("DEFAULT_BUSINESS_HOURS_START must be before DEFAULT_BUSINESS_HOURS_END.")
    if DEFAULT_APPOINTMENT_DURATION_MINUTES <= 0:
        raise RuntimeError("DEFAULT_APPOINTMENT_DURATION_MINUTES must be positive.")
    if BOOKING_COMMIT_MAX_ATTEMPTS <= 0:
        raise RuntimeError("BOOKING_COMMIT_MAX_ATTEMPTS must be positive.")
