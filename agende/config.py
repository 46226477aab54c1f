"""Configuration for the booking service.

Business policy (work day, slot granularity) and integration settings are
read from the environment once at import time. Modify the .env file, not code.
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Storage
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///agende.db")
SEED_PROCEDURES = _env_bool("SEED_PROCEDURES", False)

# Admin login (single credential pair)
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
SESSION_MAX_AGE_HOURS = _env_int("SESSION_MAX_AGE_HOURS", 48)

# Scheduling policy
WORK_DAY_START_HOUR = _env_int("WORK_DAY_START_HOUR", 6)
WORK_DAY_END_HOUR = _env_int("WORK_DAY_END_HOUR", 20)
SLOT_STEP_MINUTES = _env_int("SLOT_STEP_MINUTES", 30)
TIMEZONE = os.getenv("TIMEZONE", "America/Sao_Paulo")

# Google Calendar
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
GOOGLE_OAUTH_REDIRECT_URI = os.getenv(
    "GOOGLE_OAUTH_REDIRECT_URI",
    "http://localhost:8000/api/v1/calendar/google/callback"
)
GOOGLE_CALENDAR_ID = os.getenv("GOOGLE_CALENDAR_ID", "primary")
GOOGLE_TOKEN_PATH = os.getenv("GOOGLE_TOKEN_PATH", "tokens/google_calendar.json")
APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:9003")

# AI suggestions
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
SUGGESTION_MODEL = os.getenv("SUGGESTION_MODEL", "gpt-4o-mini")

# HTTP
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:9003").split(",")
    if origin.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
