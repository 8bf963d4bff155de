# agenda/config.py

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
IS_PRODUCTION = ENVIRONMENT == "production"

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./agenda.db")
DATABASE_ECHO = os.getenv("DATABASE_ECHO", "false").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Session signing key - no default in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
ALGORITHM = "HS256"

# Login sessions
SESSION_BACKEND = os.getenv("SESSION_BACKEND", "database")  # database or memory
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "agenda_session")
SESSION_TTL_DAYS = int(os.getenv("SESSION_TTL_DAYS", "7"))

# Email verification
VERIFICATION_CODE_TTL_MINUTES = int(os.getenv("VERIFICATION_CODE_TTL_MINUTES", "15"))

# Public booking page time picker granularity
SLOT_MINUTES = int(os.getenv("SLOT_MINUTES", "30"))

# Resend email delivery; sends are only logged when the key is missing
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "AgendaFacil <noreply@agendafacil.com>")
APP_NAME = os.getenv("APP_NAME", "AgendaFacil")
