import os
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

# Database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR}/league.db")

# Security
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session_token")
SESSION_EXPIRE_DAYS = int(os.getenv("SESSION_EXPIRE_DAYS", "7"))

# Seeded admin account (in production, use environment variables)
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "password123")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

TRUTHY = {"1", "true", "yes", "on"}


def auto_approve_joins() -> bool:
    """Whether new join requests skip the PENDING state.

    Read on every call so a deployment can flip it without a restart.
    """
    return os.getenv("AUTO_APPROVE_JOINS", "false").strip().lower() in TRUTHY
