# backend/expense_tracker/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the working directory by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///expenses.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JSON request bodies are capped at 1 MiB
    MAX_CONTENT_LENGTH = 1 << 20

    # Sessions
    SESSION_COOKIE_NAME_AUTH = "session_token"
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))

    # Password hashing work factor
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Recurring expense materializer
    RECURRING_SCHEDULER_ENABLED = _env_bool("RECURRING_SCHEDULER_ENABLED", False)
    RECURRING_INTERVAL_HOURS = int(os.environ.get("RECURRING_INTERVAL_HOURS", "24"))

    # Expense listing pagination
    EXPENSE_PAGE_DEFAULT = 10
    EXPENSE_PAGE_MAX = 100

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    BCRYPT_ROUNDS = 4
    RECURRING_SCHEDULER_ENABLED = False
