# backend/tillpoint/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/tillpoint.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///tillpoint.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Snapshot store: driver busy timeout and write attempts before PersistenceFailure
    STORE_TIMEOUT_SECONDS = float(os.environ.get("STORE_TIMEOUT_SECONDS", "5"))
    STORE_WRITE_ATTEMPTS = int(os.environ.get("STORE_WRITE_ATTEMPTS", "3"))

    # Upper bound on waiting for a product lock during checkout
    LOCK_TIMEOUT_SECONDS = float(os.environ.get("LOCK_TIMEOUT_SECONDS", "10"))

    # Create tables and seed default collections inside create_app()
    AUTO_INIT = os.environ.get("TILLPOINT_AUTO_INIT", "1") == "1"

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
    SESSION_IDLE_MINUTES = int(os.environ.get("SESSION_IDLE_MINUTES", "120"))

    # Optional advisory service; empty URL disables it
    ADVISOR_API_URL = os.environ.get("ADVISOR_API_URL", "")
    ADVISOR_API_KEY = os.environ.get("ADVISOR_API_KEY", "")
    ADVISOR_MODEL = os.environ.get("ADVISOR_MODEL", "gemini-3-flash-preview")
    ADVISOR_TIMEOUT_SECONDS = float(os.environ.get("ADVISOR_TIMEOUT_SECONDS", "15"))
    RECENT_SALES_WINDOW = int(os.environ.get("RECENT_SALES_WINDOW", "20"))
