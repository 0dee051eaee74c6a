# backend/tillcore/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///till.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "staff": one open shift per staff member across all business units
    # "unit":  one open shift per staff member per business unit
    SHIFT_SCOPE = os.environ.get("SHIFT_SCOPE", "staff").lower()

    # "warn": over-limit credit sales are flagged and alerted
    # "block": over-limit credit sales are rejected
    CREDIT_LIMIT_POLICY = os.environ.get("CREDIT_LIMIT_POLICY", "warn").lower()

    LEDGER_RETRY_ATTEMPTS = int(os.environ.get("LEDGER_RETRY_ATTEMPTS", "3"))
    LEDGER_RETRY_BACKOFF = float(os.environ.get("LEDGER_RETRY_BACKOFF", "0.1"))


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SHIFT_SCOPE = "staff"
    CREDIT_LIMIT_POLICY = "warn"
    LEDGER_RETRY_BACKOFF = 0.0
