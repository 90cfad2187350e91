# cashdesk/config.py
from __future__ import annotations
import os


def _split_roles(raw: str) -> frozenset[str]:
    return frozenset(r.strip().lower() for r in raw.split(",") if r.strip())


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in instance/cashdesk.sqlite3 unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///cashdesk.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Roles allowed to resolve transfers not addressed to them (tenant-wide)
    ELEVATED_ROLES = _split_roles(
        os.environ.get("CASHDESK_ELEVATED_ROLES", "admin,manager,superadmin")
    )

    # Optimistic-concurrency retry policy for every ledger unit of work
    LEDGER_RETRY_ATTEMPTS = int(os.environ.get("LEDGER_RETRY_ATTEMPTS", "3"))
    LEDGER_RETRY_BACKOFF = float(os.environ.get("LEDGER_RETRY_BACKOFF", "0.05"))

    TRANSFER_LIST_LIMIT = int(os.environ.get("TRANSFER_LIST_LIMIT", "100"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
