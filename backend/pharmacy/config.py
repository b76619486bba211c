# backend/pharmacy/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/pharmacy.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///pharmacy.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Items expiring within this many days (inclusive) are flagged as near-expiry
    NEAR_EXPIRY_THRESHOLD_DAYS = int(os.environ.get("NEAR_EXPIRY_THRESHOLD_DAYS", "30"))

    # Retries for transient lock errors while committing a sale batch
    SALE_COMMIT_ATTEMPTS = int(os.environ.get("SALE_COMMIT_ATTEMPTS", "3"))


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SALE_COMMIT_ATTEMPTS = 1
