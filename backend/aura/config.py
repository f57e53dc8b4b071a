# backend/aura/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> list[str]:
    raw = os.environ.get(name, default)
    return [part.strip() for part in raw.split(",") if part.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/aura.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///aura.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # One-time codes
    OTP_TTL_MINUTES = int(os.environ.get("OTP_TTL_MINUTES", "10"))
    OTP_MAX_FAILED_ATTEMPTS = int(os.environ.get("OTP_MAX_FAILED_ATTEMPTS", "5"))
    # Echo the code back in the send-otp response (local development only)
    OTP_DEMO_MODE = _env_flag("OTP_DEMO_MODE")

    # Identifiers that are given the admin role on first sign-in
    ADMIN_EMAILS = _env_list("ADMIN_EMAILS", "admin@aura.com,concierge@aura.com")
    ADMIN_PHONES = _env_list("ADMIN_PHONES", "+919999999999")
    DEFAULT_PHONE_COUNTRY_CODE = os.environ.get("DEFAULT_PHONE_COUNTRY_CODE", "+91")

    # Legacy storefront clients send a precomputed price for inventory-offer
    # lines. Off by default: offer lines are priced from MRP and offer string.
    TRUST_CLIENT_OFFER_PRICE = _env_flag("TRUST_CLIENT_OFFER_PRICE")

    CORS_ALLOWED_ORIGINS = _env_list(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
    )
