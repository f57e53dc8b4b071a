# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
One-Time Code Authentication Service

WHY: Customers sign in without a password. A 6-digit code is issued to the
email address or phone number they enter; presenting it back proves control
of that channel. First contact on a new identifier creates the account.

SECURITY NOTES:
- Codes come from secrets (CSPRNG), never random
- Only a bcrypt hash of the pending code is stored
- Codes expire after OTP_TTL_MINUTES and are single-use
- OTP_MAX_FAILED_ATTEMPTS wrong codes discard the pending code
- Session tokens managed separately (see session_service.py)
"""

import re
import secrets
from datetime import timedelta

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from aura.time_utils import utcnow

CHANNEL_EMAIL = "email"
CHANNEL_PHONE = "phone"

OTP_BCRYPT_ROUNDS = 10

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# After normalization: +<country code><number>, e.g. +919876543210
_PHONE_RE = re.compile(r"^\+[1-9]\d{9,14}$")
_PHONE_STRIP_RE = re.compile(r"[\s\-()]")


class OtpError(Exception):
    """Raised when a one-time code cannot be issued or verified."""
    status_code = 400


class OtpLockedError(OtpError):
    """Too many wrong codes; the pending code has been discarded."""
    status_code = 429


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def normalize_phone(phone: str, default_country_code: str = "+91") -> str:
    """
    Strip spaces, dashes and parentheses; a leading 0 or a missing '+' is
    replaced by the default country code.
    """
    normalized = _PHONE_STRIP_RE.sub("", phone)
    if normalized.startswith("0"):
        normalized = default_country_code + normalized[1:]
    if not normalized.startswith("+"):
        normalized = default_country_code + normalized
    return normalized


def is_valid_phone(phone: str) -> bool:
    return bool(_PHONE_RE.match(phone))


def normalize_identifier(channel: str, raw: str) -> str:
    """Normalize and validate an email/phone identifier. Raises OtpError."""
    if channel == CHANNEL_EMAIL:
        identifier = normalize_email(raw)
        if not is_valid_email(identifier):
            raise OtpError("Invalid email format")
        return identifier

    if channel == CHANNEL_PHONE:
        identifier = normalize_phone(raw, current_app.config.get("DEFAULT_PHONE_COUNTRY_CODE", "+91"))
        if not is_valid_phone(identifier):
            raise OtpError("Invalid phone number format")
        return identifier

    raise ValueError(f"Unknown OTP channel: {channel}")


def generate_otp() -> str:
    """6-digit code, 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


def hash_otp(code: str) -> str:
    salt = bcrypt.gensalt(rounds=OTP_BCRYPT_ROUNDS)
    return bcrypt.hashpw(code.encode('utf-8'), salt).decode('utf-8')


def verify_otp_hash(code: str, otp_hash: str) -> bool:
    """Timing-safe comparison via bcrypt.checkpw()."""
    try:
        return bcrypt.checkpw(code.encode('utf-8'), otp_hash.encode('utf-8'))
    except ValueError:
        # Malformed stored hash
        return False


def find_user(channel: str, identifier: str) -> User | None:
    column = User.email if channel == CHANNEL_EMAIL else User.phone
    return db.session.query(User).filter(column == identifier).first()


def _role_for(channel: str, identifier: str) -> str:
    if channel == CHANNEL_EMAIL:
        admins = {normalize_email(e) for e in current_app.config.get("ADMIN_EMAILS", [])}
    else:
        admins = set(current_app.config.get("ADMIN_PHONES", []))
    return "admin" if identifier in admins else "customer"


def _default_name(channel: str, identifier: str) -> str:
    if channel == CHANNEL_EMAIL:
        return identifier.split("@")[0]
    return f"User {identifier[-4:]}"


def _mask(identifier: str) -> str:
    if "@" in identifier:
        local, _, domain = identifier.partition("@")
        return f"{local[:2]}***@{domain}"
    return f"***{identifier[-4:]}"


def deliver_otp(channel: str, destination: str, code: str) -> None:
    """
    Hand a code to the delivery channel.

    Email/SMS transport is provided by the deployment; this records the
    dispatch. The code itself is only logged in demo mode.
    """
    current_app.logger.info("OTP issued via %s to %s", channel, _mask(destination))
    if current_app.config.get("OTP_DEMO_MODE"):
        current_app.logger.info("Demo OTP for %s: %s", destination, code)


def request_otp(channel: str, raw_identifier: str) -> tuple[User, str]:
    """
    Issue a fresh code for the identifier, creating the user on first contact.

    Returns (user, plaintext_code). Any earlier pending code is replaced.
    """
    identifier = normalize_identifier(channel, raw_identifier)

    user = find_user(channel, identifier)
    if user is None:
        user = User(
            name=_default_name(channel, identifier),
            role=_role_for(channel, identifier),
            preference_notes=[],
            preference_categories=[],
        )
        setattr(user, channel, identifier)
        db.session.add(user)
    elif not user.is_active:
        raise OtpError("Account is deactivated")

    code = generate_otp()
    ttl = timedelta(minutes=current_app.config.get("OTP_TTL_MINUTES", 10))
    user.otp_hash = hash_otp(code)
    user.otp_expires_at = utcnow() + ttl
    user.otp_failed_attempts = 0
    db.session.commit()

    deliver_otp(channel, identifier, code)
    return user, code


def verify_otp(channel: str, raw_identifier: str, code: str) -> User:
    """
    Check a code and consume it.

    Returns the user on success. Raises OtpError for unknown users, missing,
    expired or wrong codes, and OtpLockedError once too many wrong codes
    have been tried.
    """
    identifier = normalize_identifier(channel, raw_identifier)

    user = find_user(channel, identifier)
    if user is None:
        raise OtpError("User not found")

    if not user.otp_hash or not user.otp_expires_at:
        raise OtpError("No OTP found. Please request a new one.")

    if utcnow() > user.otp_expires_at:
        user.clear_otp()
        db.session.commit()
        raise OtpError("OTP has expired. Please request a new one.")

    if not verify_otp_hash(str(code).strip(), user.otp_hash):
        user.otp_failed_attempts = (user.otp_failed_attempts or 0) + 1
        max_attempts = current_app.config.get("OTP_MAX_FAILED_ATTEMPTS", 5)
        if user.otp_failed_attempts >= max_attempts:
            user.clear_otp()
            db.session.commit()
            current_app.logger.warning("OTP discarded after %d failed attempts for user %s", max_attempts, user.id)
            raise OtpLockedError("Too many invalid attempts. Please request a new OTP.")
        db.session.commit()
        raise OtpError("Invalid OTP code")

    if not user.is_active:
        raise OtpError("Account is deactivated")

    user.clear_otp()
    user.last_login_at = utcnow()
    db.session.commit()
    return user


def create_admin(email: str | None = None, phone: str | None = None, name: str | None = None) -> User:
    """
    Create an admin account, or promote the existing account.

    Raises ValueError when neither identifier is given or one is malformed.
    """
    if not email and not phone:
        raise ValueError("email or phone is required")

    user = None
    if email:
        email = normalize_email(email)
        if not is_valid_email(email):
            raise ValueError("Invalid email format")
        user = find_user(CHANNEL_EMAIL, email)
    if phone:
        phone = normalize_phone(phone, current_app.config.get("DEFAULT_PHONE_COUNTRY_CODE", "+91"))
        if not is_valid_phone(phone):
            raise ValueError("Invalid phone number format")
        user = user or find_user(CHANNEL_PHONE, phone)

    if user is None:
        if not name:
            name = _default_name(CHANNEL_EMAIL, email) if email else _default_name(CHANNEL_PHONE, phone)
        user = User(
            email=email or None,
            phone=phone or None,
            name=name,
            preference_notes=[],
            preference_categories=[],
        )
        db.session.add(user)
    else:
        if name:
            user.name = name
        if email and not user.email:
            user.email = email
        if phone and not user.phone:
            user.phone = phone

    user.role = "admin"
    db.session.commit()
    return user
