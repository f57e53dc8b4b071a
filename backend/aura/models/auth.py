from __future__ import annotations

from ..extensions import db
from aura.time_utils import to_utc_z, utcnow

USER_ROLES = ("customer", "admin")


class User(db.Model):
    """
    Storefront account, identified by email and/or phone.

    WHY: Customers sign in with a one-time code sent to either channel, so
    neither column is required on its own. At least one must be present and
    each is unique when present.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.CheckConstraint(
            "email IS NOT NULL OR phone IS NOT NULL",
            name="ck_users_has_identifier",
        ),
        db.CheckConstraint("role IN ('customer', 'admin')", name="ck_users_role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Lowercased on write; NULL allowed (multiple NULLs do not collide)
    email = db.Column(db.String(255), nullable=True, unique=True)
    # Normalized E.164, e.g. +919876543210
    phone = db.Column(db.String(32), nullable=True, unique=True)

    name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(16), nullable=False, default="customer")
    avatar = db.Column(db.String(512), nullable=True)

    # Shipping address
    address_street = db.Column(db.String(255), nullable=True)
    address_city = db.Column(db.String(128), nullable=True)
    address_state = db.Column(db.String(128), nullable=True)
    address_zip = db.Column(db.String(32), nullable=True)
    address_country = db.Column(db.String(128), nullable=True)

    preference_notes = db.Column(db.JSON, nullable=False, default=list)
    preference_categories = db.Column(db.JSON, nullable=False, default=list)

    # Pending one-time code challenge (bcrypt hash, never the plaintext)
    otp_hash = db.Column(db.String(255), nullable=True)
    otp_expires_at = db.Column(db.DateTime, nullable=True)
    otp_failed_attempts = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    last_login_at = db.Column(db.DateTime, nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def formatted_address(self) -> str | None:
        parts = [
            self.address_street,
            self.address_city,
            self.address_state,
            self.address_zip,
            self.address_country,
        ]
        joined = ", ".join(p for p in parts if p)
        return joined or None

    def clear_otp(self) -> None:
        self.otp_hash = None
        self.otp_expires_at = None
        self.otp_failed_attempts = 0

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} phone={self.phone!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "phone": self.phone,
            "name": self.name,
            "role": self.role,
            "avatar": self.avatar,
            "address": self.formatted_address(),
            "preferences": list(self.preference_notes or []),
            "preference_categories": list(self.preference_categories or []),
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class SessionToken(db.Model):
    """
    Opaque bearer session.

    Only the SHA-256 hash of the token is stored; the plaintext is handed to
    the client once at sign-in.
    """
    __tablename__ = "session_tokens"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime, nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user = db.relationship("User", backref=db.backref("sessions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
