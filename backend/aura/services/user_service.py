# Overview: Service-layer operations for customer profiles and the admin customer listing.

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Order, User
from ..time_utils import to_utc_z
from ..validation import ValidationError
from .auth_service import is_valid_phone, normalize_phone

ADDRESS_FIELDS = ("street", "city", "state", "zip", "country")


def parse_address(address) -> dict[str, str]:
    """
    Accepts "street, city, state, zip, country" or an object with those keys.
    Missing parts become empty strings.
    """
    if isinstance(address, str):
        parts = [p.strip() for p in address.split(",")]
        return {key: (parts[i] if i < len(parts) else "") for i, key in enumerate(ADDRESS_FIELDS)}

    if isinstance(address, dict):
        return {key: str(address.get(key) or "").strip() for key in ADDRESS_FIELDS}

    raise ValidationError("address must be a string or an object")


def _string_list(value, field: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{field} must be a list")
    return [str(v) for v in value]


def parse_preferences(preferences) -> tuple[list[str], list[str]]:
    """
    Accepts a list of notes or {"notes": [...], "categories": [...]}.
    Returns (notes, categories).
    """
    if isinstance(preferences, list):
        return _string_list(preferences, "preferences"), []

    if isinstance(preferences, dict):
        return (
            _string_list(preferences.get("notes"), "preferences.notes"),
            _string_list(preferences.get("categories"), "preferences.categories"),
        )

    raise ValidationError("preferences must be a list or an object")


def update_profile(user: User, payload: dict) -> User:
    """
    Apply a partial profile update. Only keys present in the payload change.

    Raises ValidationError for malformed values or a phone number already
    used by another account.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if "name" in payload:
        name = str(payload["name"] or "").strip()
        if not name:
            raise ValidationError("name cannot be blank")
        user.name = name[:255]

    if "phone" in payload:
        raw_phone = payload["phone"]
        if raw_phone in (None, ""):
            if not user.email:
                raise ValidationError("phone is required for accounts without an email")
            user.phone = None
        else:
            phone = normalize_phone(str(raw_phone), current_app.config.get("DEFAULT_PHONE_COUNTRY_CODE", "+91"))
            if not is_valid_phone(phone):
                raise ValidationError("Invalid phone number format")
            user.phone = phone

    if "avatar" in payload:
        avatar = payload["avatar"]
        user.avatar = str(avatar).strip()[:512] if avatar else None

    if "address" in payload and payload["address"] is not None:
        address = parse_address(payload["address"])
        user.address_street = address["street"]
        user.address_city = address["city"]
        user.address_state = address["state"]
        user.address_zip = address["zip"]
        user.address_country = address["country"]

    if "preferences" in payload and payload["preferences"] is not None:
        notes, categories = parse_preferences(payload["preferences"])
        user.preference_notes = notes
        user.preference_categories = categories

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError("Phone number is already in use")

    return user


def list_customers() -> list[dict]:
    """
    Every non-admin account with its orders (newest first) and order totals.

    last_interaction is the newest order's date, or the account creation
    date for customers who never ordered. Sorted most recent first.
    """
    users = db.session.query(User).filter(User.role != "admin").all()
    if not users:
        return []

    orders_by_user: dict[int, list[Order]] = {}
    orders = (
        db.session.query(Order)
        .filter(Order.user_id.in_([u.id for u in users]))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
    for order in orders:
        orders_by_user.setdefault(order.user_id, []).append(order)

    rows = []
    for user in users:
        user_orders = orders_by_user.get(user.id, [])
        last_interaction = user_orders[0].created_at if user_orders else user.created_at
        rows.append((last_interaction, user.id, {
            "id": user.id,
            "name": user.name or (user.email or "").split("@")[0] or "Unknown",
            "email": user.email or "",
            "phone": user.phone or "",
            "avatar": user.avatar,
            "preferred_notes": list(user.preference_notes or []),
            "last_interaction": to_utc_z(last_interaction),
            "orders": [o.to_dict() for o in user_orders],
            "total_orders": len(user_orders),
            "total_spent_cents": sum(o.total_cents for o in user_orders),
        }))

    rows.sort(key=lambda r: (r[0], r[1]), reverse=True)
    return [row for _, _, row in rows]
