# Overview: Flask API routes for customer profiles and the admin customer listing.

from flask import Blueprint, request, jsonify, current_app, g

from ..services import user_service
from ..validation import ValidationError
from ..decorators import require_admin, require_auth

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("/profile")
@require_auth
def get_profile():
    return jsonify({"user": g.current_user.to_dict()})


@users_bp.put("/profile")
@require_auth
def update_profile():
    """
    Partial profile update.

    Body (all optional): name, phone, avatar,
    address ("street, city, state, zip, country" or object),
    preferences (list of notes or {notes, categories}).
    """
    payload = request.get_json(silent=True) or {}

    try:
        user = user_service.update_profile(g.current_user, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update profile")
        return jsonify({"error": "Failed to update profile"}), 500

    return jsonify({"user": user.to_dict()})


@users_bp.get("/admin/customers")
@require_auth
@require_admin
def list_customers():
    """Non-admin accounts with their orders, most recent interaction first."""
    return jsonify({"customers": user_service.list_customers()})
