# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
One-time code authentication routes

Flow:
    POST /send-otp(-phone)     -> code issued (account created on first contact)
    POST /verify-otp(-phone)   -> {token, user}
    GET  /me                   -> current user
    POST /logout               -> token revoked

SECURITY FEATURES:
- Codes are hashed, expire, and are single-use
- Too many wrong codes discard the pending code (429)
- Session management with token-based auth
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services.auth_service import CHANNEL_EMAIL, CHANNEL_PHONE, OtpError
from ..decorators import bearer_token, require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _send_otp(channel: str):
    data = request.get_json(silent=True) or {}
    identifier = data.get(channel)

    if not identifier or not isinstance(identifier, str):
        return jsonify({"error": f"{channel.capitalize()} is required"}), 400

    try:
        user, code = auth_service.request_otp(channel, identifier)
    except OtpError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to send OTP")
        return jsonify({"error": "Internal server error"}), 500

    body = {
        "message": f"OTP sent to your {channel}",
        channel: getattr(user, channel),
    }
    if current_app.config.get("OTP_DEMO_MODE"):
        body["demo_code"] = code
    return jsonify(body), 200


def _verify_otp(channel: str):
    data = request.get_json(silent=True) or {}
    identifier = data.get(channel)
    code = data.get("code")

    if not identifier or not isinstance(identifier, str) or not code:
        return jsonify({"error": f"{channel.capitalize()} and code are required"}), 400

    try:
        user = auth_service.verify_otp(channel, identifier, str(code))
        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
    except OtpError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to verify OTP")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "message": "Login successful",
        "token": token,
        "user": user.to_dict(),
        "session": session.to_dict(),
    }), 200


@auth_bp.post("/send-otp")
def send_otp_route():
    return _send_otp(CHANNEL_EMAIL)


@auth_bp.post("/send-otp-phone")
def send_otp_phone_route():
    return _send_otp(CHANNEL_PHONE)


@auth_bp.post("/verify-otp")
def verify_otp_route():
    return _verify_otp(CHANNEL_EMAIL)


@auth_bp.post("/verify-otp-phone")
def verify_otp_phone_route():
    return _verify_otp(CHANNEL_PHONE)


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke session token (logout).

    Expects Authorization header: Bearer <token>
    """
    try:
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authorization header required"}), 401

        revoked = session_service.revoke_session(token, reason="User logout")

        if not revoked:
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500
