"""
routes/auth.py — Authentication route handlers.

Layer rules:
  - Parse request body
  - Validate with the appropriate schema (raises ValidationError on bad input)
  - Call exactly ONE AuthService method
  - Return the standard response envelope: {"data": {...}}

The auth repositories commit their own point operations, so these handlers
never touch db.session. AppError propagates to the global error handler in
tablespot/__init__.py; routes never catch it.

Endpoints (base url_prefix=/api/v1/auth):
  POST   /auth/signup           → 201
  POST   /auth/login            → 200  sets accessToken + refreshToken cookies
  POST   /auth/refresh          → 200  rotates both cookies
  POST   /auth/logout           → 200  clears both cookies
  POST   /auth/forgot-password  → 200  same answer for every email
  POST   /auth/reset-password   → 200
  POST   /auth/change-password  → 200  (auth required)
  GET    /auth/me               → 200  (auth required)
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from tablespot.container import get_container
from tablespot.errors import refresh_token_required
from tablespot.lib.cookies import REFRESH_TOKEN_COOKIE, clear_auth_cookies, set_auth_cookies
from tablespot.middleware.auth_middleware import require_auth
from tablespot.schemas.auth_schema import (
    ChangePasswordSchema,
    ForgotPasswordSchema,
    LoginSchema,
    ResetPasswordSchema,
    SignupSchema,
)

auth_bp = Blueprint("auth", __name__)

FORGOT_PASSWORD_MESSAGE = (
    "If an account exists for this email, you will receive a password reset link."
)


def _session_response(result):
    """Builds the login/refresh response and attaches both auth cookies."""
    signer = get_container().token_signer
    response = jsonify({
        "data": {
            "user": result.user.to_dict(),
            "access_token": result.access_token,
        }
    })
    set_auth_cookies(
        response,
        result.access_token,
        result.refresh_token,
        access_max_age=signer.get_access_token_max_age_seconds(),
        refresh_max_age=signer.get_refresh_token_max_age_seconds(),
    )
    return response


@auth_bp.route("/signup", methods=["POST"])
def signup():
    """POST /auth/signup — Create account. No token is issued."""
    data = SignupSchema().load(request.get_json(force=True, silent=True) or {})
    user = get_container().auth_service.signup(
        name=data["name"],
        email=data["email"],
        password=data["password"],
        phone=data.get("phone"),
    )
    return jsonify({"data": {"user": user.to_dict()}}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    """POST /auth/login — Authenticate; set session cookies."""
    data = LoginSchema().load(request.get_json(force=True, silent=True) or {})
    result = get_container().auth_service.login(
        email=data["email"],
        password=data["password"],
    )
    return _session_response(result), 200


@auth_bp.route("/refresh", methods=["POST"])
def refresh():
    """POST /auth/refresh — Exchange the refresh cookie for a new pair."""
    result = get_container().auth_service.refresh(request.cookies.get(REFRESH_TOKEN_COOKIE))
    if result is None:
        raise refresh_token_required()
    return _session_response(result), 200


@auth_bp.route("/logout", methods=["POST"])
def logout():
    """POST /auth/logout — End the session. Always succeeds."""
    get_container().auth_service.logout(request.cookies.get(REFRESH_TOKEN_COOKIE))
    response = jsonify({"data": {"ok": True}})
    clear_auth_cookies(response)
    return response, 200


@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    """POST /auth/forgot-password — Mail a reset link if the account exists."""
    data = ForgotPasswordSchema().load(request.get_json(force=True, silent=True) or {})
    get_container().auth_service.request_password_reset(data["email"])
    return jsonify({"data": {"message": FORGOT_PASSWORD_MESSAGE}}), 200


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password():
    """POST /auth/reset-password — Consume a reset token and set a new password."""
    data = ResetPasswordSchema().load(request.get_json(force=True, silent=True) or {})
    get_container().auth_service.reset_password(
        raw_token=data["token"],
        new_password=data["new_password"],
    )
    return jsonify({"data": {"message": "Password reset successfully"}}), 200


@auth_bp.route("/change-password", methods=["POST"])
@require_auth
def change_password():
    """POST /auth/change-password — Requires the current password."""
    data = ChangePasswordSchema().load(request.get_json(force=True, silent=True) or {})
    get_container().auth_service.change_password(
        user_id=g.user.id,
        current_password=data["current_password"],
        new_password=data["new_password"],
    )
    return jsonify({"data": {"message": "Password changed successfully"}}), 200


@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    """GET /auth/me — Identity carried by the access token."""
    return jsonify({"data": {"user": g.user.to_dict()}}), 200
