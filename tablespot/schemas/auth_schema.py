"""
schemas/auth_schema.py — Marshmallow schemas for authentication endpoints.

Validation responsibility:
  - This file: field types, lengths, formats; email normalisation.
  - services/auth_service.py: EMAIL_ALREADY_EXISTS and credential checks
    (require a DB lookup — not a schema concern).

All schemas inherit from marshmallow.Schema directly so they can be
instantiated without a Flask application context.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, post_load, pre_load, validate

PASSWORD_MIN_LENGTH = 6
# bcrypt rejects input longer than 72 bytes, so the cap is on UTF-8 bytes.
PASSWORD_MAX_BYTES = 72


def _password_length(value: str) -> None:
    if len(value) < PASSWORD_MIN_LENGTH or len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters "
            f"and at most {PASSWORD_MAX_BYTES} bytes."
        )


def _validate_non_empty_after_trim(value: str) -> None:
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class _NormalizedEmailMixin:
    """Trims and lowercases `email` before validation."""

    @pre_load
    def normalize_email(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get("email"), str):
            data = {**data, "email": data["email"].strip().lower()}
        return data


class SignupSchema(_NormalizedEmailMixin, Schema):
    """
    POST /auth/signup

      name     : non-blank, max 100 chars (trimmed)
      email    : valid email, trimmed + lowercased
      password : at least 6 chars, at most 72 bytes (UTF-8)
      phone    : optional, may be null
    """

    name = fields.Str(
        required=True,
        validate=[validate.Length(min=1, max=100), _validate_non_empty_after_trim],
    )
    email = fields.Email(required=True, validate=validate.Length(max=255))
    password = fields.Str(required=True, load_only=True, validate=_password_length)
    phone = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=50))

    @post_load
    def strip_strings(self, data, **kwargs):
        data["name"] = data["name"].strip()
        if data.get("phone") is not None:
            data["phone"] = data["phone"].strip() or None
        return data


class LoginSchema(_NormalizedEmailMixin, Schema):
    """
    POST /auth/login

    Credential correctness is checked in auth_service.py (INVALID_CREDENTIALS, 401).
    """

    email = fields.Email(required=True)
    password = fields.Str(
        required=True,
        load_only=True,
        validate=validate.Length(min=1, error="Password is required."),
    )


class ForgotPasswordSchema(_NormalizedEmailMixin, Schema):
    """POST /auth/forgot-password"""

    email = fields.Email(required=True)


class ResetPasswordSchema(Schema):
    """POST /auth/reset-password"""

    token = fields.Str(
        required=True,
        validate=validate.Length(min=1, error="Token is required."),
    )
    new_password = fields.Str(required=True, load_only=True, validate=_password_length)


class ChangePasswordSchema(Schema):
    """POST /auth/change-password"""

    current_password = fields.Str(
        required=True,
        load_only=True,
        validate=validate.Length(min=1, error="Current password is required."),
    )
    new_password = fields.Str(required=True, load_only=True, validate=_password_length)
