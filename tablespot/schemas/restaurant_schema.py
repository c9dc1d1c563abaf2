"""
schemas/restaurant_schema.py — Marshmallow schemas for restaurant, rating
and comment endpoints.

Existence and ownership checks (RESTAURANT_NOT_FOUND, FORBIDDEN) live in the
services; this file only checks shapes.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, post_load, pre_load, validate

from tablespot.errors import ErrorCode


def _validate_non_empty_after_trim(value: str) -> None:
    """
    Raises ValidationError if the string is blank or contains only whitespace.
    validate.Length(min=1) alone lets "   " through.
    """
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


def _required_text(max_length: int, label: str) -> fields.Str:
    return fields.Str(
        required=True,
        validate=[
            validate.Length(min=1, max=max_length, error=f"{label} must be between 1 and {max_length} characters."),
            _validate_non_empty_after_trim,
        ],
    )


def _optional_text(max_length: int, label: str) -> fields.Str:
    return fields.Str(
        validate=[
            validate.Length(min=1, max=max_length, error=f"{label} must be between 1 and {max_length} characters."),
            _validate_non_empty_after_trim,
        ],
    )


class _TrimStringsMixin:

    @post_load
    def strip_strings(self, data, **kwargs):
        return {
            key: value.strip() if isinstance(value, str) else value
            for key, value in data.items()
        }


class CreateRestaurantSchema(_TrimStringsMixin, Schema):
    """POST /restaurants"""

    name = _required_text(200, "Name")
    full_address = _required_text(500, "Full address")
    phone = _required_text(50, "Phone")
    cuisine_type = _required_text(100, "Cuisine type")
    image_url = fields.Url(load_default=None, allow_none=True, error_messages={"invalid": "Invalid image URL."})


class UpdateRestaurantSchema(_TrimStringsMixin, Schema):
    """
    PATCH /restaurants/:id

    Every field is optional; only keys present in the body are applied.
    image_url may be set to null to clear it.
    """

    name = _optional_text(200, "Name")
    full_address = _optional_text(500, "Full address")
    phone = _optional_text(50, "Phone")
    cuisine_type = _optional_text(100, "Cuisine type")
    image_url = fields.Url(allow_none=True, error_messages={"invalid": "Invalid image URL."})


class SetRatingSchema(Schema):
    """PUT /restaurants/:id/ratings"""

    stars = fields.Int(
        required=True,
        strict=True,  # reject floats like 4.0 and numeric strings
        validate=validate.Range(min=1, max=5, error=ErrorCode.RATING_INVALID),
        error_messages={"invalid": ErrorCode.RATING_INVALID},
    )

    @pre_load
    def reject_boolean_stars(self, data, **kwargs):
        # bool is an int subclass and would load as 1 or 0.
        if isinstance(data, dict) and isinstance(data.get("stars"), bool):
            raise ValidationError(ErrorCode.RATING_INVALID, field_name="stars")
        return data


class CreateCommentSchema(Schema):
    """POST /restaurants/:id/comments"""

    body = fields.Str(
        required=True,
        validate=[
            validate.Length(min=1, max=2000, error="Comment must be between 1 and 2000 characters."),
            _validate_non_empty_after_trim,
        ],
    )

    @post_load
    def strip_body(self, data, **kwargs):
        data["body"] = data["body"].strip()
        return data
