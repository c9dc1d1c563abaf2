"""
errors.py — AppError base class, error code registry and error factories.

Every error returned by the TableSpot API uses a code defined here.
Services raise these; routes never catch them. The global handlers in
tablespot/__init__.py turn them into the JSON error envelope.

Error codes are a versioned contract. Messages are human-readable prose and
may be improved at any time.
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


class AuthError(AppError):
    """Identity, credential and token failures."""


class RestaurantError(AppError):
    """Restaurant, rating and comment failures."""


# ── Error Code Registry ────────────────────────────────────────────────────
#
# HTTP status is indicated in the comment.
# These are the string values sent in the API response.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD          = "MISSING_FIELD"
    INVALID_FIELD          = "INVALID_FIELD"

    # ── Auth Errors ────────────────────────────────────────────────────────
    # 401 = we do not know who you are (unauthenticated)
    # 403 = we know who you are, but you are not allowed
    INVALID_CREDENTIALS    = "INVALID_CREDENTIALS"     # 401
    TOKEN_EXPIRED          = "TOKEN_EXPIRED"           # 401
    INVALID_TOKEN          = "INVALID_TOKEN"           # 401
    UNAUTHORIZED           = "UNAUTHORIZED"            # 401
    REFRESH_TOKEN_REQUIRED = "REFRESH_TOKEN_REQUIRED"  # 401
    USER_NOT_FOUND         = "USER_NOT_FOUND"          # 404
    EMAIL_ALREADY_EXISTS   = "EMAIL_ALREADY_EXISTS"    # 400

    # ── Restaurant Errors ──────────────────────────────────────────────────
    RESTAURANT_NOT_FOUND   = "RESTAURANT_NOT_FOUND"    # 404
    COMMENT_NOT_FOUND      = "COMMENT_NOT_FOUND"       # 404
    FORBIDDEN              = "FORBIDDEN"               # 403
    RATING_INVALID         = "RATING_INVALID"          # 400

    # ── System Errors ──────────────────────────────────────────────────────
    NOT_FOUND              = "NOT_FOUND"               # 404 (unknown route)
    INTERNAL_ERROR         = "INTERNAL_ERROR"          # 500


# ── Factories ──────────────────────────────────────────────────────────────

def invalid_credentials() -> AuthError:
    return AuthError(ErrorCode.INVALID_CREDENTIALS, "Invalid email or password", 401)


def token_expired() -> AuthError:
    return AuthError(ErrorCode.TOKEN_EXPIRED, "Token has expired", 401)


def invalid_token() -> AuthError:
    return AuthError(ErrorCode.INVALID_TOKEN, "Invalid token", 401)


def unauthorized() -> AuthError:
    return AuthError(ErrorCode.UNAUTHORIZED, "Unauthorized", 401)


def refresh_token_required() -> AuthError:
    return AuthError(ErrorCode.REFRESH_TOKEN_REQUIRED, "Refresh token required", 401)


def user_not_found() -> AuthError:
    # Not used on the login path: login must not reveal whether an email exists.
    return AuthError(ErrorCode.USER_NOT_FOUND, "User not found", 404)


def email_already_exists() -> AuthError:
    return AuthError(
        ErrorCode.EMAIL_ALREADY_EXISTS,
        "Email already registered",
        400,
        field="email",
    )


def restaurant_not_found() -> RestaurantError:
    return RestaurantError(ErrorCode.RESTAURANT_NOT_FOUND, "Restaurant not found", 404)


def comment_not_found() -> RestaurantError:
    return RestaurantError(ErrorCode.COMMENT_NOT_FOUND, "Comment not found", 404)


def forbidden() -> RestaurantError:
    return RestaurantError(
        ErrorCode.FORBIDDEN,
        "You are not allowed to perform this action",
        403,
    )


def rating_invalid() -> RestaurantError:
    return RestaurantError(
        ErrorCode.RATING_INVALID,
        "Rating must be between 1 and 5",
        400,
        field="stars",
    )
