"""
lib/cookies.py — httpOnly auth cookies.

Cookie attributes come from config (COOKIE_SECURE, COOKIE_SAMESITE); the
lifetime of each cookie matches the lifetime of the token it carries.
"""

from __future__ import annotations

from flask import Response, current_app

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"


def _cookie_options(max_age: int) -> dict:
    return {
        "max_age": max_age,
        "httponly": True,
        "secure": current_app.config.get("COOKIE_SECURE", False),
        "samesite": current_app.config.get("COOKIE_SAMESITE", "Lax"),
        "path": "/",
    }


def set_auth_cookies(
        response: Response,
        access_token: str,
        refresh_token: str,
        access_max_age: int,
        refresh_max_age: int,
) -> Response:
    response.set_cookie(ACCESS_TOKEN_COOKIE, access_token, **_cookie_options(access_max_age))
    response.set_cookie(REFRESH_TOKEN_COOKIE, refresh_token, **_cookie_options(refresh_max_age))
    return response


def clear_auth_cookies(response: Response) -> Response:
    options = _cookie_options(0)
    options.pop("max_age")
    response.delete_cookie(ACCESS_TOKEN_COOKIE, **options)
    response.delete_cookie(REFRESH_TOKEN_COOKIE, **options)
    return response
