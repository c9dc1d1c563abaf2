"""
middleware/auth_middleware.py — Access-token authentication.

Credential sources, in order of preference:
  1. the `accessToken` cookie
  2. an `Authorization: Bearer <token>` header

Outcomes:
  - no credential      → anonymous (g.user = None), the request proceeds
  - valid credential   → g.user = AuthUser(id=sub, email, name or email)
  - invalid credential → AuthError(INVALID_TOKEN, 401); a bad token is never
                         downgraded to anonymous

@optional_auth attaches the identity when one is present.
@require_auth does the same and then rejects anonymous callers with
UNAUTHORIZED (401).

This middleware only authenticates (401). Ownership rules (403) belong in
the service layer. Services receive user ids as plain ints.
"""

from __future__ import annotations

import functools
from typing import Callable

import jwt
from flask import g, request

from tablespot.container import get_container
from tablespot.errors import invalid_token, unauthorized
from tablespot.lib.cookies import ACCESS_TOKEN_COOKIE
from tablespot.lib.token_signer import TokenSigner
from tablespot.services.auth_service import AuthUser

BEARER_PREFIX = "Bearer "


def extract_credential(cookie_token: str | None, authorization: str | None) -> str | None:
    """Returns the access token from the cookie, else from a Bearer header, else None."""
    if cookie_token:
        return cookie_token
    if authorization and authorization.startswith(BEARER_PREFIX):
        return authorization[len(BEARER_PREFIX):].strip() or None
    return None


def resolve_identity(
        cookie_token: str | None,
        authorization: str | None,
        token_signer: TokenSigner,
) -> AuthUser | None:
    """
    Pure function of the request's credential sources.

    Raises AuthError(INVALID_TOKEN) when a credential is present but does
    not verify.
    """
    token = extract_credential(cookie_token, authorization)
    if token is None:
        return None

    try:
        claims = token_signer.verify_access(token)
        user_id = int(claims.sub)
    except (jwt.InvalidTokenError, TypeError, ValueError):
        raise invalid_token()

    return AuthUser(
        id=user_id,
        email=claims.email,
        name=claims.name or claims.email,
    )


def authenticate_request() -> AuthUser | None:
    """Resolves the identity for the current Flask request and stores it on flask.g."""
    g.user = resolve_identity(
        request.cookies.get(ACCESS_TOKEN_COOKIE),
        request.headers.get("Authorization"),
        get_container().token_signer,
    )
    return g.user


def optional_auth(f: Callable) -> Callable:
    """
    Route decorator: attaches g.user when a valid credential is sent.

    Usage:
        @bp.route("/<int:restaurant_id>/ratings", methods=["GET"])
        @optional_auth
        def get_rating(restaurant_id):
            user_id = g.user.id if g.user else None
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        authenticate_request()
        return f(*args, **kwargs)

    return decorated


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces authentication.

    g.user is always an AuthUser when the view runs.
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if authenticate_request() is None:
            raise unauthorized()
        return f(*args, **kwargs)

    return decorated
