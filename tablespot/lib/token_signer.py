"""
lib/token_signer.py — Signed access and refresh tokens (JWT, HS256).

Payload: sub (user id as str), email, name, purpose, iat, exp, jti.

`purpose` is "access" or "refresh" and is checked on verification, so an
access token cannot be replayed at the refresh endpoint and a refresh token
cannot authenticate a request.

`jti` is 32 random bytes (hex). It makes every issued token unique even
when two are signed for the same user in the same second, which the
refresh-token store relies on (one row per issued token hash).

Verification failures surface as PyJWT exceptions:
  jwt.ExpiredSignatureError  — exp in the past
  jwt.InvalidSignatureError  — wrong secret / tampered token
  jwt.InvalidTokenError      — anything else, including TokenPurposeError
Callers map all of them to INVALID_TOKEN.
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt


ACCESS_PURPOSE = "access"
REFRESH_PURPOSE = "refresh"

DEFAULT_EXPIRY_SECONDS = 900

_EXPIRY_PATTERN = re.compile(r"^(\d+)([smhd])$")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def expiry_to_seconds(expires_in: str) -> int:
    """
    Converts an expiry string such as "15m" or "7d" into seconds.

    Anything that does not match <digits><s|m|h|d> falls back to 900 seconds
    (15 minutes) rather than raising.
    """
    match = _EXPIRY_PATTERN.match(expires_in or "")
    if match is None:
        return DEFAULT_EXPIRY_SECONDS
    return int(match.group(1)) * _UNIT_SECONDS[match.group(2)]


class TokenPurposeError(jwt.InvalidTokenError):
    """A validly signed token presented for the wrong purpose."""


@dataclass(frozen=True)
class TokenClaims:
    sub: str
    email: str
    name: str | None
    purpose: str
    iat: int
    exp: int


class TokenSigner:

    def __init__(
            self,
            secret: str,
            access_expires_in: str = "15m",
            refresh_expires_in: str = "7d",
            algorithm: str = "HS256",
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self.access_expires_in = access_expires_in
        self.refresh_expires_in = refresh_expires_in

    # ── Signing ────────────────────────────────────────────────────────────

    def sign_access(self, sub: str, email: str, name: str) -> str:
        return self._sign(sub, email, name, ACCESS_PURPOSE, self.get_access_token_max_age_seconds())

    def sign_refresh(self, sub: str, email: str, name: str) -> str:
        return self._sign(sub, email, name, REFRESH_PURPOSE, self.get_refresh_token_max_age_seconds())

    def _sign(self, sub: str, email: str, name: str, purpose: str, ttl_seconds: int) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(sub),
            "email": email,
            "name": name,
            "purpose": purpose,
            "iat": now,
            "exp": now + timedelta(seconds=ttl_seconds),
            "jti": secrets.token_hex(32),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    # ── Verification ───────────────────────────────────────────────────────

    def verify_access(self, token: str) -> TokenClaims:
        return self._verify(token, ACCESS_PURPOSE)

    def verify_refresh(self, token: str) -> TokenClaims:
        return self._verify(token, REFRESH_PURPOSE)

    def _verify(self, token: str, purpose: str) -> TokenClaims:
        payload = jwt.decode(
            token,
            self._secret,
            algorithms=[self._algorithm],
            options={"require": ["sub", "exp", "iat"]},
        )
        if payload.get("purpose") != purpose:
            raise TokenPurposeError(f"Token is not a {purpose} token.")
        return TokenClaims(
            sub=payload["sub"],
            email=payload.get("email", ""),
            name=payload.get("name"),
            purpose=payload["purpose"],
            iat=payload["iat"],
            exp=payload["exp"],
        )

    # ── Cookie lifetimes ───────────────────────────────────────────────────

    def get_access_token_max_age_seconds(self) -> int:
        return expiry_to_seconds(self.access_expires_in)

    def get_refresh_token_max_age_seconds(self) -> int:
        return expiry_to_seconds(self.refresh_expires_in)
