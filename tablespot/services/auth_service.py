"""
services/auth_service.py — Authentication business logic.

Responsibilities:
  - Signup and credential validation
  - Access + refresh token issuance and refresh-token rotation
  - Logout (refresh-token deletion)
  - Password reset request / completion and password change

Layer rules:
  - No imports from routes or schemas
  - No use of flask.request, flask.g, cookies or HTTP status codes
  - Collaborators (stores, signer, hasher, notifier) are passed to the
    constructor by the composition root in tablespot/container.py

Token design:
  - Access token: signed JWT, short-lived, never persisted.
  - Refresh token: signed JWT carrying a 256-bit random jti. Only its
    SHA-256 hash is stored; a row exists per live session.
    Every successful refresh deletes the row and issues a new pair, so a
    refresh token is single-use.
  - Password reset token: 256-bit random hex string, stored as SHA-256
    hash, deleted when consumed.
  - Raw tokens are returned to the caller once and never stored or logged.

Error policy:
  - login / change_password use INVALID_CREDENTIALS for both "no such user"
    and "wrong password".
  - request_password_reset and logout succeed silently when nothing matches.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone

import jwt
from sqlalchemy.exc import IntegrityError

from tablespot.errors import (
    email_already_exists,
    invalid_credentials,
    invalid_token,
    token_expired,
)
from tablespot.lib.notifier import PasswordResetNotifier
from tablespot.lib.password_hasher import BcryptPasswordHasher
from tablespot.lib.token_signer import TokenSigner
from tablespot.repositories.token_repository import (
    PasswordResetTokenRepository,
    RefreshTokenRepository,
)
from tablespot.repositories.user_repository import UserRepository, normalize_email

logger = logging.getLogger(__name__)


# ── Result types ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AuthUser:
    """Identity projection exposed to callers. Never carries the password hash."""

    id: int
    email: str
    name: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class LoginResult:
    user: AuthUser
    access_token: str
    refresh_token: str


# ── Private helpers ────────────────────────────────────────────────────────

def hash_token(raw_token: str) -> str:
    """SHA-256 hex digest of a raw token string."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def generate_raw_token() -> str:
    """256 bits from the OS CSPRNG, hex-encoded."""
    return secrets.token_hex(32)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_expired(expires_at: datetime, now: datetime) -> bool:
    # SQLite hands back naive datetimes; stored values are always UTC.
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at < now


def _to_auth_user(user) -> AuthUser:
    return AuthUser(id=user.id, email=user.email, name=user.name)


# ── Service ────────────────────────────────────────────────────────────────

class AuthService:

    def __init__(
            self,
            users: UserRepository,
            refresh_tokens: RefreshTokenRepository,
            password_reset_tokens: PasswordResetTokenRepository,
            token_signer: TokenSigner,
            password_hasher: BcryptPasswordHasher,
            notifier: PasswordResetNotifier,
            password_reset_ttl: timedelta = timedelta(hours=1),
            revoke_sessions_on_password_reset: bool = False,
    ) -> None:
        self.users = users
        self.refresh_tokens = refresh_tokens
        self.password_reset_tokens = password_reset_tokens
        self.token_signer = token_signer
        self.password_hasher = password_hasher
        self.notifier = notifier
        self.password_reset_ttl = password_reset_ttl
        self.revoke_sessions_on_password_reset = revoke_sessions_on_password_reset

    # ── Signup / login ─────────────────────────────────────────────────────

    def signup(
            self,
            name: str,
            email: str,
            password: str,
            phone: str | None = None,
    ) -> AuthUser:
        """
        Creates a user account. No token is issued.

        Raises:
          AuthError(EMAIL_ALREADY_EXISTS, 400) — normalised email already registered
        """
        email = normalize_email(email)
        if self.users.find_by_email(email) is not None:
            raise email_already_exists()

        password_hash = self.password_hasher.hash(password)
        try:
            user = self.users.create(
                email=email,
                name=name,
                password_hash=password_hash,
                phone=phone,
            )
        except IntegrityError:
            # Lost a race against a concurrent signup for the same address.
            raise email_already_exists()

        logger.info("User %s signed up", user.id)
        return _to_auth_user(user)

    def login(self, email: str, password: str) -> LoginResult:
        """
        Validates credentials and opens a session.

        Raises:
          AuthError(INVALID_CREDENTIALS, 401) — unknown email or wrong password.
        """
        user = self.users.find_by_email(email)
        if user is None or not self.password_hasher.compare(password, user.password_hash):
            raise invalid_credentials()

        return self._issue_session(user)

    # ── Refresh / logout ───────────────────────────────────────────────────

    def refresh(self, raw_refresh_token: str | None) -> LoginResult | None:
        """
        Exchanges a refresh token for a new access + refresh pair.

        Returns None when no token was supplied (the caller answers
        "refresh token required").

        Raises:
          AuthError(INVALID_TOKEN, 401) — bad signature/purpose, user gone,
                                          or another request already rotated
                                          this token
          AuthError(TOKEN_EXPIRED, 401) — no live stored row for the token,
                                          or the token's exp has passed while
                                          its row still exists; an expired
                                          row is deleted first
        """
        if not raw_refresh_token:
            return None

        token_hash = hash_token(raw_refresh_token)
        try:
            claims = self.token_signer.verify_refresh(raw_refresh_token)
        except jwt.ExpiredSignatureError:
            # exp matches the stored expiry, so the row is usually still there.
            stored = self.refresh_tokens.find_by_token_hash(token_hash)
            if stored is None:
                raise invalid_token()
            self.refresh_tokens.delete(stored.id)
            raise token_expired()
        except jwt.InvalidTokenError:
            raise invalid_token()

        stored = self.refresh_tokens.find_by_token_hash(token_hash)
        if stored is None or _is_expired(stored.expires_at, _utcnow()):
            if stored is not None:
                self.refresh_tokens.delete(stored.id)
            raise token_expired()

        try:
            user_id = int(claims.sub)
        except (TypeError, ValueError):
            raise invalid_token()

        user = self.users.find_by_id(user_id)
        if user is None:
            raise invalid_token()

        # Conditional delete: of two concurrent refreshes with the same
        # token, only the one that removes the row may rotate.
        if self.refresh_tokens.delete(stored.id) != 1:
            raise invalid_token()

        return self._issue_session(user)

    def logout(self, raw_refresh_token: str | None) -> None:
        """Ends the session for a refresh token. Unknown or missing tokens are a no-op."""
        if not raw_refresh_token:
            return

        stored = self.refresh_tokens.find_by_token_hash(hash_token(raw_refresh_token))
        if stored is not None:
            self.refresh_tokens.delete(stored.id)

    def logout_everywhere(self, user_id: int) -> int:
        """Deletes every stored refresh token of a user. Returns how many were removed."""
        removed = self.refresh_tokens.delete_by_user_id(user_id)
        logger.info("Revoked %d session(s) for user %s", removed, user_id)
        return removed

    # ── Password reset / change ────────────────────────────────────────────

    def request_password_reset(self, email: str) -> None:
        """
        Issues a reset token and mails the link.

        Returns silently when no account matches, so the caller cannot tell
        whether the address is registered. Delivery failures are logged and
        swallowed for the same reason; the stored token is kept.
        """
        user = self.users.find_by_email(email)
        if user is None:
            return

        raw_token = generate_raw_token()
        self.password_reset_tokens.create(
            user.id,
            hash_token(raw_token),
            _utcnow() + self.password_reset_ttl,
        )

        try:
            self.notifier.send_password_reset_link(user.email, raw_token)
        except Exception:
            logger.exception("Failed to deliver password reset link for user %s", user.id)

    def reset_password(self, raw_token: str, new_password: str) -> None:
        """
        Consumes a reset token and sets a new password.

        Raises:
          AuthError(INVALID_TOKEN, 401) — token unknown, already used, or expired
        """
        stored = self.password_reset_tokens.find_by_token_hash(hash_token(raw_token))
        if stored is None or _is_expired(stored.expires_at, _utcnow()):
            raise invalid_token()

        user_id = stored.user_id
        self.users.update_password(user_id, self.password_hasher.hash(new_password))
        self.password_reset_tokens.delete(stored.id)

        if self.revoke_sessions_on_password_reset:
            self.logout_everywhere(user_id)

        logger.info("Password reset completed for user %s", user_id)

    def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        """
        Raises:
          AuthError(INVALID_CREDENTIALS, 401) — unknown user or wrong current password
        """
        user = self.users.find_by_id(user_id)
        if user is None or not self.password_hasher.compare(current_password, user.password_hash):
            raise invalid_credentials()

        self.users.update_password(user_id, self.password_hasher.hash(new_password))

    # ── Internals ──────────────────────────────────────────────────────────

    def _issue_session(self, user) -> LoginResult:
        """
        Signs an access + refresh pair and stores the refresh token's hash.

        The stored expiry follows the configured refresh lifetime, so the
        row and the token's own exp claim agree.
        """
        auth_user = _to_auth_user(user)
        sub = str(auth_user.id)
        access_token = self.token_signer.sign_access(sub, auth_user.email, auth_user.name)
        refresh_token = self.token_signer.sign_refresh(sub, auth_user.email, auth_user.name)

        expires_at = _utcnow() + timedelta(
            seconds=self.token_signer.get_refresh_token_max_age_seconds()
        )
        self.refresh_tokens.create(auth_user.id, hash_token(refresh_token), expires_at)

        return LoginResult(
            user=auth_user,
            access_token=access_token,
            refresh_token=refresh_token,
        )
