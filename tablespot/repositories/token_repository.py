"""
repositories/token_repository.py — Hashed opaque-token stores.

One generic store, instantiated for refresh tokens and for password-reset
tokens. Rows hold only the SHA-256 digest of the raw token; lookups join
the owning user so the service needs a single round trip.

Every operation is one committed statement:
  create(user_id, token_hash, expires_at) -> row id
  find_by_token_hash(token_hash)          -> row (with .user) or None
  delete(token_id)                        -> affected row count (0 or 1)

delete() is a conditional delete. A caller that needs exactly-once
semantics (refresh rotation) checks for a count of 1; deleting an id that
no longer exists returns 0 and never raises.
"""

from __future__ import annotations

from datetime import datetime
from typing import Generic, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, joinedload

from tablespot.models.password_reset_token import PasswordResetToken
from tablespot.models.refresh_token import RefreshToken

TokenModel = TypeVar("TokenModel", RefreshToken, PasswordResetToken)


class TokenRepository(Generic[TokenModel]):

    model: type[TokenModel]

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, user_id: int, token_hash: str, expires_at: datetime) -> int:
        record = self.model(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
        )
        self._session.add(record)
        self._session.commit()
        return record.id

    def find_by_token_hash(self, token_hash: str) -> TokenModel | None:
        return self._session.execute(
            select(self.model)
            .options(joinedload(self.model.user))
            .where(self.model.token_hash == token_hash)
            .limit(1)
        ).scalars().first()

    def delete(self, token_id: int) -> int:
        result = self._session.execute(
            delete(self.model).where(self.model.id == token_id)
        )
        self._session.commit()
        return result.rowcount


class RefreshTokenRepository(TokenRepository[RefreshToken]):
    model = RefreshToken

    def delete_by_user_id(self, user_id: int) -> int:
        """Ends every session of a user. Returns the number of rows removed."""
        result = self._session.execute(
            delete(RefreshToken).where(RefreshToken.user_id == user_id)
        )
        self._session.commit()
        return result.rowcount


class PasswordResetTokenRepository(TokenRepository[PasswordResetToken]):
    model = PasswordResetToken
