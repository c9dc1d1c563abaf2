"""
repositories/user_repository.py — Point reads and writes for User rows.

Emails are normalised (trim + lowercase) on every lookup and insert.
Each write is committed on its own.
"""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tablespot.models.user import User


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRepository:

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_by_email(self, email: str) -> User | None:
        return self._session.execute(
            select(User).where(User.email == normalize_email(email))
        ).scalar_one_or_none()

    def find_by_id(self, user_id: int) -> User | None:
        return self._session.get(User, user_id)

    def create(
            self,
            email: str,
            name: str,
            password_hash: str,
            phone: str | None = None,
    ) -> User:
        """
        Inserts a user.

        Raises IntegrityError when the email is already taken (a concurrent
        signup won the race past the service's existence check).
        """
        user = User(
            email=normalize_email(email),
            name=name,
            password_hash=password_hash,
            phone=phone,
        )
        self._session.add(user)
        try:
            self._session.commit()
        except IntegrityError:
            self._session.rollback()
            raise
        return user

    def update_password(self, user_id: int, password_hash: str) -> None:
        self._session.execute(
            update(User)
            .where(User.id == user_id)
            .values(password_hash=password_hash)
        )
        self._session.commit()
