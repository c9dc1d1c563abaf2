"""
container.py — Composition root.

Builds the auth collaborators once per app from app.config and stores them
in app.extensions["tablespot"]. Routes and middleware reach them through
get_container(); services never do.

Repositories are bound to db.session, which Flask-SQLAlchemy scopes to the
current app context, so a single container serves every request.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import Flask, current_app

from tablespot.extensions import db
from tablespot.lib.notifier import (
    EmailPasswordResetNotifier,
    PasswordResetNotifier,
    SMTPSettings,
)
from tablespot.lib.password_hasher import BcryptPasswordHasher
from tablespot.lib.token_signer import TokenSigner
from tablespot.repositories.token_repository import (
    PasswordResetTokenRepository,
    RefreshTokenRepository,
)
from tablespot.repositories.user_repository import UserRepository
from tablespot.services.auth_service import AuthService

EXTENSION_KEY = "tablespot"


@dataclass
class Container:
    token_signer: TokenSigner
    password_hasher: BcryptPasswordHasher
    notifier: PasswordResetNotifier
    users: UserRepository
    refresh_tokens: RefreshTokenRepository
    password_reset_tokens: PasswordResetTokenRepository
    auth_service: AuthService


def build_container(app: Flask, notifier: PasswordResetNotifier | None = None) -> Container:
    config = app.config

    token_signer = TokenSigner(
        secret=config["JWT_SECRET_KEY"],
        access_expires_in=config["JWT_EXPIRES_IN"],
        refresh_expires_in=config["JWT_REFRESH_EXPIRES_IN"],
        algorithm=config.get("JWT_ALGORITHM", "HS256"),
    )
    password_hasher = BcryptPasswordHasher(rounds=config["BCRYPT_LOG_ROUNDS"])

    reset_ttl = config["PASSWORD_RESET_EXPIRES"]
    if notifier is None:
        notifier = EmailPasswordResetNotifier(
            SMTPSettings.from_config(config),
            frontend_url=config["FRONTEND_URL"],
            link_ttl_minutes=int(reset_ttl.total_seconds() // 60),
        )

    users = UserRepository(db.session)
    refresh_tokens = RefreshTokenRepository(db.session)
    password_reset_tokens = PasswordResetTokenRepository(db.session)

    auth_service = AuthService(
        users=users,
        refresh_tokens=refresh_tokens,
        password_reset_tokens=password_reset_tokens,
        token_signer=token_signer,
        password_hasher=password_hasher,
        notifier=notifier,
        password_reset_ttl=reset_ttl,
        revoke_sessions_on_password_reset=config["REVOKE_SESSIONS_ON_PASSWORD_RESET"],
    )

    return Container(
        token_signer=token_signer,
        password_hasher=password_hasher,
        notifier=notifier,
        users=users,
        refresh_tokens=refresh_tokens,
        password_reset_tokens=password_reset_tokens,
        auth_service=auth_service,
    )


def get_container() -> Container:
    return current_app.extensions[EXTENSION_KEY]
