"""
lib/notifier.py — Out-of-band delivery of password-reset links.

EmailPasswordResetNotifier sends a plain-text + HTML message over SMTP with
aiosmtplib. The application is synchronous, so each send runs its own short
event loop. When no SMTP host is configured the message is skipped with a
warning; the link itself is never logged because it carries the raw token.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol
from urllib.parse import quote

import aiosmtplib

logger = logging.getLogger(__name__)


class PasswordResetNotifier(Protocol):

    def send_password_reset_link(self, email: str, raw_token: str) -> None:
        ...


@dataclass(frozen=True)
class SMTPSettings:
    host: str | None
    port: int = 587
    username: str | None = None
    password: str | None = None
    use_tls: bool = False
    from_email: str | None = None
    timeout: int = 10

    @classmethod
    def from_config(cls, config) -> SMTPSettings:
        return cls(
            host=config.get("SMTP_HOST"),
            port=config.get("SMTP_PORT", 587),
            username=config.get("SMTP_USER"),
            password=config.get("SMTP_PASS"),
            use_tls=config.get("SMTP_USE_TLS", False),
            from_email=config.get("SMTP_FROM"),
        )


def build_reset_url(frontend_url: str, raw_token: str) -> str:
    return f"{frontend_url.rstrip('/')}/reset-password?token={quote(raw_token, safe='')}"


class EmailPasswordResetNotifier:

    def __init__(self, settings: SMTPSettings, frontend_url: str, link_ttl_minutes: int = 60) -> None:
        self.settings = settings
        self.frontend_url = frontend_url
        self.link_ttl_minutes = link_ttl_minutes

    @property
    def sender(self) -> str:
        return self.settings.from_email or self.settings.username or "noreply@tablespot.local"

    def build_message(self, email: str, raw_token: str) -> EmailMessage:
        reset_url = build_reset_url(self.frontend_url, raw_token)
        expiry = f"The link expires in {self.link_ttl_minutes} minutes."

        message = EmailMessage()
        message["Subject"] = "Reset your password"
        message["From"] = self.sender
        message["To"] = email
        message.set_content(f"Use this link to reset your password: {reset_url}. {expiry}")
        message.add_alternative(
            f'<p>Use this link to reset your password: <a href="{reset_url}">{reset_url}</a></p>'
            f"<p>{expiry}</p>",
            subtype="html",
        )
        return message

    def send_password_reset_link(self, email: str, raw_token: str) -> None:
        if not self.settings.host:
            logger.warning("SMTP not configured; skipping password reset email to %s", email)
            return

        message = self.build_message(email, raw_token)
        asyncio.run(
            aiosmtplib.send(
                message,
                hostname=self.settings.host,
                port=self.settings.port,
                username=self.settings.username,
                password=self.settings.password,
                use_tls=self.settings.use_tls,
                timeout=self.settings.timeout,
            )
        )
        logger.info("Password reset email sent to %s", email)
