"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - Tests run against in-memory SQLite by default, or TEST_DATABASE_URL.
  - The app is created once per session using create_app("testing") with a
    RecordingNotifier in place of SMTP, so reset tokens can be read back.
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.
  - The test client does not keep a cookie jar. Tests send the auth cookies
    they want explicitly, which makes "replay the old refresh token" cases
    straightforward.

Helper functions (not fixtures):
  - signup(client, ...)          → user dict
  - login(client, ...)           → {"user", "access_token", "refresh_token", "response"}
  - auth_headers(token)          → {"Authorization": "Bearer <token>"}
  - cookie_header(**cookies)     → {"Cookie": "name=value; ..."}
  - response_cookie(resp, name)  → value of a Set-Cookie in the response
  - make_restaurant(client, ...) → restaurant dict
"""

from __future__ import annotations

import pytest
from sqlalchemy import text

from tablespot import create_app
from tablespot.extensions import db as _db


class RecordingNotifier:
    """Keeps (email, raw_token) pairs instead of sending mail."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def send_password_reset_link(self, email: str, raw_token: str) -> None:
        self.sent.append((email, raw_token))

    def last_token_for(self, email: str) -> str:
        tokens = [token for to, token in self.sent if to == email]
        assert tokens, f"no reset link sent to {email}"
        return tokens[-1]


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

_notifier = RecordingNotifier()


@pytest.fixture(scope="session")
def app():
    flask_app = create_app("testing", notifier=_notifier)

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


@pytest.fixture
def notifier(app) -> RecordingNotifier:
    return _notifier


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """Deletes all rows after every test, children before parents."""
    yield

    _notifier.sent.clear()
    with app.app_context():
        _db.session.rollback()
        with _db.engine.connect() as conn:
            conn.execute(text("DELETE FROM comments"))
            conn.execute(text("DELETE FROM ratings"))
            conn.execute(text("DELETE FROM restaurants"))
            conn.execute(text("DELETE FROM password_reset_tokens"))
            conn.execute(text("DELETE FROM refresh_tokens"))
            conn.execute(text("DELETE FROM users"))
            conn.commit()


@pytest.fixture
def client(app):
    """Flask test client without a cookie jar."""
    return app.test_client(use_cookies=False)


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def cookie_header(**cookies: str) -> dict:
    return {"Cookie": "; ".join(f"{name}={value}" for name, value in cookies.items())}


def response_cookie(resp, name: str) -> str | None:
    """Returns the value a response sets for cookie `name`, or None."""
    for header in resp.headers.getlist("Set-Cookie"):
        key, _, rest = header.partition("=")
        if key == name:
            return rest.split(";", 1)[0]
    return None


def signup(
    client,
    name: str = "Alice",
    email: str = "a@x.com",
    password: str = "secret1",
) -> dict:
    resp = client.post(
        "/api/v1/auth/signup",
        json={"name": name, "email": email, "password": password},
    )
    assert resp.status_code == 201, f"signup failed: {resp.get_json()}"
    return resp.get_json()["data"]["user"]


def login(client, email: str = "a@x.com", password: str = "secret1") -> dict:
    resp = client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )
    assert resp.status_code == 200, f"login failed: {resp.get_json()}"
    data = resp.get_json()["data"]
    return {
        "user": data["user"],
        "access_token": data["access_token"],
        "refresh_token": response_cookie(resp, "refreshToken"),
        "response": resp,
    }


def signup_and_login(client, name: str = "Alice", email: str = "a@x.com", password: str = "secret1") -> dict:
    signup(client, name=name, email=email, password=password)
    return login(client, email=email, password=password)


def make_restaurant(client, token: str, **overrides) -> dict:
    payload = {
        "name": "Pasta Place",
        "full_address": "1 Main St",
        "phone": "555-0100",
        "cuisine_type": "italian",
    }
    payload.update(overrides)
    resp = client.post("/api/v1/restaurants", json=payload, headers=auth_headers(token))
    assert resp.status_code == 201, f"make_restaurant failed: {resp.get_json()}"
    return resp.get_json()["data"]
