"""
tests/integration/test_auth.py — Integration tests for authentication endpoints.

Endpoints covered (base /api/v1/auth):
  POST /signup, /login, /refresh, /logout, /forgot-password,
       /reset-password, /change-password
  GET  /me

Error cases:
  EMAIL_ALREADY_EXISTS   400
  INVALID_CREDENTIALS    401 — unknown email, wrong password, wrong current password
  INVALID_TOKEN          401 — bad access token, bad/used/expired reset token
  TOKEN_EXPIRED          401 — refresh token already rotated or past expiry
  REFRESH_TOKEN_REQUIRED 401 — no refresh cookie
  UNAUTHORIZED           401 — protected route without credentials
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select, update

from tablespot.extensions import db
from tablespot.models.password_reset_token import PasswordResetToken
from tablespot.models.refresh_token import RefreshToken

from .conftest import (
    auth_headers,
    cookie_header,
    login,
    response_cookie,
    signup,
    signup_and_login,
)


def _refresh(client, refresh_token: str):
    return client.post("/api/v1/auth/refresh", headers=cookie_header(refreshToken=refresh_token))


def _count(app, model) -> int:
    with app.app_context():
        return db.session.execute(select(func.count()).select_from(model)).scalar_one()


# ═══════════════════════════════════════════════════════════════════════════
# POST /auth/signup
# ═══════════════════════════════════════════════════════════════════════════

class TestSignup:

    def test_signup_returns_201_with_user_projection(self, client):
        resp = client.post("/api/v1/auth/signup", json={
            "name": "Alice", "email": "a@x.com", "password": "secret1",
        })

        assert resp.status_code == 201
        user = resp.get_json()["data"]["user"]
        assert set(user) == {"id", "email", "name"}
        assert user["email"] == "a@x.com"
        assert isinstance(user["id"], int)

    def test_signup_issues_no_cookies(self, client):
        resp = client.post("/api/v1/auth/signup", json={
            "name": "Alice", "email": "a@x.com", "password": "secret1",
        })

        assert resp.headers.getlist("Set-Cookie") == []

    def test_email_is_normalised(self, client):
        user = signup(client, email="  Mixed@Case.COM ")

        assert user["email"] == "mixed@case.com"
        login(client, email="mixed@case.com")

    def test_duplicate_email_ignores_case_and_password(self, client):
        signup(client, email="a@x.com", password="secret1")

        resp = client.post("/api/v1/auth/signup", json={
            "name": "Other", "email": "A@X.COM", "password": "different-password",
        })

        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "EMAIL_ALREADY_EXISTS"
        assert error["field"] == "email"

    def test_validation_error_reports_field_and_details(self, client):
        resp = client.post("/api/v1/auth/signup", json={"name": "Alice", "email": "a@x.com"})

        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "MISSING_FIELD"
        assert error["field"] == "password"
        assert "password" in error["details"]

    def test_short_password_is_invalid_field(self, client):
        resp = client.post("/api/v1/auth/signup", json={
            "name": "Alice", "email": "a@x.com", "password": "12345",
        })

        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_FIELD"

    def test_multibyte_password_over_72_bytes_is_invalid_field(self, client):
        resp = client.post("/api/v1/auth/signup", json={
            "name": "Alice", "email": "a@x.com", "password": "é" * 40,
        })

        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "INVALID_FIELD"
        assert error["field"] == "password"

    def test_multibyte_password_at_72_bytes_can_log_in(self, client):
        password = "é" * 36
        signup(client, password=password)

        login(client, password=password)


# ═══════════════════════════════════════════════════════════════════════════
# POST /auth/login
# ═══════════════════════════════════════════════════════════════════════════

class TestLogin:

    def test_login_sets_http_only_cookies(self, client):
        signup(client)

        resp = client.post("/api/v1/auth/login", json={"email": "a@x.com", "password": "secret1"})

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["user"]["email"] == "a@x.com"
        assert data["access_token"] == response_cookie(resp, "accessToken")
        assert "refresh_token" not in data

        cookies = {h.split("=", 1)[0]: h for h in resp.headers.getlist("Set-Cookie")}
        assert "HttpOnly" in cookies["accessToken"]
        assert "HttpOnly" in cookies["refreshToken"]
        assert "Max-Age=900" in cookies["accessToken"]
        assert "Max-Age=604800" in cookies["refreshToken"]
        assert "Path=/" in cookies["refreshToken"]

    def test_login_stores_one_refresh_row(self, app, client):
        signup_and_login(client)

        assert _count(app, RefreshToken) == 1

    def test_wrong_password_and_unknown_email_look_the_same(self, client):
        signup(client)

        wrong = client.post("/api/v1/auth/login", json={"email": "a@x.com", "password": "wrong-pw"})
        unknown = client.post("/api/v1/auth/login", json={"email": "b@x.com", "password": "secret1"})

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.get_json() == unknown.get_json()
        assert wrong.get_json()["error"]["code"] == "INVALID_CREDENTIALS"


# ═══════════════════════════════════════════════════════════════════════════
# GET /auth/me
# ═══════════════════════════════════════════════════════════════════════════

class TestMe:

    def test_me_with_cookie(self, client):
        session = signup_and_login(client)

        resp = client.get("/api/v1/auth/me", headers=cookie_header(accessToken=session["access_token"]))

        assert resp.status_code == 200
        assert resp.get_json()["data"]["user"] == session["user"]

    def test_me_with_bearer_header(self, client):
        session = signup_and_login(client)

        resp = client.get("/api/v1/auth/me", headers=auth_headers(session["access_token"]))

        assert resp.status_code == 200
        assert resp.get_json()["data"]["user"]["name"] == "Alice"

    def test_me_without_credentials_is_unauthorized(self, client):
        resp = client.get("/api/v1/auth/me")

        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "UNAUTHORIZED"

    def test_me_with_bad_token_is_invalid_token(self, client):
        resp = client.get("/api/v1/auth/me", headers=auth_headers("not-a-token"))

        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "INVALID_TOKEN"

    def test_refresh_token_cannot_authenticate(self, client):
        session = signup_and_login(client)

        resp = client.get("/api/v1/auth/me", headers=auth_headers(session["refresh_token"]))

        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "INVALID_TOKEN"


# ═══════════════════════════════════════════════════════════════════════════
# POST /auth/refresh
# ═══════════════════════════════════════════════════════════════════════════

class TestRefresh:

    def test_example_scenario_rotation_is_single_use(self, app, client):
        signup(client, email="a@x.com", password="secret1")
        original = login(client, email="a@x.com", password="secret1")["refresh_token"]

        first = _refresh(client, original)
        assert first.status_code == 200
        rotated = response_cookie(first, "refreshToken")
        assert rotated and rotated != original
        assert first.get_json()["data"]["access_token"] == response_cookie(first, "accessToken")

        replay = _refresh(client, original)
        assert replay.status_code == 401
        assert replay.get_json()["error"]["code"] == "TOKEN_EXPIRED"

        assert _refresh(client, rotated).status_code == 200
        assert _count(app, RefreshToken) == 1

    def test_missing_cookie_is_refresh_token_required(self, client):
        resp = client.post("/api/v1/auth/refresh")

        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "REFRESH_TOKEN_REQUIRED"

    def test_garbage_token_is_invalid_token(self, client):
        resp = _refresh(client, "garbage")

        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "INVALID_TOKEN"

    def test_access_token_is_not_a_refresh_token(self, client):
        session = signup_and_login(client)

        resp = _refresh(client, session["access_token"])

        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "INVALID_TOKEN"

    def test_expired_row_is_removed(self, app, client):
        session = signup_and_login(client)
        with app.app_context():
            db.session.execute(
                update(RefreshToken).values(expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
            )
            db.session.commit()

        resp = _refresh(client, session["refresh_token"])

        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "TOKEN_EXPIRED"
        assert _count(app, RefreshToken) == 0


# ═══════════════════════════════════════════════════════════════════════════
# POST /auth/logout
# ═══════════════════════════════════════════════════════════════════════════

class TestLogout:

    def test_logout_deletes_session_and_clears_cookies(self, app, client):
        session = signup_and_login(client)

        resp = client.post("/api/v1/auth/logout", headers=cookie_header(refreshToken=session["refresh_token"]))

        assert resp.status_code == 200
        assert resp.get_json() == {"data": {"ok": True}}
        assert response_cookie(resp, "accessToken") == ""
        assert response_cookie(resp, "refreshToken") == ""
        assert _count(app, RefreshToken) == 0
        assert _refresh(client, session["refresh_token"]).status_code == 401

    def test_logout_is_idempotent(self, client):
        session = signup_and_login(client)
        headers = cookie_header(refreshToken=session["refresh_token"])

        assert client.post("/api/v1/auth/logout", headers=headers).status_code == 200
        assert client.post("/api/v1/auth/logout", headers=headers).status_code == 200

    def test_logout_without_cookie_succeeds(self, client):
        assert client.post("/api/v1/auth/logout").status_code == 200


# ═══════════════════════════════════════════════════════════════════════════
# Password reset
# ═══════════════════════════════════════════════════════════════════════════

class TestPasswordReset:

    def _forgot(self, client, email: str):
        return client.post("/api/v1/auth/forgot-password", json={"email": email})

    def test_known_and_unknown_emails_get_the_same_answer(self, app, client, notifier):
        signup(client)

        known = self._forgot(client, "a@x.com")
        unknown = self._forgot(client, "nobody@x.com")

        assert known.status_code == unknown.status_code == 200
        assert known.get_json() == unknown.get_json()
        assert [email for email, _ in notifier.sent] == ["a@x.com"]
        assert _count(app, PasswordResetToken) == 1

    def test_reset_sets_new_password_and_is_single_use(self, client, notifier):
        signup(client)
        self._forgot(client, "a@x.com")
        token = notifier.last_token_for("a@x.com")

        resp = client.post("/api/v1/auth/reset-password", json={"token": token, "new_password": "brandnew1"})
        assert resp.status_code == 200

        login(client, password="brandnew1")
        old = client.post("/api/v1/auth/login", json={"email": "a@x.com", "password": "secret1"})
        assert old.status_code == 401

        reuse = client.post("/api/v1/auth/reset-password", json={"token": token, "new_password": "another1"})
        assert reuse.status_code == 401
        assert reuse.get_json()["error"]["code"] == "INVALID_TOKEN"

    def test_expired_reset_token_is_invalid(self, app, client, notifier):
        signup(client)
        self._forgot(client, "a@x.com")
        token = notifier.last_token_for("a@x.com")
        with app.app_context():
            db.session.execute(
                update(PasswordResetToken).values(expires_at=datetime.now(timezone.utc) - timedelta(seconds=1))
            )
            db.session.commit()

        resp = client.post("/api/v1/auth/reset-password", json={"token": token, "new_password": "brandnew1"})

        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "INVALID_TOKEN"
        login(client, password="secret1")

    def test_unknown_reset_token_is_invalid(self, client):
        resp = client.post("/api/v1/auth/reset-password", json={"token": "nope", "new_password": "brandnew1"})

        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "INVALID_TOKEN"

    def test_reset_keeps_existing_sessions_by_default(self, client, notifier):
        session = signup_and_login(client)
        self._forgot(client, "a@x.com")
        token = notifier.last_token_for("a@x.com")

        client.post("/api/v1/auth/reset-password", json={"token": token, "new_password": "brandnew1"})

        assert _refresh(client, session["refresh_token"]).status_code == 200

    def test_every_outstanding_reset_token_stays_usable(self, client, notifier):
        signup(client)
        self._forgot(client, "a@x.com")
        self._forgot(client, "a@x.com")
        first, second = [token for _, token in notifier.sent]
        assert first != second

        resp = client.post("/api/v1/auth/reset-password", json={"token": first, "new_password": "brandnew1"})
        assert resp.status_code == 200
        resp = client.post("/api/v1/auth/reset-password", json={"token": second, "new_password": "brandnew2"})
        assert resp.status_code == 200

        login(client, password="brandnew2")

    def test_multibyte_new_password_over_72_bytes_is_invalid_field(self, app, client, notifier):
        signup(client)
        self._forgot(client, "a@x.com")
        token = notifier.last_token_for("a@x.com")

        resp = client.post("/api/v1/auth/reset-password", json={"token": token, "new_password": "é" * 40})

        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "INVALID_FIELD"
        assert error["field"] == "new_password"
        assert _count(app, PasswordResetToken) == 1
        login(client, password="secret1")


# ═══════════════════════════════════════════════════════════════════════════
# POST /auth/change-password
# ═══════════════════════════════════════════════════════════════════════════

class TestChangePassword:

    def test_change_password_success(self, client):
        session = signup_and_login(client)

        resp = client.post(
            "/api/v1/auth/change-password",
            json={"current_password": "secret1", "new_password": "changed1"},
            headers=auth_headers(session["access_token"]),
        )

        assert resp.status_code == 200
        login(client, password="changed1")

    def test_wrong_current_password_keeps_old_password(self, client):
        session = signup_and_login(client)

        resp = client.post(
            "/api/v1/auth/change-password",
            json={"current_password": "wrong-pw", "new_password": "changed1"},
            headers=auth_headers(session["access_token"]),
        )

        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "INVALID_CREDENTIALS"
        login(client, password="secret1")

    def test_change_password_requires_auth(self, client):
        resp = client.post(
            "/api/v1/auth/change-password",
            json={"current_password": "secret1", "new_password": "changed1"},
        )

        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "UNAUTHORIZED"


# ═══════════════════════════════════════════════════════════════════════════
# App-level behaviour
# ═══════════════════════════════════════════════════════════════════════════

class TestAppLevel:

    def test_health(self, client):
        resp = client.get("/api/v1/health")

        assert resp.status_code == 200
        assert resp.get_json() == {"data": {"ok": True}}

    def test_unknown_route_uses_error_envelope(self, client):
        resp = client.get("/api/v1/does-not-exist")

        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "NOT_FOUND"

    def test_request_id_is_echoed(self, client):
        resp = client.get("/api/v1/health", headers={"X-Request-ID": "req-123"})

        assert resp.headers["X-Request-ID"] == "req-123"

    def test_request_id_is_generated(self, client):
        resp = client.get("/api/v1/health")

        assert resp.headers["X-Request-ID"]

    def test_cors_reflects_origin_with_credentials(self, client):
        resp = client.get("/api/v1/health", headers={"Origin": "http://localhost:5173"})

        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
        assert resp.headers["Access-Control-Allow-Credentials"] == "true"
