"""
Authentication, request guards and health check.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from tracker.models import db
from tracker.models.auth import ROLE_FIELD, STATUS_INACTIVE, User

from tests.conftest import PASSWORD, make_user

LOGIN = "/api/v1/auth/login"
ME = "/api/v1/auth/me"


class TestLogin:
    def test_login_returns_token_and_profile(self, client, field_user, project):
        res = client.post(LOGIN, json={"email": "field@test.org", "password": PASSWORD})
        assert res.status_code == 200
        body = res.get_json()
        assert body["tokenType"] == "Bearer"
        assert body["expiresIn"] > 0
        assert body["user"]["email"] == "field@test.org"
        assert body["user"]["projects"][0]["slug"] == "media-integrity"

        me = client.get(ME, headers={"Authorization": f"Bearer {body['accessToken']}"})
        assert me.status_code == 200
        assert me.get_json()["id"] == field_user.id

    def test_login_records_last_login(self, client, field_user):
        client.post(LOGIN, json={"email": "field@test.org", "password": PASSWORD})
        assert db.session.get(User, field_user.id).last_login_at is not None

    def test_email_is_case_insensitive(self, client, field_user):
        res = client.post(LOGIN, json={"email": "  FIELD@Test.org ", "password": PASSWORD})
        assert res.status_code == 200

    @pytest.mark.parametrize("email,password", [
        ("field@test.org", "wrong-password"),
        ("nobody@test.org", PASSWORD),
        ("not an email", PASSWORD),
    ])
    def test_bad_credentials(self, client, field_user, email, password):
        res = client.post(LOGIN, json={"email": email, "password": password})
        assert res.status_code == 401
        assert res.get_json()["error"] == "Invalid email or password"
        assert res.get_json()["code"] == "ERR_UNAUTHORIZED"

    def test_missing_fields(self, client):
        assert client.post(LOGIN, json={"email": "field@test.org"}).status_code == 400

    def test_inactive_user(self, client):
        make_user("gone@test.org", ROLE_FIELD, status=STATUS_INACTIVE)
        res = client.post(LOGIN, json={"email": "gone@test.org", "password": PASSWORD})
        assert res.status_code == 401
        assert res.get_json()["error"] == "Account is not active"


class TestBearerToken:
    def test_missing_token(self, client):
        res = client.get(ME)
        assert res.status_code == 401
        assert res.get_json()["error"] == "Missing bearer token"

    def test_garbage_token(self, client):
        res = client.get(ME, headers={"Authorization": "Bearer not.a.jwt"})
        assert res.status_code == 401

    def test_expired_token(self, app, client, field_user):
        past = datetime.now(timezone.utc) - timedelta(hours=9)
        token = jwt.encode(
            {"sub": str(field_user.id), "type": "access", "iat": past, "exp": past + timedelta(hours=8)},
            app.config["JWT_SECRET_KEY"],
            algorithm="HS256",
        )
        res = client.get(ME, headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401
        assert res.get_json()["error"] == "Token expired"

    def test_token_signed_with_other_key(self, client, field_user):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": str(field_user.id), "type": "access", "iat": now, "exp": now + timedelta(hours=1)},
            "some-other-secret-that-is-long-enough",
            algorithm="HS256",
        )
        assert client.get(ME, headers={"Authorization": f"Bearer {token}"}).status_code == 401

    def test_me_profile(self, client, manager_headers, project):
        body = client.get(ME, headers=manager_headers).get_json()
        assert body["email"] == "manager@test.org"
        assert body["role"] == "MANAGER"
        assert [p["slug"] for p in body["projects"]] == ["media-integrity"]


class TestRequestGuards:
    def test_non_json_body_rejected(self, client, field_headers):
        res = client.post(
            "/api/v1/activities", data="title=x", content_type="text/plain", headers=field_headers,
        )
        assert res.status_code == 415
        assert res.get_json()["code"] == "ERR_UNSUPPORTED_MEDIA"

    def test_oversized_body_rejected(self, app, client, field_headers):
        limit = app.config["MAX_CONTENT_LENGTH"]
        res = client.post(
            "/api/v1/activities",
            data="x" * (limit + 1),
            content_type="application/json",
            headers=field_headers,
        )
        assert res.status_code == 413

    def test_unknown_route_is_json_404(self, client, field_headers):
        res = client.get("/api/v1/nowhere", headers=field_headers)
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"

    def test_method_not_allowed(self, client, field_headers):
        res = client.patch("/api/v1/activities", json={}, headers=field_headers)
        assert res.status_code == 405

    def test_security_headers(self, client):
        res = client.get("/api/v1/health")
        assert res.headers["X-Content-Type-Options"] == "nosniff"
        assert res.headers["X-Frame-Options"] == "DENY"
        assert res.headers["Cache-Control"] == "no-store"


class TestHealth:
    def test_health_is_public(self, client):
        res = client.get("/api/v1/health")
        assert res.status_code == 200
        body = res.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "ok"
        assert body["checks"]["app"]["testing"] is True
