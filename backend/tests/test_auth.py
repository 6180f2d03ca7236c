"""
Tests for admin authentication: password check, tokens and the /api/auth routes.
"""

import base64

import pytest

from tgnsite.config import settings
from tgnsite.utils.auth import (
    check_admin_password,
    create_admin_token,
    get_password_hash,
    verify_admin_token,
    verify_password,
)


class TestPasswordHashing:
    """Tests for bcrypt password hashing."""

    def test_hash_and_verify(self):
        hashed = get_password_hash("secret")
        assert hashed != "secret"
        assert verify_password("secret", hashed)
        assert not verify_password("wrong", hashed)

    def test_invalid_hash(self):
        assert verify_password("secret", "not-a-bcrypt-hash") is False


class TestCheckAdminPassword:

    def test_plain_password(self):
        assert check_admin_password("test-admin-password") is True
        assert check_admin_password("nope") is False

    def test_hash_takes_precedence(self, monkeypatch):
        monkeypatch.setattr(settings, "admin_password_hash", get_password_hash("hashed-one"))
        assert check_admin_password("hashed-one") is True
        assert check_admin_password("test-admin-password") is False

    def test_no_password_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "admin_password", "")
        monkeypatch.setattr(settings, "admin_password_hash", "")
        assert check_admin_password("") is False


class TestLegacyToken:

    def test_token_shape(self):
        token = create_admin_token()
        assert base64.b64decode(token).decode().startswith("admin:")
        assert verify_admin_token(token) is True

    def test_any_prefixed_value_is_accepted(self):
        forged = base64.b64encode(b"admin:0").decode()
        assert verify_admin_token(forged) is True

    @pytest.mark.parametrize("token", [None, "", "%%%", base64.b64encode(b"user:123").decode()])
    def test_rejected(self, token):
        assert verify_admin_token(token) is False


class TestJwtToken:

    @pytest.fixture(autouse=True)
    def jwt_mode(self, monkeypatch):
        monkeypatch.setattr(settings, "auth_token_mode", "jwt")
        monkeypatch.setattr(settings, "secret_key", "test-secret")

    def test_round_trip(self):
        token = create_admin_token()
        assert verify_admin_token(token) is True

    def test_legacy_token_rejected(self):
        assert verify_admin_token(base64.b64encode(b"admin:0").decode()) is False

    def test_wrong_secret(self, monkeypatch):
        token = create_admin_token()
        monkeypatch.setattr(settings, "secret_key", "other-secret")
        assert verify_admin_token(token) is False


class TestAuthEndpoints:

    def test_login_sets_cookie(self, client):
        response = client.post("/api/auth", json={"password": "test-admin-password"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert verify_admin_token(data["token"])

        cookie = response.headers["set-cookie"]
        assert cookie.startswith("auth_token=")
        assert "HttpOnly" in cookie
        assert "Path=/" in cookie
        assert "samesite=strict" in cookie.lower()
        assert "Max-Age=86400" in cookie

    def test_wrong_password(self, client):
        response = client.post("/api/auth", json={"password": "wrong"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "パスワードが違います"}
        assert "set-cookie" not in response.headers

    @pytest.mark.parametrize("body", [b"not json", b"{}", b'{"password": 123}'])
    def test_bad_request(self, client, body):
        response = client.post("/api/auth", content=body,
                               headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert response.json()["error"] == "リクエストエラー"

    def test_check_authenticated(self, client, admin_cookies):
        client.cookies.update(admin_cookies)
        response = client.get("/api/auth")
        assert response.status_code == 200
        assert response.json() == {"authenticated": True}

    def test_check_unauthenticated(self, client):
        response = client.get("/api/auth")
        assert response.status_code == 401
        assert response.json() == {"authenticated": False}
