"""Tests for the authentication endpoints and session handling."""

from dataclasses import replace
from datetime import timedelta

import pytest

from conftest import PASSWORD, auth_headers, register
from sincut.auth.local import auth_service
from sincut.auth.models import UserAccount
from sincut.auth.tokens import TokenConfig, TokenIssuer
from sincut.errors import InvalidSession, InvalidToken
from sincut.settings import settings
from sincut.storage.db import db

COOKIE = settings.refresh_cookie_name


class TestRegister:
    """Tests for POST /api/auth/register."""

    def test_register_without_referral(self, client):
        response = register(client, "alice@example.com", name="Alice")

        assert response.status_code == 201
        data = response.json()
        assert data["accessToken"]
        assert data["referralBonus"] is None
        user = data["user"]
        assert user["coins"] == 0
        assert user["divineCoins"] == 0
        assert user["referralCode"].startswith("ALI-")
        assert user["referredById"] is None
        assert "passwordHash" not in user
        assert "refreshToken" not in user
        assert client.cookies.get(COOKIE)

    def test_referral_codes_unique(self, client):
        codes = {
            register(client, f"user{i}@example.com").json()["user"]["referralCode"]
            for i in range(5)
        }
        assert len(codes) == 5

    def test_duplicate_email(self, client):
        register(client, "alice@example.com")

        response = register(client, "Alice@Example.com")

        assert response.status_code == 400
        assert response.json()["detail"] == "User already exists"

    def test_missing_consent(self, client):
        response = client.post("/api/auth/register", json={
            "email": "bob@example.com",
            "password": PASSWORD,
        })

        assert response.status_code == 400
        assert "privacy policy" in response.json()["detail"]

    def test_missing_fields(self, client):
        response = client.post("/api/auth/register", json={"agreedToPrivacyPolicy": True})

        assert response.status_code == 400
        assert response.json()["detail"] == "Email and password are required"

    def test_malformed_email(self, client):
        response = client.post("/api/auth/register", json={
            "email": "not-an-email",
            "password": PASSWORD,
            "agreedToPrivacyPolicy": True,
        })

        assert response.status_code == 400


class TestLogin:
    """Tests for POST /api/auth/login."""

    def test_login_success(self, client):
        register(client, "alice@example.com")
        client.cookies.clear()

        response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD})

        assert response.status_code == 200
        assert response.json()["accessToken"]
        assert client.cookies.get(COOKIE)

    def test_wrong_password(self, client):
        register(client, "alice@example.com")

        response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_unknown_email(self, client):
        response = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})

        assert response.status_code == 401

    def test_login_invalidates_previous_refresh_token(self, client):
        register(client, "alice@example.com")
        old_token = client.cookies.get(COOKIE)

        client.post("/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD})

        with pytest.raises(InvalidSession):
            auth_service.verify_session(old_token)


class TestMe:
    """Tests for GET /api/auth/me."""

    def test_me(self, client, registered):
        data, headers = registered

        response = client.get("/api/auth/me", headers=headers)

        assert response.status_code == 200
        assert response.json()["email"] == "alice@example.com"

    def test_no_token(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Not authorized, no token"

    def test_bad_token(self, client):
        response = client.get("/api/auth/me", headers=auth_headers("garbage"))

        assert response.status_code == 401

    def test_refresh_token_not_accepted_as_bearer(self, client, registered):
        response = client.get("/api/auth/me", headers=auth_headers(client.cookies.get(COOKIE)))

        assert response.status_code == 401

    def test_deleted_user(self, client, registered):
        data, headers = registered
        with db.session() as session:
            session.query(UserAccount).filter(UserAccount.id == data["user"]["id"]).delete()

        response = client.get("/api/auth/me", headers=headers)

        assert response.status_code == 404


class TestRefreshAndLogout:
    """Tests for refresh-token rotation and logout."""

    def test_refresh_rotates(self, client, registered):
        old_token = client.cookies.get(COOKIE)

        response = client.post("/api/auth/refresh-token")

        assert response.status_code == 200
        assert response.json()["accessToken"]
        new_token = client.cookies.get(COOKIE)
        assert new_token and new_token != old_token

        # Old token no longer matches the stored session
        with pytest.raises(InvalidSession):
            auth_service.verify_session(old_token)
        assert auth_service.verify_session(new_token).user_id == response.json()["user"]["id"]

    def test_refresh_without_cookie(self, client):
        response = client.post("/api/auth/refresh-token")

        assert response.status_code == 401

    def test_tampered_refresh_token(self, client, registered):
        data, _ = registered
        stored = client.cookies.get(COOKIE)
        client.cookies.clear()
        client.cookies.set(COOKIE, stored[:-4] + "abcd")

        response = client.post("/api/auth/refresh-token")

        assert response.status_code == 401
        assert "Max-Age=0" in response.headers.get("set-cookie", "")
        # No rotation happened: the stored token is still the original one
        assert auth_service.verify_session(stored).user_id == data["user"]["id"]

    def test_expired_refresh_token(self, client, registered):
        data, _ = registered
        stored = client.cookies.get(COOKIE)
        expired_issuer = TokenIssuer(replace(
            TokenConfig.from_settings(settings),
            refresh_ttl=timedelta(seconds=-10),
        ))
        client.cookies.clear()
        client.cookies.set(COOKIE, expired_issuer.issue_refresh_token(data["user"]["id"], "user"))

        response = client.post("/api/auth/refresh-token")

        assert response.status_code == 401
        assert "Max-Age=0" in response.headers.get("set-cookie", "")
        with db.session() as session:
            assert session.get(UserAccount, data["user"]["id"]).refresh_token == stored

    def test_reused_refresh_token(self, client, registered):
        old_token = client.cookies.get(COOKIE)
        client.post("/api/auth/refresh-token")
        client.cookies.clear()
        client.cookies.set(COOKIE, old_token)

        response = client.post("/api/auth/refresh-token")

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid session"

    def test_logout_invalidates_session(self, client, registered):
        token = client.cookies.get(COOKIE)

        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        assert not client.cookies.get(COOKIE)
        with pytest.raises(InvalidSession):
            auth_service.verify_session(token)

        client.cookies.clear()
        client.cookies.set(COOKIE, token)
        assert client.post("/api/auth/refresh-token").status_code == 401

    def test_logout_with_rotated_token_keeps_current_session(self, client, registered):
        old_token = client.cookies.get(COOKIE)
        client.post("/api/auth/refresh-token")
        current_token = client.cookies.get(COOKIE)
        client.cookies.clear()
        client.cookies.set(COOKIE, old_token)

        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        data, _ = registered
        assert auth_service.verify_session(current_token).user_id == data["user"]["id"]

    def test_logout_without_cookie(self, client):
        response = client.post("/api/auth/logout")

        assert response.status_code == 200

    def test_verify_session_garbage(self):
        with pytest.raises(InvalidToken):
            auth_service.verify_session("garbage")
