"""
Tests for authentication endpoints and token handling
"""

import pytest
from jose import jwt

from vidshare.auth import create_access_token, decode_token
from vidshare.config import get_settings
from vidshare.core.exceptions import InvalidToken, TokenExpired
from vidshare.models.user import User


class TestTokens:
    """Issue and verify access tokens"""

    def test_round_trip_claims(self, test_user):
        """A fresh token carries the user id and role"""
        payload = decode_token(create_access_token(test_user.id, test_user.role))
        assert payload.sub == test_user.id
        assert payload.role == "USER"
        assert payload.exp > payload.iat

    def test_default_lifetime_is_one_day(self, test_user):
        payload = decode_token(create_access_token(test_user.id, test_user.role))
        assert payload.exp - payload.iat == 24 * 60 * 60

    def test_expired_token(self, test_user):
        token = create_access_token(test_user.id, test_user.role, expires_minutes=-1)
        with pytest.raises(TokenExpired):
            decode_token(token)

    def test_tampered_token(self, test_user):
        token = create_access_token(test_user.id, test_user.role)
        with pytest.raises(InvalidToken):
            decode_token(token[:-2] + ("A" if token[-2] != "A" else "B") + token[-1])

    def test_wrong_secret(self, test_user):
        settings = get_settings()
        token = jwt.encode(
            {"sub": str(test_user.id), "role": "USER", "exp": 9999999999, "type": "access"},
            "not-the-secret",
            algorithm=settings.algorithm,
        )
        with pytest.raises(InvalidToken):
            decode_token(token)

    def test_non_access_token_rejected(self, test_user):
        settings = get_settings()
        token = jwt.encode(
            {"sub": str(test_user.id), "role": "USER", "exp": 9999999999, "type": "refresh"},
            settings.secret_key,
            algorithm=settings.algorithm,
        )
        with pytest.raises(InvalidToken):
            decode_token(token)


class TestAuthAPI:
    """Test authentication API endpoints"""

    def test_register_creates_regular_user(self, client, db):
        response = client.post(
            "/api/auth/register",
            data={
                "first_name": "Ada",
                "last_name": "Lovelace",
                "email": "Ada@Example.com",
                "password": "engine42",
                "role": "SUPER_ADMIN",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["token"]
        assert data["user"]["email"] == "ada@example.com"
        assert data["user"]["role"] == "USER"
        assert data["user"]["is_admin"] is False
        assert db.query(User).filter(User.email == "ada@example.com").one().role == "USER"

    def test_register_with_profile_picture(self, client, store):
        response = client.post(
            "/api/auth/register",
            data={"first_name": "Ada", "last_name": "L", "email": "ada@example.com", "password": "engine42"},
            files={"profile_picture": ("me.png", b"\x89PNG fake", "image/png")},
        )
        assert response.status_code == 201
        url = response.json()["user"]["profile_picture"]
        assert url.startswith("/uploads/profile-")
        assert store.path_for(url).exists()

    def test_register_duplicate_email(self, client, test_user):
        response = client.post(
            "/api/auth/register",
            data={"first_name": "A", "last_name": "B", "email": test_user.email, "password": "secret123"},
        )
        assert response.status_code == 409
        assert response.json()["error"] == "EMAIL_IN_USE"

    def test_register_short_password(self, client):
        response = client.post(
            "/api/auth/register",
            data={"first_name": "A", "last_name": "B", "email": "a@b.com", "password": "123"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_login_success(self, client, test_user):
        response = client.post("/api/auth/login", json={"email": test_user.email, "password": "secret123"})
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["id"] == test_user.id
        assert decode_token(data["token"]).sub == test_user.id

    def test_login_invalid_password(self, client, test_user):
        response = client.post("/api/auth/login", json={"email": test_user.email, "password": "wrong-one"})
        assert response.status_code == 401
        assert response.json() == {"error": "INVALID_CREDENTIALS", "message": "Invalid credentials"}

    def test_login_banned_user(self, client, make_user):
        banned = make_user(is_banned=True)
        response = client.post("/api/auth/login", json={"email": banned.email, "password": "secret123"})
        assert response.status_code == 403
        assert response.json()["error"] == "ACCOUNT_BANNED"

    def test_admin_login_rejects_regular_user(self, client, test_user):
        response = client.post("/api/auth/admin/login", json={"email": test_user.email, "password": "secret123"})
        assert response.status_code == 401

    def test_admin_login(self, client, admin_user):
        response = client.post("/api/auth/admin/login", json={"email": admin_user.email, "password": "secret123"})
        assert response.status_code == 200
        assert response.json()["user"]["is_admin"] is True

    def test_me(self, client, test_user, auth_headers):
        response = client.get("/api/auth/me", headers=auth_headers(test_user))
        assert response.status_code == 200
        assert response.json()["email"] == test_user.email

    def test_me_without_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["error"] == "AUTHENTICATION_REQUIRED"

    def test_me_with_expired_token(self, client, test_user):
        token = create_access_token(test_user.id, test_user.role, expires_minutes=-5)
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"] == "TOKEN_EXPIRED"

    def test_token_for_deleted_user(self, client):
        token = create_access_token(424242, "USER")
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_TOKEN"


class TestBannedUsers:
    """A banned account is refused on every authenticated route, even with a valid token"""

    def test_banned_user_cannot_interact(self, client, make_user, video, auth_headers):
        banned = make_user(is_banned=True)
        response = client.post(
            "/api/interactions/like",
            json={"video_id": video.id},
            headers=auth_headers(banned),
        )
        assert response.status_code == 403
        assert response.json()["error"] == "ACCOUNT_BANNED"

    def test_ban_takes_effect_for_existing_token(self, client, db, test_user, video, auth_headers):
        headers = auth_headers(test_user)
        test_user.is_banned = True
        db.commit()
        response = client.post(
            "/api/interactions/comment",
            json={"video_id": video.id, "text": "hello"},
            headers=headers,
        )
        assert response.status_code == 403
