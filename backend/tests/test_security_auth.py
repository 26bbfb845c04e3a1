"""Security tests: token handling, protected routes, headers and rate limiting."""

import pytest
from fastapi_users.jwt import generate_jwt

from tests.conftest import login_user, make_talent, register_user, token_headers
from matildus.platform.config import settings


def _token(user_id, *, secret=None, lifetime=600):
    return generate_jwt({"sub": str(user_id), "aud": ["fastapi-users:auth"]}, secret or settings.SECRET_KEY, lifetime)


@pytest.mark.security
class TestAuthSecurity:
    """JWT handling, route protection and abuse limits."""

    def test_valid_token_is_accepted(self, client, db):
        talent = make_talent(db)
        assert client.get("/api/v1/users/me", headers=token_headers(talent)).status_code == 200

    def test_jwt_wrong_secret(self, client, db):
        talent = make_talent(db)
        token = _token(talent.id, secret="not-the-real-secret")
        resp = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_expired_jwt_401(self, client, db):
        talent = make_talent(db)
        token = _token(talent.id, lifetime=-60)
        resp = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_token_for_unknown_user_401(self, client):
        resp = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {_token(999999)}"})
        assert resp.status_code == 401

    def test_bearer_prefix_required(self, client, db):
        talent = make_talent(db)
        resp = client.get("/api/v1/users/me", headers={"Authorization": _token(talent.id)})
        assert resp.status_code == 401

    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/api/v1/feed/jobs"),
            ("post", "/api/v1/swipes/jobs"),
            ("post", "/api/v1/offers/1/respond"),
            ("post", "/api/v1/borrow-offers/1/accept"),
            ("get", "/api/v1/orgs/1/circles"),
            ("post", "/api/v1/release-offers/1/take"),
            ("get", "/api/v1/candidate-jobs/saved"),
        ],
    )
    def test_protected_endpoints_require_auth(self, client, method, path):
        resp = getattr(client, method)(path)
        assert resp.status_code == 401

    def test_registration_no_password_leak(self, client):
        resp = register_user(client, email="leak@test.com")
        body = resp.json()
        assert "password" not in body
        assert "hashed_password" not in body

    def test_login_rate_limited(self, client):
        register_user(client, email="limit@test.com")
        statuses = [login_user(client, "limit@test.com", password="WrongPass123!").status_code for _ in range(10)]
        # Registration used one slot of the auth window.
        assert statuses[:9] == [400] * 9
        assert statuses[9] == 429
