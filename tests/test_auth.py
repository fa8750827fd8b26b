from datetime import datetime, timedelta, timezone

import jwt
from fastapi.testclient import TestClient
from redis.exceptions import RedisError

from conftest import ACCESS_SECRET, REFRESH_SECRET, signup
from storefront.main import create_app
from storefront.models.user import User
from storefront.services.token_service import ACCESS_COOKIE, REFRESH_COOKIE, refresh_token_key


def expired_access_token(user_id):
    payload = {"userId": user_id, "exp": datetime.now(timezone.utc) - timedelta(minutes=1)}
    return jwt.encode(payload, ACCESS_SECRET, algorithm="HS256")


def use_cookies(client, **cookies):
    client.cookies.clear()
    for name, value in cookies.items():
        client.cookies.set(name, value)


class TestSignup:

    def test_signup_sets_both_cookies(self, client):
        response = client.post("/api/auth/signup", json={"name": "Bob", "email": "bob@shop.io", "password": "secret"})
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Bob"
        assert data["email"] == "bob@shop.io"
        assert data["role"] == "user"
        assert "_id" in data
        assert "password" not in data
        assert response.cookies.get(ACCESS_COOKIE)
        assert response.cookies.get(REFRESH_COOKIE)

    def test_signup_existing_email_is_rejected(self, app, client):
        signup(client, email="dup@shop.io")
        response = client.post("/api/auth/signup", json={"name": "Other", "email": "dup@shop.io", "password": "x"})
        assert response.status_code == 400
        assert response.json()["message"] == "User already exists"

        db = app.state.session_factory()
        try:
            assert db.query(User).filter(User.email == "dup@shop.io").count() == 1
        finally:
            db.close()

    def test_signup_missing_fields(self, client):
        response = client.post("/api/auth/signup", json={"email": "nobody@shop.io"})
        assert response.status_code == 400

    def test_signup_with_long_password(self, client):
        password = "correct horse battery staple " * 3
        assert len(password.encode()) > 72

        signup(client, email="long@shop.io", password=password)
        client.cookies.clear()

        response = client.post("/api/auth/login", json={"email": "long@shop.io", "password": password})
        assert response.status_code == 200
        bad = client.post("/api/auth/login", json={"email": "long@shop.io", "password": "correct horse"})
        assert bad.status_code == 400

    def test_refresh_token_is_stored_in_cache(self, app, client):
        user = signup(client, email="cache@shop.io")
        cache = app.state.cache
        assert cache._store[refresh_token_key(user["_id"])] == client.cookies.get(REFRESH_COOKIE)


class TestLogin:

    def test_login_then_profile(self, client):
        created = signup(client)
        client.cookies.clear()

        response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "pw"})
        assert response.status_code == 200
        data = response.json()
        assert data == {"_id": created["_id"], "name": "Alice", "email": "a@x.com", "role": "user"}
        assert response.cookies.get(ACCESS_COOKIE)
        assert response.cookies.get(REFRESH_COOKIE)

        profile = client.get("/api/auth/profile")
        assert profile.status_code == 200
        assert profile.json() == data

    def test_login_wrong_password(self, client):
        signup(client)
        client.cookies.clear()
        response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "nope"})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid email or password"

    def test_login_unknown_email(self, client):
        response = client.post("/api/auth/login", json={"email": "ghost@shop.io", "password": "pw"})
        assert response.status_code == 400


class TestProtectedRoutes:

    def test_no_tokens(self, client):
        response = client.get("/api/auth/profile")
        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized - No tokens provided"

    def test_malformed_access_token(self, client, user):
        use_cookies(client, **{ACCESS_COOKIE: "not-a-jwt"})
        response = client.get("/api/auth/profile")
        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized - Invalid token"

    def test_access_token_signed_with_wrong_secret(self, client, user):
        forged = jwt.encode(
            {"userId": user["_id"], "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "someone-elses-secret",
            algorithm="HS256"
        )
        use_cookies(client, **{ACCESS_COOKIE: forged, REFRESH_COOKIE: client.cookies.get(REFRESH_COOKIE)})
        response = client.get("/api/auth/profile")
        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized - Invalid token"

    def test_expired_access_token_is_silently_refreshed(self, client, user):
        refresh = client.cookies.get(REFRESH_COOKIE)
        use_cookies(client, **{ACCESS_COOKIE: expired_access_token(user["_id"]), REFRESH_COOKIE: refresh})

        response = client.get("/api/auth/profile")
        assert response.status_code == 200
        assert response.json()["_id"] == user["_id"]

        new_access = response.cookies.get(ACCESS_COOKIE)
        assert new_access
        assert jwt.decode(new_access, ACCESS_SECRET, algorithms=["HS256"])["userId"] == user["_id"]

    def test_missing_access_cookie_uses_refresh_token(self, client, user):
        refresh = client.cookies.get(REFRESH_COOKIE)
        use_cookies(client, **{REFRESH_COOKIE: refresh})

        response = client.get("/api/auth/profile")
        assert response.status_code == 200
        assert response.cookies.get(ACCESS_COOKIE)

    def test_expired_access_token_without_refresh_token(self, client, user):
        use_cookies(client, **{ACCESS_COOKIE: expired_access_token(user["_id"])})
        response = client.get("/api/auth/profile")
        assert response.status_code == 401
        assert response.json()["message"] == "Session expired - Login again"

    def test_refresh_token_not_matching_cache_is_rejected(self, client, user):
        stale = jwt.encode(
            {"userId": user["_id"], "exp": datetime.now(timezone.utc) + timedelta(days=1)},
            REFRESH_SECRET,
            algorithm="HS256"
        )
        use_cookies(client, **{ACCESS_COOKIE: expired_access_token(user["_id"]), REFRESH_COOKIE: stale})

        response = client.get("/api/auth/profile")
        assert response.status_code == 401
        assert response.json()["message"] == "Session invalidated - Login again"

    def test_cache_failure_during_refresh(self, app, client, user, monkeypatch):
        async def broken_get(key):
            raise RedisError("Connection reset by peer")

        monkeypatch.setattr(app.state.cache, "get", broken_get)
        refresh = client.cookies.get(REFRESH_COOKIE)
        use_cookies(client, **{ACCESS_COOKIE: expired_access_token(user["_id"]), REFRESH_COOKIE: refresh})

        response = client.get("/api/auth/profile")
        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized - Authentication failed"


class TestRefreshAndLogout:

    def test_refresh_token_endpoint(self, client, user):
        response = client.post("/api/auth/refresh-token")
        assert response.status_code == 200
        assert response.json()["message"] == "Token refreshed successfully"
        assert response.cookies.get(ACCESS_COOKIE)

    def test_refresh_token_endpoint_without_cookie(self, client):
        response = client.post("/api/auth/refresh-token")
        assert response.status_code == 401
        assert response.json()["message"] == "No refresh token provided"

    def test_refresh_token_endpoint_with_garbage(self, client):
        use_cookies(client, **{REFRESH_COOKIE: "garbage"})
        response = client.post("/api/auth/refresh-token")
        assert response.status_code == 401

    def test_logout_revokes_refresh_token(self, app, client, user):
        refresh = client.cookies.get(REFRESH_COOKIE)

        response = client.post("/api/auth/logout")
        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"
        assert refresh_token_key(user["_id"]) not in app.state.cache._store

        # replaying the old refresh token no longer works
        use_cookies(client, **{REFRESH_COOKIE: refresh})
        assert client.post("/api/auth/refresh-token").status_code == 401

        use_cookies(client, **{ACCESS_COOKIE: expired_access_token(user["_id"]), REFRESH_COOKIE: refresh})
        assert client.get("/api/auth/profile").status_code == 401

    def test_logout_clears_cookies(self, client, user):
        response = client.post("/api/auth/logout")
        set_cookie_headers = response.headers.get_list("set-cookie")
        assert any(h.startswith(f"{ACCESS_COOKIE}=") for h in set_cookie_headers)
        assert any(h.startswith(f"{REFRESH_COOKIE}=") for h in set_cookie_headers)
        assert all("Max-Age=0" in h for h in set_cookie_headers)

    def test_logout_without_session(self, client):
        response = client.post("/api/auth/logout")
        assert response.status_code == 200

    def test_new_login_replaces_refresh_token(self, app, client, user):
        app.state.cache._store[refresh_token_key(user["_id"])] = "an-older-token"

        client.cookies.clear()
        response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "pw"})
        assert app.state.cache._store[refresh_token_key(user["_id"])] == response.cookies.get(REFRESH_COOKIE)


def set_cookie_header(response, name):
    return next(h for h in response.headers.get_list("set-cookie") if h.startswith(f"{name}="))


def cookie_value(header):
    return header.split(";", 1)[0].split("=", 1)[1]


class TestProductionCookies:

    def test_login_and_refresh_cookies_are_cross_site(self, settings):
        settings.environment = "production"

        with TestClient(create_app(settings)) as client:
            signup(client)
            client.cookies.clear()
            response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "pw"})
            assert response.status_code == 200

            for name in (ACCESS_COOKIE, REFRESH_COOKIE):
                header = set_cookie_header(response, name).lower()
                assert "secure" in header
                assert "samesite=none" in header
                assert "httponly" in header

            # secure cookies are not replayed over plain http, so send the token by hand
            refresh = cookie_value(set_cookie_header(response, REFRESH_COOKIE))
            use_cookies(client, **{REFRESH_COOKIE: refresh})
            refreshed = client.post("/api/auth/refresh-token")
            assert refreshed.status_code == 200

            header = set_cookie_header(refreshed, ACCESS_COOKIE).lower()
            assert "secure" in header
            assert "samesite=none" in header
