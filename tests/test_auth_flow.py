"""Flujos completos de sesión sobre la app: login, validate, refresh y logout."""
from conftest import API, cleared_cookies, get_csrf, login

from saas_auth.services.cookies import AUTH_TOKEN_NAME, CSRF_TOKEN_NAME, REFRESH_TOKEN_NAME


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


# --- login ---

def test_login_sets_cookies_and_returns_public_user(client, seed_user):
    user = seed_user(email="ana@example.com")
    r = login(client, "ANA@example.com", "secret-pass")

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Login successful"
    assert body["data"]["user"]["id"] == user["id"]
    assert "password_hash" not in body["data"]["user"]
    assert "_id" not in body["data"]["user"]
    assert client.cookies.get(AUTH_TOKEN_NAME) == body["data"]["token"]
    assert client.cookies.get(REFRESH_TOKEN_NAME)

    auth_header = next(h for h in r.headers.get_list("set-cookie") if h.startswith(AUTH_TOKEN_NAME))
    assert "httponly" in auth_header.lower()
    assert "max-age=3600" in auth_header.lower()


def test_login_records_access_and_refresh_tokens(client, seed_user, fake_db):
    user = seed_user()
    login(client, user["email"], "secret-pass")
    kinds = sorted(d["kind"] for d in fake_db["token"].docs)
    assert kinds == ["access", "refresh"]


def test_wrong_password_and_unknown_email_look_the_same(client, seed_user):
    user = seed_user()
    wrong = login(client, user["email"], "nope")
    unknown = login(client, "nadie@example.com", "nope")

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"success": False, "message": "Invalid credentials"}


def test_inactive_user_cannot_login(client, seed_user):
    user = seed_user(is_active=False)
    assert login(client, user["email"], "secret-pass").status_code == 401


def test_login_requires_both_fields(client):
    r = client.post(f"{API}/auth/login", json={"email": "ana@example.com"}, headers=get_csrf(client))
    assert r.status_code == 400
    assert r.json()["message"] == "Email and password are required"


def test_login_storage_failure_is_invalid_credentials(client, storage_down):
    r = login(client, "ana@example.com", "secret-pass")
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid credentials"


def test_eleventh_login_attempt_is_rate_limited(client, seed_user):
    user = seed_user()
    for _ in range(10):
        login(client, user["email"], "nope")
    r = login(client, user["email"], "secret-pass")
    assert r.status_code == 429
    assert r.json()["message"] == "Too many attempts, please try again later"


# --- validate ---

def test_validate_with_cookie(client, logged_in):
    user, _ = logged_in
    r = client.get(f"{API}/auth/validate")
    assert r.status_code == 200
    assert r.json()["data"]["user"]["email"] == user["email"]


def test_bearer_header_takes_precedence_over_cookie(client, logged_in):
    client.cookies.set(AUTH_TOKEN_NAME, "garbage")
    _, token = logged_in
    assert client.get(f"{API}/auth/validate", headers=_bearer(token)).status_code == 200


def test_validate_without_token(client):
    r = client.get(f"{API}/auth/validate")
    assert r.status_code == 401
    assert r.json()["message"] == "No authentication token provided"


def test_validate_rejects_bad_signature(client):
    r = client.get(f"{API}/auth/validate", headers=_bearer("a.b.c"))
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid token"


def test_refresh_token_is_not_accepted_as_access(client, logged_in):
    refresh = client.cookies.get(REFRESH_TOKEN_NAME)
    assert client.get(f"{API}/auth/validate", headers=_bearer(refresh)).status_code == 401


def test_validate_reflects_live_user_state(client, logged_in, fake_db):
    fake_db["user"].docs[0]["is_active"] = False
    r = client.get(f"{API}/auth/validate")
    assert r.status_code == 401
    assert r.json()["message"] == "User not found"


def test_validate_fails_closed_when_storage_is_down(client, logged_in, storage_down):
    r = client.get(f"{API}/auth/validate")
    assert r.status_code >= 500
    assert r.json()["success"] is False


# --- refresh ---

def test_refresh_rotates_access_token(client, logged_in):
    _, old = logged_in
    r = client.post(f"{API}/auth/refresh", headers=get_csrf(client))

    assert r.status_code == 200
    new = r.json()["data"]["token"]
    assert new != old
    assert client.cookies.get(AUTH_TOKEN_NAME) == new

    stale = client.get(f"{API}/auth/validate", headers=_bearer(old))
    assert stale.status_code == 401
    assert stale.json()["message"] == "Token has been invalidated"
    assert client.get(f"{API}/auth/validate", headers=_bearer(new)).status_code == 200


def test_refresh_without_cookie_clears_session(client):
    r = client.post(f"{API}/auth/refresh", headers=get_csrf(client))
    assert r.status_code == 401
    assert r.json()["message"] == "No refresh token provided"
    assert set(cleared_cookies(r)) == {AUTH_TOKEN_NAME, REFRESH_TOKEN_NAME, CSRF_TOKEN_NAME}


def test_refresh_with_invalidated_refresh_token(client, logged_in):
    refresh = client.cookies.get(REFRESH_TOKEN_NAME)
    client.post(f"{API}/auth/logout", headers=get_csrf(client))

    # Tras el logout el cliente ya no tiene cookies; reenviamos la vieja a mano
    headers = get_csrf(client)
    client.cookies.set(REFRESH_TOKEN_NAME, refresh)
    r = client.post(f"{API}/auth/refresh", headers=headers)
    assert r.status_code == 401
    assert r.json()["message"] == "Refresh token has been invalidated"


# --- logout ---

def test_logout_invalidates_token_and_clears_cookies(client, logged_in):
    _, token = logged_in
    r = client.post(f"{API}/auth/logout", headers=get_csrf(client))

    assert r.status_code == 200
    assert r.json()["message"] == "Logged out successfully"
    assert set(cleared_cookies(r)) == {AUTH_TOKEN_NAME, REFRESH_TOKEN_NAME, CSRF_TOKEN_NAME}

    after = client.get(f"{API}/auth/validate", headers=_bearer(token))
    assert after.status_code == 401
    assert after.json()["message"] == "Token has been invalidated"


def test_logout_also_invalidates_refresh_token(client, logged_in, fake_db):
    client.post(f"{API}/auth/logout", headers=get_csrf(client))
    assert all(d["invalidated_at"] is not None for d in fake_db["token"].docs)


def test_second_logout_reports_not_found(client, logged_in):
    _, token = logged_in
    client.post(f"{API}/auth/logout", headers=get_csrf(client))
    r = client.post(f"{API}/auth/logout", headers={**get_csrf(client), **_bearer(token)})

    assert r.status_code == 400
    assert r.json()["message"] == "Token not found or already invalidated"
    assert AUTH_TOKEN_NAME in cleared_cookies(r)


def test_logout_without_token(client):
    r = client.post(f"{API}/auth/logout", headers=get_csrf(client))
    assert r.status_code == 400
    assert r.json()["message"] == "No authentication token provided"
    assert AUTH_TOKEN_NAME in cleared_cookies(r)


def test_logout_with_storage_down_still_clears_cookies(client, logged_in, monkeypatch):
    from saas_auth.infrastructure.db import mongo

    headers = get_csrf(client)
    monkeypatch.setattr(mongo, "_db", None)
    r = client.post(f"{API}/auth/logout", headers=headers)

    assert r.status_code == 200
    assert AUTH_TOKEN_NAME in cleared_cookies(r)


def test_logout_requires_csrf(client, logged_in):
    r = client.post(f"{API}/auth/logout")
    assert r.status_code == 403
