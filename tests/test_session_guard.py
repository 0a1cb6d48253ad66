import pytest
from conftest import sign_in

from learncode import config
from learncode.services.session_service import create_token, verify_token

PROTECTED = ["/problems", "/problems/1", "/problems/1/submissions", "/admin/problems", "/auth/me"]


@pytest.mark.parametrize("path", PROTECTED)
def test_missing_credential_redirects_without_fetching(client, fake_api, path):
    resp = client.get(path)

    assert resp.status_code == 303
    assert resp.headers["location"] == "/"
    assert fake_api.requests == []


def test_invalid_credential_is_discarded(client, fake_api):
    sign_in(client, "revoked-token")

    resp = client.get("/problems")

    assert resp.status_code == 303
    assert resp.headers["location"] == "/"
    assert fake_api.paths() == ["/auth/verify"]
    set_cookie = resp.headers["set-cookie"]
    assert set_cookie.startswith(f"{config.SESSION_COOKIE_NAME}=")
    assert "Max-Age=0" in set_cookie


def test_tampered_cookie_counts_as_absent(client, fake_api):
    client.cookies.set(config.SESSION_COOKIE_NAME, "not-a-signed-value")

    resp = client.get("/problems")

    assert resp.status_code == 303
    assert resp.headers["location"] == "/"
    assert fake_api.requests == []
    assert "Max-Age=0" in resp.headers["set-cookie"]


def test_verification_failure_upstream_is_treated_as_invalid(user_client, fake_api):
    fake_api.failing.add("/auth/verify")

    resp = user_client.get("/problems")

    assert resp.status_code == 303
    assert fake_api.paths() == ["/auth/verify"]


def test_valid_credential_reaches_view(user_client, fake_api):
    resp = user_client.get("/problems")

    assert resp.status_code == 200
    assert fake_api.paths() == ["/auth/verify", "/problems"]
    assert all(r.headers["Authorization"] == "Bearer user-token" for r in fake_api.requests)


def test_each_request_is_verified_again(user_client, fake_api):
    user_client.get("/problems")
    user_client.get("/problems")

    assert fake_api.paths().count("/auth/verify") == 2


def test_me_returns_principal(user_client):
    resp = user_client.get("/auth/me")

    assert resp.status_code == 200
    assert resp.json()["data"] == {
        "id": "101",
        "login": "octocat",
        "isAdmin": False,
        "created_at": 1700000000,
        "last_login_at": 1700000500,
    }


def test_home_is_public(client, fake_api):
    resp = client.get("/")

    assert resp.status_code == 200
    assert resp.json()["data"]["login_url"] == "/login"
    assert fake_api.requests == []


def test_home_sends_signed_in_visitor_to_catalog(user_client):
    resp = user_client.get("/")

    assert resp.status_code == 303
    assert resp.headers["location"] == "/problems"


def test_login_redirects_to_oauth_start(client):
    resp = client.get("/login")

    assert resp.status_code == 303
    assert resp.headers["location"] == "http://api.test/auth/github"


def test_login_with_token_stores_it(client):
    resp = client.get("/login", params={"token": "gho_abc"})

    assert resp.status_code == 303
    assert resp.headers["location"] == "/"
    assert verify_token(resp.cookies[config.SESSION_COOKIE_NAME]) == "gho_abc"


def test_callback_stores_token_and_opens_catalog(client):
    resp = client.get("/auth/callback", params={"token": "gho_xyz"})

    assert resp.status_code == 303
    assert resp.headers["location"] == "/problems"
    stored = resp.cookies[config.SESSION_COOKIE_NAME]
    assert verify_token(stored) == "gho_xyz"
    assert "httponly" in resp.headers["set-cookie"].lower()


def test_callback_without_token_goes_home(client):
    resp = client.get("/auth/callback")

    assert resp.status_code == 303
    assert resp.headers["location"] == "/"
    assert "set-cookie" not in resp.headers


def test_logout_discards_credential(user_client):
    resp = user_client.post("/logout")

    assert resp.status_code == 303
    assert resp.headers["location"] == "/"
    assert "Max-Age=0" in resp.headers["set-cookie"]


def test_session_token_roundtrip_rejects_other_secret(monkeypatch):
    value = create_token("gho_abc")
    monkeypatch.setattr(config, "SESSION_SECRET", "another-secret")

    assert verify_token(value) is None


def test_public_routes_ignore_bad_credential(client, fake_api):
    client.cookies.set(config.SESSION_COOKIE_NAME, "not-a-signed-value")

    assert client.get("/").status_code == 200
    assert client.get("/login").headers["location"] == "http://api.test/auth/github"
    assert client.get("/auth/callback").headers["location"] == "/"
    assert fake_api.requests == []
