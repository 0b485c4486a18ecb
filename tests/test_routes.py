"""
Tests for the auth HTTP surface.
"""

import pytest
from fastapi.testclient import TestClient

from ewaab.api.app import build_auth_services, create_app
from ewaab.config import Settings
from ewaab.core.models import UserType


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def client(settings, accounts, account_factory):
    services = build_auth_services(settings, accounts=accounts)
    app = create_app(settings, services=services)
    with TestClient(app) as test_client:
        test_client.portal.call(accounts.save_account, account_factory("user_alice"))
        test_client.portal.call(accounts.save_account, account_factory("user_root", user_type=UserType.ADMIN))
        yield test_client


def _login(client, identifier, password):
    response = client.post("/auth/login", json={"identifier": identifier, "password": password})
    assert response.status_code == 200, response.text
    return response


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# Login
# =============================================================================


class TestLogin:
    def test_login_sets_cookies(self, client, alice_password):
        response = _login(client, "alice", alice_password)

        body = response.json()
        assert body["account_id"] == "user_alice"
        assert body["role"] == "user"
        assert body["token_type"] == "bearer"
        assert "refresh_token" not in body
        assert "refreshToken" in response.cookies
        assert "media" in response.cookies

        set_cookie = response.headers.get_list("set-cookie")
        refresh_cookie = next(c for c in set_cookie if c.startswith("refreshToken="))
        assert "Path=/refreshToken" in refresh_cookie
        assert "HttpOnly" in refresh_cookie
        assert "SameSite=lax" in refresh_cookie

    def test_wrong_password(self, client):
        response = client.post("/auth/login", json={"identifier": "alice", "password": "nope"})

        assert response.status_code == 401

    def test_unverified_email(self, client, accounts, account_factory, alice_password):
        client.portal.call(accounts.save_account, account_factory("user_dave", email_verified=False))

        response = client.post("/auth/login", json={"identifier": "dave", "password": alice_password})

        assert response.status_code == 403


# =============================================================================
# Principal
# =============================================================================


class TestMe:
    def test_guest(self, client):
        response = client.get("/auth/me")

        assert response.status_code == 200
        assert response.json() == {"id": None, "role": "guest", "email_verified": False}

    def test_logged_in(self, client, alice_password):
        token = _login(client, "alice", alice_password).json()["access_token"]

        response = client.get("/auth/me", headers=_bearer(token))

        assert response.json()["id"] == "user_alice"

    def test_bad_token(self, client):
        response = client.get("/auth/me", headers=_bearer("not-a-token"))

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"


# =============================================================================
# Refresh / Revoke
# =============================================================================


class TestRefresh:
    def test_refresh_with_cookie(self, client, alice_password):
        _login(client, "alice", alice_password)

        response = client.post("/refreshToken")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "got access token"
        assert client.get("/auth/me", headers=_bearer(body["data"])).json()["role"] == "user"

    def test_missing_cookie(self, client):
        response = client.post("/refreshToken")

        assert response.status_code == 400

    def test_revoke_invalidates_refresh(self, client, alice_password):
        token = _login(client, "alice", alice_password).json()["access_token"]

        response = client.post("/auth/revoke", json={}, headers=_bearer(token))
        assert response.status_code == 200
        assert response.json()["token_version"] == 1

        assert client.post("/refreshToken").status_code == 400

    def test_revoke_other_needs_admin(self, client, alice_password):
        token = _login(client, "alice", alice_password).json()["access_token"]

        response = client.post("/auth/revoke", json={"email": "root@example.com"}, headers=_bearer(token))

        assert response.status_code == 403

    def test_admin_revokes_other(self, client, alice_password):
        token = _login(client, "root", alice_password).json()["access_token"]

        response = client.post("/auth/revoke", json={"email": "alice@example.com"}, headers=_bearer(token))

        assert response.status_code == 200

    def test_admin_revokes_unknown(self, client, alice_password):
        token = _login(client, "root", alice_password).json()["access_token"]

        response = client.post("/auth/revoke", json={"email": "ghost@example.com"}, headers=_bearer(token))

        assert response.status_code == 404

    def test_guest_cannot_revoke(self, client):
        assert client.post("/auth/revoke", json={}).status_code == 401

    def test_unverified_account_revokes_own_sessions(self, client, accounts, account_factory):
        client.portal.call(accounts.save_account, account_factory("user_dave", email_verified=False))
        token = client.app.state.auth.refresh.issue_access_token("user_dave", UserType.USER, False)

        response = client.post("/auth/revoke", json={}, headers=_bearer(token))

        assert response.status_code == 200
        assert response.json()["token_version"] == 1

    def test_unverified_account_cannot_name_an_email(self, client, accounts, account_factory):
        client.portal.call(accounts.save_account, account_factory("user_dave", email_verified=False))
        token = client.app.state.auth.refresh.issue_access_token("user_dave", UserType.USER, False)

        response = client.post("/auth/revoke", json={"email": "dave@example.com"}, headers=_bearer(token))

        assert response.status_code == 403

    def test_logout_clears_cookies(self, client, alice_password):
        _login(client, "alice", alice_password)

        response = client.post("/auth/logout")

        assert response.status_code == 200
        assert client.post("/refreshToken").status_code == 400


# =============================================================================
# Visitor codes
# =============================================================================


class TestUserCodes:
    def test_non_admin_forbidden(self, client, alice_password):
        token = _login(client, "alice", alice_password).json()["access_token"]

        response = client.post("/auth/user-codes", json={"name": "Open day"}, headers=_bearer(token))

        assert response.status_code == 403

    def test_admin_creates_code_and_visitor_logs_in(self, client, alice_password):
        admin_token = _login(client, "root", alice_password).json()["access_token"]

        created = client.post("/auth/user-codes", json={"name": "Open day"}, headers=_bearer(admin_token))
        assert created.status_code == 201
        code = created.json()["code"]

        response = client.post("/auth/login-visitor", json={"code": code})
        assert response.status_code == 200
        assert response.json()["role"] == "visitor"

        visitor_token = response.json()["access_token"]
        me = client.get("/auth/me", headers=_bearer(visitor_token)).json()
        assert me["role"] == "visitor"
        assert me["email_verified"] is True

        # Visitors are not logged-in accounts
        assert client.post("/auth/revoke", json={}, headers=_bearer(visitor_token)).status_code == 403

    def test_admin_lists_codes_without_secrets(self, client, alice_password):
        admin_token = _login(client, "root", alice_password).json()["access_token"]
        created = client.post("/auth/user-codes", json={"name": "Open day"}, headers=_bearer(admin_token)).json()

        response = client.get("/auth/user-codes", headers=_bearer(admin_token))

        assert response.status_code == 200
        [listed] = response.json()
        assert listed["id"] == created["id"]
        assert listed["name"] == "Open day"
        assert "code" not in listed

    def test_admin_deletes_code(self, client, alice_password):
        admin_token = _login(client, "root", alice_password).json()["access_token"]
        created = client.post("/auth/user-codes", json={"name": "Open day"}, headers=_bearer(admin_token)).json()

        response = client.delete(f"/auth/user-codes/{created['id']}", headers=_bearer(admin_token))

        assert response.status_code == 200
        assert client.get("/auth/user-codes", headers=_bearer(admin_token)).json() == []
        assert client.post("/auth/login-visitor", json={"code": created["code"]}).status_code == 401

    def test_deleted_code_cannot_refresh(self, client, alice_password):
        admin_token = _login(client, "root", alice_password).json()["access_token"]
        created = client.post("/auth/user-codes", json={"name": "Open day"}, headers=_bearer(admin_token)).json()
        assert client.post("/auth/login-visitor", json={"code": created["code"]}).status_code == 200

        client.delete(f"/auth/user-codes/{created['id']}", headers=_bearer(admin_token))

        assert client.post("/refreshToken").status_code == 400

    def test_delete_unknown_code(self, client, alice_password):
        admin_token = _login(client, "root", alice_password).json()["access_token"]

        response = client.delete("/auth/user-codes/code_missing", headers=_bearer(admin_token))

        assert response.status_code == 404

    def test_non_admin_cannot_manage_codes(self, client, alice_password):
        token = _login(client, "alice", alice_password).json()["access_token"]

        assert client.get("/auth/user-codes", headers=_bearer(token)).status_code == 403
        assert client.delete("/auth/user-codes/code_any", headers=_bearer(token)).status_code == 403

    def test_guest_needs_login(self, client):
        assert client.post("/auth/user-codes", json={"name": "Open day"}).status_code == 401

    def test_bad_code(self, client):
        response = client.post("/auth/login-visitor", json={"code": "nope:nope"})

        assert response.status_code == 401

# =============================================================================
# Initialization mode
# =============================================================================


class TestInitialization:
    def test_env_enables_bootstrap(self, monkeypatch, settings, accounts):
        monkeypatch.setenv("ENABLE_INITIALIZATION", "true")
        bootstrap = Settings(_env_file=None, environment="test", jwt_secret_key=settings.jwt_secret_key)
        assert bootstrap.enable_initialization is True

        app = create_app(bootstrap, services=build_auth_services(bootstrap, accounts=accounts))
        with TestClient(app) as test_client:
            response = test_client.post("/auth/user-codes", json={"name": "First admin"})

            assert response.status_code == 201
            assert response.json()["name"] == "First admin"
            assert test_client.get("/auth/user-codes").status_code == 200

    def test_off_by_default(self, monkeypatch, settings, accounts):
        monkeypatch.delenv("ENABLE_INITIALIZATION", raising=False)
        plain = Settings(_env_file=None, environment="test", jwt_secret_key=settings.jwt_secret_key)
        assert plain.enable_initialization is False

        app = create_app(plain, services=build_auth_services(plain, accounts=accounts))
        with TestClient(app) as test_client:
            assert test_client.post("/auth/user-codes", json={"name": "First admin"}).status_code == 401



def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
