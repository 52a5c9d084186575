"""
Tests for the AuthGate middleware and the example protected pages.
"""
from fastapi import FastAPI
from fastapi.testclient import TestClient

from oauthgate.constants import API_USER_SENTINEL, SESSION_KEY_USER_EMAIL, SESSION_KEY_USER_NAME
from oauthgate.middleware.auth_gate import AuthGateMiddleware
from oauthgate.session import SessionStore
from tests.helpers import set_session


def gated_app(store, calls):
    app = FastAPI()
    app.add_middleware(AuthGateMiddleware, session_store=store, protected_paths=["/private", "/"])

    @app.get("/private")
    async def private():
        calls.append("private")
        return {"ok": True}

    @app.get("/private/nested")
    async def nested():
        calls.append("nested")
        return {"ok": True}

    @app.get("/public")
    async def public():
        calls.append("public")
        return {"ok": True}

    @app.get("/")
    async def root():
        calls.append("root")
        return {"ok": True}

    return app


class TestAuthGateMiddleware:
    """Tests for AuthGateMiddleware."""

    def setup_method(self):
        self.store = SessionStore("gate-secret")
        self.calls = []
        self.client = TestClient(gated_app(self.store, self.calls))

    def test_blocks_anonymous_request(self):
        response = self.client.get("/private", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "/login"
        assert self.calls == []

    def test_blocks_nested_path(self):
        response = self.client.get("/private/nested", follow_redirects=False)

        assert response.headers["location"] == "/login"
        assert self.calls == []

    def test_blocks_empty_identity(self):
        set_session(self.client, self.store, {SESSION_KEY_USER_EMAIL: ""})

        response = self.client.get("/private", follow_redirects=False)

        assert response.status_code == 302
        assert self.calls == []

    def test_passes_authenticated_request(self):
        set_session(self.client, self.store, {SESSION_KEY_USER_EMAIL: "e@example.com"})

        response = self.client.get("/private", follow_redirects=False)

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert self.calls == ["private"]

    def test_passes_api_only_session(self):
        set_session(self.client, self.store, {SESSION_KEY_USER_EMAIL: API_USER_SENTINEL})

        response = self.client.get("/private", follow_redirects=False)

        assert response.status_code == 200

    def test_public_paths_are_not_gated(self):
        response = self.client.get("/public", follow_redirects=False)

        assert response.status_code == 200
        assert self.calls == ["public"]

    def test_root_protection_is_exact(self):
        assert self.client.get("/", follow_redirects=False).status_code == 302
        assert self.client.get("/public", follow_redirects=False).status_code == 200

    def test_tampered_cookie_is_anonymous(self):
        self.client.cookies.set(self.store.cookie_name, "forged.value.sig")

        response = self.client.get("/private", follow_redirects=False)

        assert response.status_code == 302
        assert self.calls == []


class TestDashboard:
    """Tests for the example pages wired up by create_app."""

    def test_dashboard_requires_login(self, client):
        response = client.get("/dashboard", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "/login"

    def test_dashboard_shows_user(self, client, store):
        set_session(client, store, {
            SESSION_KEY_USER_EMAIL: "e@example.com",
            SESSION_KEY_USER_NAME: "tester",
        })

        response = client.get("/dashboard")

        assert response.status_code == 200
        assert "e@example.com" in response.text
        assert "tester" in response.text

    def test_root_redirects_logged_in_user(self, client, store):
        set_session(client, store, {SESSION_KEY_USER_EMAIL: "e@example.com"})

        response = client.get("/", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "/dashboard"

    def test_root_redirects_anonymous_user_to_login(self, client):
        response = client.get("/", follow_redirects=False)

        assert response.headers["location"] == "/login"

    def test_health_is_public(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
