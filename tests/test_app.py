"""
Tests for application assembly, settings and metrics.
"""
import pytest
from fastapi.testclient import TestClient

from oauthgate.errors import ConfigurationError
from oauthgate.main import create_app
from oauthgate.oauth import IssuedToken
from tests.helpers import make_settings


class TestSettings:
    """Tests for Settings parsing."""

    def test_scopes_split_on_commas_and_spaces(self):
        settings = make_settings(OAUTH_SCOPES="openid, email  https://www.googleapis.com/auth/drive.readonly")
        assert settings.scopes == ["openid", "email", "https://www.googleapis.com/auth/drive.readonly"]

    def test_empty_scopes(self):
        assert make_settings(OAUTH_SCOPES="").scopes == []

    def test_public_base_url_trailing_slash_trimmed(self):
        assert make_settings(PUBLIC_BASE_URL="https://example.com/ ").PUBLIC_BASE_URL == "https://example.com"


class TestCreateApp:
    """Tests for create_app validation."""

    def test_missing_client_id(self):
        with pytest.raises(ConfigurationError):
            create_app(make_settings(GOOGLE_CLIENT_ID=""))

    def test_invalid_base_url(self):
        with pytest.raises(ConfigurationError):
            create_app(make_settings(PUBLIC_BASE_URL="not-a-url"))

    def test_missing_session_secret(self):
        with pytest.raises(ConfigurationError):
            create_app(make_settings(SESSION_SECRET=""))

    def test_custom_protected_paths(self, provider):
        app = create_app(make_settings(), http_transport=provider.transport, protected_paths=[])
        client = TestClient(app)

        response = client.get("/", follow_redirects=False)

        assert response.status_code == 404


class TestMetrics:
    """Tests for the Prometheus endpoint."""

    def test_login_counter_exposed(self, client):
        client.get("/auth/google", follow_redirects=False)

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "oauth_logins_started_total" in response.text
        assert "oauth_callbacks_total" in response.text


class TestIssuedToken:
    """Tests for IssuedToken serialisation."""

    def test_json_round_trip_drops_empty_fields(self):
        token = IssuedToken(access_token="abc", token_type="bearer", refresh_token="rtok")

        raw = token.to_json()

        assert "expires_at" not in raw
        assert IssuedToken.from_json(raw) == token

    def test_granted_scopes(self):
        token = IssuedToken(access_token="abc", scope="openid email")
        assert token.granted_scopes() == ["openid", "email"]
        assert IssuedToken(access_token="abc").granted_scopes() == []

    def test_secrets_hidden_from_repr(self):
        token = IssuedToken(access_token="abc123", refresh_token="rtok456")
        assert "abc123" not in repr(token)
        assert "rtok456" not in repr(token)
