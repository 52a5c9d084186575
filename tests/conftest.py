"""
Shared fixtures: settings, a mock Google provider and the application.
"""
import pytest
from fastapi.testclient import TestClient

from oauthgate.main import create_app
from tests.helpers import MockProvider, make_settings


@pytest.fixture
def provider():
    return MockProvider()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def app(settings, provider):
    return create_app(settings, http_transport=provider.transport)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def store(app):
    return app.state.session_store
