"""
Mock provider, settings factory and session cookie helpers shared by tests.
"""
import json
from base64 import b64encode
from http.cookies import SimpleCookie

import httpx
from starlette.requests import Request

from oauthgate.config import Settings

PROVIDER = "https://provider.test"
PROFILE = {"email": "e@example.com", "name": "tester", "picture": "pic"}


class MockProvider:
    """
    Fake token and userinfo endpoints served through httpx.MockTransport.

    Tests tweak ``token_response`` / ``userinfo_status`` / ``userinfo_body``
    and inspect ``calls`` afterwards.
    """

    def __init__(self):
        self.calls = []
        self.token_status = 200
        self.token_response = {
            "access_token": "abc",
            "token_type": "bearer",
            "refresh_token": "rtok",
            "expires_in": 3600,
        }
        self.userinfo_status = 200
        self.userinfo_body = json.dumps(PROFILE)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if request.url.path == "/token":
            return httpx.Response(self.token_status, json=self.token_response)
        if request.url.path == "/userinfo":
            return httpx.Response(
                self.userinfo_status,
                content=self.userinfo_body,
                headers={"Content-Type": "application/json"},
            )
        return httpx.Response(404)

    @property
    def paths(self):
        return [request.url.path for request in self.calls]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_settings(**overrides) -> Settings:
    values = {
        "GOOGLE_CLIENT_ID": "id",
        "GOOGLE_CLIENT_SECRET": "secret",
        "SESSION_SECRET": "session-secret",
        "PUBLIC_BASE_URL": "http://localhost:8080",
        "POST_LOGIN_PATH": "/dashboard",
        "GOOGLE_AUTHORIZATION_ENDPOINT": f"{PROVIDER}/auth",
        "GOOGLE_TOKEN_ENDPOINT": f"{PROVIDER}/token",
        "GOOGLE_USERINFO_ENDPOINT": f"{PROVIDER}/userinfo",
        "LOG_JSON": False,
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def sign_session(store, values: dict) -> str:
    """Cookie value for a session holding ``values``."""
    payload = b64encode(json.dumps(values).encode("utf-8"))
    return store.signer.sign(payload).decode("utf-8")


def set_session(client, store, values: dict):
    client.cookies.set(store.cookie_name, sign_session(store, values))


def response_cookie(response, name: str):
    """Parsed Set-Cookie morsel for ``name``, or None."""
    # httpx headers expose get_list, Starlette response headers getlist
    headers = response.headers
    values = headers.get_list("set-cookie") if hasattr(headers, "get_list") else headers.getlist("set-cookie")
    cookie = SimpleCookie()
    for header in values:
        cookie.load(header)
    return cookie.get(name)


def session_from_response(store, response):
    """Session the browser would hold after ``response``, or None if no cookie was set."""
    morsel = response_cookie(response, store.cookie_name)
    if morsel is None:
        return None
    request = Request({
        "type": "http",
        "headers": [(b"cookie", f"{store.cookie_name}={morsel.coded_value}".encode("utf-8"))],
    })
    return store.get(request)
