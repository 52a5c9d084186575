"""
Authorization service for the Google OAuth login flow.

Owns the OAuth client credentials, produces per-request client configuration
with a proxy-aware redirect URI, generates CSRF state, exchanges codes and
fetches the user profile.
"""
import secrets
from typing import Iterable, Optional
from urllib.parse import urlsplit

import httpx
import structlog
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.httpx_client import AsyncOAuth2Client
from pydantic import ValidationError
from starlette.requests import HTTPConnection

from oauthgate.constants import (
    CALLBACK_PATH,
    ERROR_TOKEN_EXCHANGE_FAILED,
    ERROR_USER_INFO_FAILED,
    LOGIN_PATH,
)
from oauthgate.errors import (
    CodeExchangeError,
    ConfigurationError,
    EntropyError,
    ProfileFetchError,
)
from oauthgate.oauth import (
    GoogleProfile,
    IssuedToken,
    OAuthClientConfig,
    ProviderEndpoints,
    UpdateTokenHook,
)
from oauthgate.scopes import default_scope_strings, has_profile_scope, scope_strings
from oauthgate.services.redirect_resolver import RedirectResolver

logger = structlog.get_logger(__name__)

# 32 bytes of entropy, URL-safe base64 encoded
STATE_NUM_BYTES = 32


class AuthorizationService:
    """Service for driving the OAuth authorization-code grant."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        public_base_url: str,
        post_login_path: str,
        scopes: Optional[Iterable] = None,
        login_template: Optional[str] = None,
        logout_redirect_url: Optional[str] = None,
        endpoints: Optional[ProviderEndpoints] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        """
        Validate credentials and build the shared client configuration.

        Args:
            client_id: OAuth client identifier
            client_secret: OAuth client secret
            public_base_url: Externally reachable origin, e.g. "http://localhost:8080"
            post_login_path: Where users land after a successful login
            scopes: Requested scopes; empty means profile + email
            login_template: Optional path of a custom login page template
            logout_redirect_url: Optional redirect target after logout;
                blank values keep the default (the login page)
            endpoints: Provider endpoints; Google's by default
            http_transport: httpx transport used for provider calls
            timeout: Timeout in seconds for provider calls

        Raises:
            ConfigurationError: credentials are missing or the base URL is invalid
        """
        if not client_id or not client_secret:
            raise ConfigurationError("missing Google OAuth credentials")

        base = urlsplit((public_base_url or "").strip())
        if base.scheme not in ("http", "https") or not base.netloc:
            raise ConfigurationError("invalid Google OAuth base URL")

        requested_scopes = scope_strings(scopes or [])
        if not requested_scopes:
            requested_scopes = default_scope_strings()

        self.resolver = RedirectResolver(public_base_url.strip(), CALLBACK_PATH)
        self.config = OAuthClientConfig(
            client_id=client_id,
            client_secret=client_secret,
            scopes=tuple(requested_scopes),
            redirect_uri=self.resolver.static_callback_url,
            endpoints=endpoints or ProviderEndpoints(),
            timeout=timeout,
            transport=http_transport,
        )
        self.post_login_path = post_login_path
        self.login_template = login_template or None
        self.logout_redirect_url = LOGIN_PATH
        if logout_redirect_url and logout_redirect_url.strip():
            self.logout_redirect_url = logout_redirect_url.strip()

    @classmethod
    def from_settings(cls, settings, http_transport: Optional[httpx.AsyncBaseTransport] = None):
        """Build the service from application Settings."""
        return cls(
            client_id=settings.GOOGLE_CLIENT_ID,
            client_secret=settings.GOOGLE_CLIENT_SECRET,
            public_base_url=settings.PUBLIC_BASE_URL,
            post_login_path=settings.POST_LOGIN_PATH,
            scopes=settings.scopes,
            login_template=settings.LOGIN_TEMPLATE,
            logout_redirect_url=settings.LOGOUT_REDIRECT_URL,
            endpoints=ProviderEndpoints(
                authorization_endpoint=settings.GOOGLE_AUTHORIZATION_ENDPOINT,
                token_endpoint=settings.GOOGLE_TOKEN_ENDPOINT,
                userinfo_endpoint=settings.GOOGLE_USERINFO_ENDPOINT,
            ),
            http_transport=http_transport,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )

    @property
    def scopes(self):
        return list(self.config.scopes)

    def generate_state(self) -> str:
        """
        Return a cryptographically secure, URL-safe CSRF state token.

        Raises:
            EntropyError: the operating system random source failed
        """
        try:
            return secrets.token_urlsafe(STATE_NUM_BYTES)
        except (OSError, NotImplementedError) as exc:
            raise EntropyError(f"failed to generate state: {exc}") from exc

    def authorization_config(self, request: Optional[HTTPConnection]) -> OAuthClientConfig:
        """Copy of the client configuration with this request's callback URL."""
        return self.config.with_redirect_uri(self.resolver.callback_url(request))

    def requests_profile(self, token: Optional[IssuedToken] = None) -> bool:
        """
        Whether the granted scopes allow a userinfo lookup.

        Uses the scopes reported with the token when the provider sent them,
        the requested scopes otherwise.
        """
        granted = token.granted_scopes() if token else []
        return has_profile_scope(granted or self.config.scopes)

    async def exchange_code(self, config: OAuthClientConfig, code: str) -> IssuedToken:
        """
        Exchange an authorization code for a token.

        Args:
            config: Per-request configuration (its redirect URI must match the
                one sent with the authorization request)
            code: Authorization code from the callback

        Raises:
            CodeExchangeError: the provider rejected the code or was unreachable
        """
        try:
            return await config.exchange(code)
        except (AuthlibBaseError, httpx.HTTPError, ValueError) as exc:
            raise CodeExchangeError(
                f"token exchange failed: {type(exc).__name__}",
                error_code=ERROR_TOKEN_EXCHANGE_FAILED,
            ) from exc

    async def fetch_profile(self, token: IssuedToken) -> GoogleProfile:
        """
        Fetch email, name and picture from the userinfo endpoint.

        Raises:
            ProfileFetchError: non-200 status, transport failure or a body
                missing the required fields
        """
        try:
            async with self.build_client(token) as client:
                response = await client.get(self.config.endpoints.userinfo_endpoint)
        except (AuthlibBaseError, httpx.HTTPError) as exc:
            raise ProfileFetchError(
                f"failed to get user info: {type(exc).__name__}",
                error_code=ERROR_USER_INFO_FAILED,
            ) from exc

        if response.status_code != 200:
            raise ProfileFetchError(
                f"google API returned status {response.status_code}",
                error_code=ERROR_USER_INFO_FAILED,
            )

        try:
            return GoogleProfile.model_validate_json(response.content)
        except ValidationError as exc:
            raise ProfileFetchError(
                "failed to decode user info",
                error_code=ERROR_USER_INFO_FAILED,
            ) from exc

    def build_client(
        self,
        token: IssuedToken,
        update_token: Optional[UpdateTokenHook] = None,
    ) -> AsyncOAuth2Client:
        """
        HTTP client for downstream Google APIs.

        The client sends the bearer token and refreshes it when expired;
        ``update_token`` is awaited with the refreshed token.
        """
        return self.config.client(token, update_token=update_token)
