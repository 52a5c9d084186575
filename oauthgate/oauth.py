"""
Google OAuth 2.0 configuration and client.

SECURITY: This module handles OAuth credentials. The client secret and issued
tokens are excluded from reprs and must never be logged.
"""
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Tuple

import httpx
from authlib.integrations.httpx_client import AsyncOAuth2Client
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri
from authlib.oauth2.rfc6749.util import list_to_scope
from pydantic import BaseModel, ConfigDict, Field

GOOGLE_AUTHORIZATION_ENDPOINT = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_ENDPOINT = "https://www.googleapis.com/oauth2/v2/userinfo"


class ProviderEndpoints(BaseModel):
    """URLs of the authorization-code-grant provider."""

    model_config = ConfigDict(frozen=True)

    authorization_endpoint: str = GOOGLE_AUTHORIZATION_ENDPOINT
    token_endpoint: str = GOOGLE_TOKEN_ENDPOINT
    userinfo_endpoint: str = GOOGLE_USERINFO_ENDPOINT


class GoogleProfile(BaseModel):
    """User profile returned by the userinfo endpoint."""

    email: str
    name: str
    picture: str


class IssuedToken(BaseModel):
    """Token set returned by the provider's token endpoint."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(repr=False)
    token_type: str = "Bearer"
    refresh_token: Optional[str] = Field(default=None, repr=False)
    expires_in: Optional[int] = None
    expires_at: Optional[int] = None
    scope: Optional[str] = None
    id_token: Optional[str] = Field(default=None, repr=False)

    @property
    def expiry(self) -> Optional[datetime]:
        if self.expires_at is None:
            return None
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)

    def granted_scopes(self) -> List[str]:
        """Scopes the provider reports as granted, empty if it did not say."""
        return self.scope.split() if self.scope else []

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)

    @classmethod
    def from_json(cls, raw: str) -> "IssuedToken":
        return cls.model_validate_json(raw)

    def to_authlib(self) -> dict:
        return self.model_dump(exclude_none=True)


# Called by authlib with the refreshed token after an automatic refresh
UpdateTokenHook = Callable[..., Awaitable[None]]


class OAuthClientConfig(BaseModel):
    """
    Immutable OAuth client configuration.

    The service keeps one shared instance; per-request copies with a different
    redirect URI are produced by ``with_redirect_uri`` so the shared instance
    is never mutated.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    client_id: str
    client_secret: str = Field(repr=False)
    scopes: Tuple[str, ...]
    redirect_uri: str
    endpoints: ProviderEndpoints = ProviderEndpoints()
    timeout: float = 10.0
    transport: Optional[httpx.AsyncBaseTransport] = Field(default=None, repr=False, exclude=True)

    def with_redirect_uri(self, redirect_uri: str) -> "OAuthClientConfig":
        return self.model_copy(update={"redirect_uri": redirect_uri})

    def authorization_url(self, state: str, **params) -> str:
        """
        Build the provider URL the browser is redirected to.

        Args:
            state: CSRF state token echoed back on the callback
            **params: Extra query parameters (e.g. access_type, prompt)

        Returns:
            Absolute authorization URL
        """
        return prepare_grant_uri(
            self.endpoints.authorization_endpoint,
            self.client_id,
            "code",
            redirect_uri=self.redirect_uri,
            scope=list(self.scopes),
            state=state,
            **params
        )

    def client(
        self,
        token: Optional[IssuedToken] = None,
        update_token: Optional[UpdateTokenHook] = None,
    ) -> AsyncOAuth2Client:
        """
        Create an HTTP client that injects the bearer token and refreshes it
        through the token endpoint once it expires.
        """
        client_kwargs = {"timeout": self.timeout}
        if self.transport is not None:
            client_kwargs["transport"] = self.transport

        return AsyncOAuth2Client(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=list_to_scope(list(self.scopes)),
            redirect_uri=self.redirect_uri,
            token=token.to_authlib() if token else None,
            update_token=update_token,
            token_endpoint=self.endpoints.token_endpoint,
            **client_kwargs
        )

    async def exchange(self, code: str) -> IssuedToken:
        """
        Exchange an authorization code for a token at the token endpoint.

        Raises whatever authlib/httpx raise; callers classify the failure.
        """
        async with self.client() as oauth_client:
            token = await oauth_client.fetch_token(
                self.endpoints.token_endpoint,
                code=code,
            )
        return IssuedToken.model_validate(dict(token))
