"""
Signed cookie session used by the login flow.

The whole session round-trips through the client as a cookie signed with
itsdangerous (base64 JSON payload + timestamp signature, the same encoding as
Starlette's SessionMiddleware). Nothing is kept server-side, so sessions need
no locking.
"""
import json
from base64 import b64decode, b64encode
from collections.abc import Iterator, MutableMapping
from typing import Any, Dict, Optional

import itsdangerous
import structlog
from itsdangerous.exc import BadSignature
from pydantic import BaseModel, ValidationError
from starlette.requests import HTTPConnection
from starlette.responses import Response

from oauthgate.constants import (
    ERROR_SESSION_SAVE_FAILED,
    MAX_COOKIE_BYTES,
    SESSION_KEY_OAUTH_TOKEN,
    SESSION_KEY_USER_EMAIL,
    SESSION_KEY_USER_NAME,
    SESSION_KEY_USER_PICTURE,
)
from oauthgate.errors import ConfigurationError, SessionPersistenceError
from oauthgate.oauth import IssuedToken

logger = structlog.get_logger(__name__)


class SessionUser(BaseModel):
    """Identity stored in the session after a successful callback."""

    email: str
    name: Optional[str] = None
    picture: Optional[str] = None


class AuthSession(MutableMapping):
    """
    Request-scoped view of the session cookie.

    Changes only reach the browser when ``save`` is called with the response.
    """

    def __init__(self, store: "SessionStore", values: Optional[Dict[str, Any]] = None):
        self._store = store
        self.values: Dict[str, Any] = dict(values or {})
        self.max_age = store.max_age

    def __getitem__(self, key: str) -> Any:
        return self.values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.values[key] = value

    def __delitem__(self, key: str) -> None:
        del self.values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def set(self, key: str, value: Any) -> None:
        self.values[key] = value

    @property
    def invalidated(self) -> bool:
        return self.max_age < 0

    def invalidate(self) -> None:
        """Force the cookie to expire when the session is next saved."""
        self.values.clear()
        self.max_age = -1

    def save(self, response: Response) -> None:
        """
        Write the session onto the response as a Set-Cookie header.

        Raises:
            SessionPersistenceError: values are not JSON-serialisable or the
                signed cookie exceeds the browser limit
        """
        self._store.write(self, response)

    @property
    def user(self) -> Optional[SessionUser]:
        email = self.values.get(SESSION_KEY_USER_EMAIL)
        if not email:
            return None
        return SessionUser(
            email=email,
            name=self.values.get(SESSION_KEY_USER_NAME),
            picture=self.values.get(SESSION_KEY_USER_PICTURE),
        )

    @property
    def oauth_token(self) -> Optional[IssuedToken]:
        raw = self.values.get(SESSION_KEY_OAUTH_TOKEN)
        if not raw:
            return None
        try:
            return IssuedToken.from_json(raw)
        except ValidationError:
            logger.warning("session_token_unreadable")
            return None


class SessionStore:
    """
    Loads and saves AuthSession instances as signed cookies.

    The cookie format matches ``starlette.middleware.sessions.SessionMiddleware``
    (TimestampSigner over base64 JSON, signer salt and max_age the same), so a
    cookie written by one can be read by the other given the same secret.

    The middleware is not used because it writes the cookie after the handler
    returns, where a failed write can no longer change the response. Handlers
    here call ``save`` themselves and turn a SessionPersistenceError into a
    ``session_save_failed`` redirect.
    """

    def __init__(
        self,
        secret_key: str,
        cookie_name: str = "oauthgate_session",
        max_age: int = 60 * 60 * 24 * 30,
        https_only: bool = False,
        same_site: str = "lax",
        path: str = "/",
    ):
        if not secret_key:
            raise ConfigurationError("missing session secret")
        self.signer = itsdangerous.TimestampSigner(str(secret_key))
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.https_only = https_only
        self.same_site = same_site
        self.path = path

    def get(self, request: HTTPConnection) -> AuthSession:
        """Load the session for a request; bad or missing cookies give an empty one."""
        raw = request.cookies.get(self.cookie_name)
        if not raw:
            return AuthSession(self)

        try:
            data = self.signer.unsign(raw.encode("utf-8"), max_age=self.max_age)
            values = json.loads(b64decode(data))
        except BadSignature:
            logger.info("session_cookie_rejected", cookie=self.cookie_name)
            return AuthSession(self)
        except ValueError:
            logger.warning("session_cookie_undecodable", cookie=self.cookie_name)
            return AuthSession(self)

        if not isinstance(values, dict):
            return AuthSession(self)
        return AuthSession(self, values)

    def write(self, session: AuthSession, response: Response) -> None:
        if session.invalidated:
            response.set_cookie(
                self.cookie_name,
                "",
                max_age=-1,
                expires=0,
                path=self.path,
                secure=self.https_only,
                httponly=True,
                samesite=self.same_site,
            )
            return

        try:
            payload = b64encode(json.dumps(session.values).encode("utf-8"))
        except (TypeError, ValueError) as exc:
            raise SessionPersistenceError(
                f"session values are not serialisable: {exc}",
                error_code=ERROR_SESSION_SAVE_FAILED,
            ) from exc

        cookie_value = self.signer.sign(payload).decode("utf-8")
        if len(self.cookie_name) + len(cookie_value) + 1 > MAX_COOKIE_BYTES:
            raise SessionPersistenceError(
                f"session cookie is {len(cookie_value)} bytes, over the {MAX_COOKIE_BYTES} byte limit",
                error_code=ERROR_SESSION_SAVE_FAILED,
            )

        response.set_cookie(
            self.cookie_name,
            cookie_value,
            max_age=session.max_age,
            path=self.path,
            secure=self.https_only,
            httponly=True,
            samesite=self.same_site,
        )
