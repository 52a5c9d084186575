"""
Authentication dependencies for FastAPI.

The service, session store and templates are created once in ``create_app``
and kept on ``app.state``; these dependencies hand them to route handlers.
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.templating import Jinja2Templates

from oauthgate.oauth import IssuedToken
from oauthgate.services.authorization_service import AuthorizationService
from oauthgate.session import AuthSession, SessionStore, SessionUser


def get_authorization_service(request: Request) -> AuthorizationService:
    return request.app.state.authorization_service


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_templates(request: Request) -> Jinja2Templates:
    return request.app.state.templates


def get_login_templates(request: Request) -> Jinja2Templates:
    return request.app.state.login_templates


def get_auth_session(
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> AuthSession:
    return store.get(request)


def get_session_user(
    session: AuthSession = Depends(get_auth_session),
) -> Optional[SessionUser]:
    """
    Dependency returning the logged-in user, or None for anonymous requests.

    Usage:
        @router.get("/dashboard")
        async def dashboard(user: SessionUser = Depends(get_session_user)):
            ...
    """
    return session.user


def get_session_token(
    session: AuthSession = Depends(get_auth_session),
) -> Optional[IssuedToken]:
    """
    Dependency returning the OAuth token stored by the callback.

    Pair it with ``AuthorizationService.build_client`` to call Google APIs
    on the user's behalf.
    """
    return session.oauth_token
