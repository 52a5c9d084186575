"""
Middleware that keeps anonymous users out of protected routes.

A request to a protected path goes through only when the session carries a
non-empty identity (a user email, or the API-user marker when no profile scope
was granted). Anyone else is redirected to the login page; the downstream
handler is never invoked for them.
"""
from typing import Iterable

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import RedirectResponse

from oauthgate.constants import LOGIN_PATH, SESSION_KEY_USER_EMAIL
from oauthgate.session import SessionStore

logger = structlog.get_logger(__name__)


class AuthGateMiddleware(BaseHTTPMiddleware):
    """Redirect requests for protected paths to the login page unless logged in."""

    def __init__(
        self,
        app,
        session_store: SessionStore,
        protected_paths: Iterable[str],
        login_path: str = LOGIN_PATH,
    ):
        super().__init__(app)
        self.session_store = session_store
        self.protected_paths = tuple(protected_paths)
        self.login_path = login_path

    def is_protected(self, path: str) -> bool:
        for protected in self.protected_paths:
            if path == protected:
                return True
            # "/" guards only the root itself, not the whole site
            if protected != "/" and path.startswith(protected.rstrip("/") + "/"):
                return True
        return False

    async def dispatch(self, request: Request, call_next):
        if not self.is_protected(request.url.path):
            return await call_next(request)

        session = self.session_store.get(request)
        if session.get(SESSION_KEY_USER_EMAIL):
            return await call_next(request)

        logger.info("auth_gate_redirect", route=request.url.path)
        return RedirectResponse(url=self.login_path, status_code=302)
