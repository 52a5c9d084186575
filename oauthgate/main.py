"""
oauthgate - Google OAuth login for services behind reverse proxies

FastAPI application factory.
"""
import os
from pathlib import Path
from typing import Iterable, Optional

import httpx
from fastapi import FastAPI
from fastapi.templating import Jinja2Templates

from oauthgate.config import Settings, settings as default_settings
from oauthgate.constants import DASHBOARD_PATH, DEFAULT_LOGIN_TEMPLATE, ROOT_PATH, TEMPLATES_DIR
from oauthgate.logging_config import configure_logging
from oauthgate.middleware.auth_gate import AuthGateMiddleware
from oauthgate.middleware.logging import LoggingMiddleware
from oauthgate.routes.auth import router as auth_router
from oauthgate.routes.dashboard import router as dashboard_router
from oauthgate.routes.metrics import router as metrics_router
from oauthgate.sentry_config import configure_sentry
from oauthgate.services.authorization_service import AuthorizationService
from oauthgate.session import SessionStore

PACKAGE_TEMPLATES = Path(__file__).parent / TEMPLATES_DIR


def create_app(
    settings: Optional[Settings] = None,
    *,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
    protected_paths: Optional[Iterable[str]] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use; the environment-loaded ones by default
        http_transport: httpx transport for provider calls (tests inject a mock)
        protected_paths: Paths guarded by AuthGate; dashboard and root by default

    Raises:
        ConfigurationError: credentials, base URL or session secret are invalid
    """
    settings = settings or default_settings

    # Initialize logging first
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    # Initialize Sentry (if SENTRY_DSN is set)
    configure_sentry(settings.SENTRY_DSN)

    authorization_service = AuthorizationService.from_settings(settings, http_transport=http_transport)
    session_store = SessionStore(
        secret_key=settings.SESSION_SECRET,
        cookie_name=settings.SESSION_COOKIE_NAME,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        https_only=settings.SESSION_HTTPS_ONLY,
        same_site=settings.SESSION_SAME_SITE,
    )

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Google OAuth login with proxy-aware callback URLs",
    )

    app.state.settings = settings
    app.state.authorization_service = authorization_service
    app.state.session_store = session_store
    app.state.templates = Jinja2Templates(directory=str(PACKAGE_TEMPLATES))

    # Custom login page is rendered by basename from its own directory
    if authorization_service.login_template:
        template_path = os.path.abspath(authorization_service.login_template)
        app.state.login_templates = Jinja2Templates(directory=os.path.dirname(template_path))
        app.state.login_template_name = os.path.basename(template_path)
    else:
        app.state.login_templates = app.state.templates
        app.state.login_template_name = DEFAULT_LOGIN_TEMPLATE

    # Gate protected routes on the session identity
    app.add_middleware(
        AuthGateMiddleware,
        session_store=session_store,
        protected_paths=list(protected_paths) if protected_paths is not None else [DASHBOARD_PATH, ROOT_PATH],
    )

    # Added last so it wraps everything, including AuthGate redirects
    app.add_middleware(LoggingMiddleware)

    # Include metrics endpoint FIRST (so it's always available)
    app.include_router(metrics_router)

    # Include authentication routes
    app.include_router(auth_router)

    # Include example protected pages
    app.include_router(dashboard_router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "healthy"
        }

    return app
