"""
Authentication routes for Google OAuth.

The flow is a small state machine kept entirely in the signed session cookie:

    anonymous --/auth/google--> state issued --/auth/google/callback--> authenticated
    authenticated --/logout--> anonymous

SECURITY: Every recoverable failure redirects to the login page with a
machine-readable ``error`` code. Exception text, state values and tokens are
never sent to the browser or written to the logs.
"""
import secrets
from typing import Optional
from urllib.parse import urlencode

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from jinja2 import TemplateNotFound

from oauthgate.constants import (
    API_USER_SENTINEL,
    CALLBACK_PATH,
    ERROR_INVALID_STATE,
    ERROR_MISSING_CODE,
    ERROR_MISSING_STATE,
    GOOGLE_AUTH_PATH,
    LOGIN_PATH,
    LOGOUT_PATH,
    SESSION_KEY_OAUTH_STATE,
    SESSION_KEY_OAUTH_TOKEN,
    SESSION_KEY_USER_EMAIL,
    SESSION_KEY_USER_NAME,
    SESSION_KEY_USER_PICTURE,
)
from oauthgate.dependencies.auth import (
    get_authorization_service,
    get_login_templates,
    get_session_store,
)
from oauthgate.errors import (
    AuthFlowError,
    CodeExchangeError,
    EntropyError,
    SessionPersistenceError,
    StateError,
)
from oauthgate.routes.metrics import track_callback, track_login_started, track_logout
from oauthgate.sentry_config import capture_exception
from oauthgate.services.authorization_service import AuthorizationService
from oauthgate.session import SessionStore

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Authentication"])


def login_redirect(error_code: Optional[str] = None) -> RedirectResponse:
    """Redirect to the login page, optionally carrying an error code."""
    url = LOGIN_PATH
    if error_code:
        url = f"{LOGIN_PATH}?{urlencode({'error': error_code})}"
    return RedirectResponse(url=url, status_code=302)


def internal_error() -> PlainTextResponse:
    return PlainTextResponse("Internal Server Error", status_code=500)


@router.get(LOGIN_PATH, response_class=HTMLResponse)
async def login_page(
    request: Request,
    error: Optional[str] = None,
    templates: Jinja2Templates = Depends(get_login_templates),
):
    """
    Render the login page.

    Uses the custom template configured on the service when there is one.
    """
    template_name = request.app.state.login_template_name
    try:
        return templates.TemplateResponse(
            request,
            template_name,
            {"error": error or "", "google_auth_path": GOOGLE_AUTH_PATH},
        )
    except TemplateNotFound:
        logger.error("login_template_missing", template=template_name)
        return PlainTextResponse("Login template not found", status_code=500)


async def begin_authorization(
    request: Request,
    service: AuthorizationService,
    store: SessionStore,
):
    """
    Issue a fresh CSRF state and redirect the browser to the provider.

    ``access_type=offline`` with ``prompt=consent`` makes Google return a
    refresh token on every consent, not only the first one.
    """
    try:
        state = service.generate_state()
    except EntropyError as exc:
        logger.error("state_generation_failed", error=exc.message)
        capture_exception(exc)
        return internal_error()

    session = store.get(request)
    session.set(SESSION_KEY_OAUTH_STATE, state)

    oauth_config = service.authorization_config(request)
    authorization_url = oauth_config.authorization_url(
        state,
        access_type="offline",
        prompt="consent",
    )

    response = RedirectResponse(url=authorization_url, status_code=302)
    try:
        session.save(response)
    except SessionPersistenceError as exc:
        logger.error("session_save_failed", stage="login", error=exc.message)
        capture_exception(exc)
        return internal_error()

    track_login_started()
    logger.info("authorization_redirect", redirect_uri=oauth_config.redirect_uri)
    return response


@router.get(GOOGLE_AUTH_PATH)
async def google_login(
    request: Request,
    service: AuthorizationService = Depends(get_authorization_service),
    store: SessionStore = Depends(get_session_store),
):
    """
    Start the OAuth flow.

    Stores a new state value in the session and redirects to Google.
    """
    return await begin_authorization(request, service, store)


@router.get(CALLBACK_PATH)
async def google_callback(
    request: Request,
    state: Optional[str] = None,
    code: Optional[str] = None,
    service: AuthorizationService = Depends(get_authorization_service),
    store: SessionStore = Depends(get_session_store),
):
    """
    Complete the OAuth flow.

    This endpoint:
    1. Validates the state against the one stored at login
    2. Exchanges the code for a token (restarting consent if no refresh token)
    3. Fetches the profile when a profile scope was granted
    4. Stores identity and token in the session
    5. Redirects to the post-login path
    """
    session = store.get(request)

    try:
        stored_state = session.get(SESSION_KEY_OAUTH_STATE)
        if not isinstance(stored_state, str) or not stored_state:
            raise StateError("missing state in session", error_code=ERROR_MISSING_STATE)

        received_state = state or ""
        if not secrets.compare_digest(stored_state.encode("utf-8"), received_state.encode("utf-8")):
            raise StateError("state mismatch", error_code=ERROR_INVALID_STATE)

        if not code:
            raise CodeExchangeError("missing authorization code", error_code=ERROR_MISSING_CODE)

        oauth_config = service.authorization_config(request)
        token = await service.exchange_code(oauth_config, code)

        if not token.refresh_token:
            logger.warning("refresh_token_missing", action="restart_consent")
            track_callback("consent_restarted")
            return await begin_authorization(request, service, store)

        # Identity keys are only written once every network call has succeeded
        if service.requests_profile(token):
            profile = await service.fetch_profile(token)
            session[SESSION_KEY_USER_EMAIL] = profile.email
            session[SESSION_KEY_USER_NAME] = profile.name
            session[SESSION_KEY_USER_PICTURE] = profile.picture
        else:
            # Authenticated for API access without a profile
            session[SESSION_KEY_USER_EMAIL] = API_USER_SENTINEL
            session.pop(SESSION_KEY_USER_NAME, None)
            session.pop(SESSION_KEY_USER_PICTURE, None)

        session[SESSION_KEY_OAUTH_TOKEN] = token.to_json()
        session.pop(SESSION_KEY_OAUTH_STATE, None)

        response = RedirectResponse(url=service.post_login_path, status_code=302)
        session.save(response)

    except AuthFlowError as exc:
        if isinstance(exc, SessionPersistenceError):
            logger.error("oauth_callback_failed", error_code=exc.error_code, error=exc.message)
            capture_exception(exc)
        else:
            logger.warning("oauth_callback_failed", error_code=exc.error_code, error=exc.message)
        track_callback(exc.error_code or "error")
        return login_redirect(exc.error_code)

    track_callback("success")
    logger.info("login_succeeded", profile=session.get(SESSION_KEY_USER_EMAIL) != API_USER_SENTINEL)
    return response


@router.get(LOGOUT_PATH)
async def logout(
    request: Request,
    service: AuthorizationService = Depends(get_authorization_service),
    store: SessionStore = Depends(get_session_store),
):
    """
    Logout endpoint.

    Expires the session cookie immediately and redirects to the logout target.
    """
    session = store.get(request)
    session.invalidate()

    response = RedirectResponse(url=service.logout_redirect_url, status_code=302)
    try:
        session.save(response)
    except SessionPersistenceError as exc:
        logger.error("session_save_failed", stage="logout", error=exc.message)
        capture_exception(exc)
        return internal_error()

    track_logout()
    logger.info("logout")
    return response
