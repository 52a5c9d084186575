"""
Sentry configuration for error tracking.

Captures unhandled exceptions and session persistence failures.
"""
import sentry_sdk
import structlog
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from oauthgate.config import settings

logger = structlog.get_logger(__name__)

# Session and token values must never leave the process
_SCRUBBED_COOKIE = "[Filtered]"


def configure_sentry(dsn: str = None):
    """
    Initialize Sentry with FastAPI and Starlette integrations.

    Requires SENTRY_DSN to be set; otherwise Sentry stays disabled.
    """
    dsn = dsn or settings.SENTRY_DSN

    if not dsn:
        logger.info("sentry_disabled", reason="SENTRY_DSN not set")
        return

    sentry_sdk.init(
        dsn=dsn,
        integrations=[
            StarletteIntegration(),
            FastApiIntegration(),
        ],
        before_send=scrub_event,
        send_default_pii=False,
        # Sample rate: capture 10% of transactions for performance monitoring
        traces_sample_rate=0.1,
        environment=settings.ENVIRONMENT,
        release=settings.APP_VERSION,
    )

    logger.info("sentry_initialized", environment=settings.ENVIRONMENT)


def scrub_event(event, hint):
    """
    Remove cookies and the OAuth query parameters from error events.
    """
    request = event.get("request")
    if not request:
        return event

    if request.get("cookies"):
        request["cookies"] = _SCRUBBED_COOKIE
    headers = request.get("headers")
    if isinstance(headers, dict):
        for name in list(headers):
            if name.lower() in ("cookie", "authorization"):
                headers[name] = _SCRUBBED_COOKIE
    if request.get("query_string"):
        request["query_string"] = _SCRUBBED_COOKIE

    return event


def capture_exception(exc_info=None):
    """
    Capture an exception to Sentry.

    Usage:
        try:
            session.save(response)
        except SessionPersistenceError as exc:
            capture_exception(exc)
    """
    if sentry_sdk.get_client().is_active():
        sentry_sdk.capture_exception(exc_info)
