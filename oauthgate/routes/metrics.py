"""
Prometheus metrics endpoint.

Exposes login flow counters for monitoring.
"""
from fastapi import APIRouter, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter(tags=["Metrics"])

# ============================================
# HTTP Request Metrics
# ============================================

http_requests_total = Counter(
    'oauthgate_http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration = Histogram(
    'oauthgate_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# ============================================
# Login Flow Metrics
# ============================================

oauth_logins_started = Counter(
    'oauth_logins_started_total',
    'Authorization redirects issued to the provider'
)

oauth_callbacks = Counter(
    'oauth_callbacks_total',
    'Provider callbacks by outcome',
    ['outcome']
)

oauth_logouts = Counter(
    'oauth_logouts_total',
    'Sessions ended through the logout route'
)


# ============================================
# Metrics Helper Functions
# ============================================

def track_request(method: str, endpoint: str, status: int, duration_seconds: float):
    """
    Record HTTP request metrics.

    Call this after each request.
    """
    http_requests_total.labels(
        method=method,
        endpoint=endpoint,
        status=status
    ).inc()

    http_request_duration.labels(
        method=method,
        endpoint=endpoint
    ).observe(duration_seconds)


def track_login_started():
    """Record a redirect to the provider's consent page."""
    oauth_logins_started.inc()


def track_callback(outcome: str):
    """Record a callback outcome ("success" or an error code)."""
    oauth_callbacks.labels(outcome=outcome).inc()


def track_logout():
    """Record a logout."""
    oauth_logouts.inc()


# ============================================
# Prometheus Endpoint
# ============================================


@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Returns all metrics in Prometheus text format.
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
