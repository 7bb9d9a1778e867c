"""
Prometheus metrics module.
Counters are always recorded; the /metrics endpoint and the HTTP timing
middleware are only installed when ENABLE_METRICS=true.
"""

import logging
import re
import time
from typing import Any, Callable

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, Info, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


# ============================================
# Metric instances
# ============================================

APP_INFO = Info('supaprofile_app', 'Application information')

# HTTP metrics
HTTP_REQUESTS_TOTAL = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)
HTTP_REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency',
    ['method', 'endpoint'],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10]
)
HTTP_REQUESTS_IN_PROGRESS = Gauge(
    'http_requests_in_progress',
    'HTTP requests currently being processed'
)

# Auth metrics
AUTH_EVENTS_TOTAL = Counter(
    'auth_events_total',
    'Authentication events handled with the provider',
    ['action', 'status']
)
PAGE_REDIRECTS_TOTAL = Counter(
    'page_redirects_total',
    'Pages that redirected instead of rendering',
    ['page', 'target']
)


# ============================================
# Helper functions for recording metrics
# ============================================

def record_auth_event(action: str, success: bool) -> None:
    """Record a sign-up/sign-in/sign-out/callback/refresh outcome."""
    AUTH_EVENTS_TOTAL.labels(action=action, status='success' if success else 'error').inc()


def record_page_redirect(page: str, target: str) -> None:
    """Record a redirect issued by a page."""
    # Keep label cardinality bounded: drop query strings
    PAGE_REDIRECTS_TOTAL.labels(page=page, target=target.split('?', 1)[0]).inc()


# ============================================
# Metrics Middleware
# ============================================

class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == '/metrics':
            return await call_next(request)

        method = request.method
        path = self._normalize_path(request.url.path)

        HTTP_REQUESTS_IN_PROGRESS.inc()
        start_time = time.perf_counter()
        status = 500

        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            duration = time.perf_counter() - start_time
            HTTP_REQUEST_DURATION.labels(method=method, endpoint=path).observe(duration)
            HTTP_REQUESTS_TOTAL.labels(method=method, endpoint=path, status=status).inc()
            HTTP_REQUESTS_IN_PROGRESS.dec()

    @staticmethod
    def _normalize_path(path: str) -> str:
        path = path.rstrip('/')
        path = re.sub(r'[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}', '{id}', path)
        return path or '/'


def add_metrics_endpoint(app: Any) -> None:
    """Add /metrics endpoint to the app."""

    @app.get('/metrics', include_in_schema=False)
    async def metrics_endpoint() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    logger.info("✓ Prometheus metrics endpoint registered at /metrics")


def setup_metrics(app: Any, version: str) -> None:
    """Install the middleware and endpoint. Call before the app starts."""
    app.add_middleware(MetricsMiddleware)
    add_metrics_endpoint(app)
    APP_INFO.info({
        'version': version,
        'name': 'supaprofile'
    })
