"""
HTTP middleware for the proxy.

- **RequestLoggingMiddleware**: resets request-scoped log context, emits a
  structured ``http_request`` line and records a Prometheus latency
  histogram for every request.
"""
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from prometheus_client import Histogram

from source_proxy.logging_config import clear_request_context, get_logger

logger = get_logger(__name__)

# Prometheus latency histogram
HTTP_REQUEST_DURATION = Histogram(
    "source_proxy_http_request_duration_seconds",
    "HTTP request latency in seconds",
    labelnames=["method", "route", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)


def _route_template(request: Request) -> str:
    """Route path template (``/get/{prefix}/{filename}``) to keep label cardinality bounded."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every request/response and record latency in Prometheus.

    The authorization dependency stores the resolved resource on
    ``request.state``; it is included in the log line when present.
    """

    async def dispatch(self, request: Request, call_next):
        clear_request_context()
        start = time.perf_counter()

        response = await call_next(request)

        duration = time.perf_counter() - start
        route = _route_template(request)
        method = request.method
        status = response.status_code

        HTTP_REQUEST_DURATION.labels(
            method=method,
            route=route,
            status=str(status),
        ).observe(duration)

        # Skip noisy /metrics polling
        if route != "/metrics":
            logger.info(
                "http_request",
                method=method,
                route=route,
                resource=getattr(request.state, "resource", None),
                status=status,
                duration_ms=round(duration * 1000, 2),
                client=request.client.host if request.client else "unknown",
            )

        return response
