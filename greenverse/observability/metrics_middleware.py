"""
FastAPI middleware for automatic Prometheus metrics collection.

Tracks request counts and latency per route template, so
/api/v1/users/alice/progress and /api/v1/users/bob/progress share one
series.
"""

import logging
import time
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from greenverse.observability.metrics import (
    http_requests_total,
    http_request_duration_seconds,
)

logger = logging.getLogger(__name__)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for HTTP requests"""

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        method = request.method
        start_time = time.time()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response

        finally:
            duration = time.time() - start_time
            path = self._route_template(request)

            http_requests_total.labels(
                method=method, endpoint=path, status=status_code
            ).inc()

            http_request_duration_seconds.labels(
                method=method, endpoint=path
            ).observe(duration)

    def _route_template(self, request: Request) -> str:
        """Matched route path (e.g. /api/v1/users/{user_id}/progress)"""
        route = request.scope.get("route")
        if route is not None and getattr(route, "path", None):
            return route.path
        # Unmatched requests (404s) share one series
        return "unmatched"


def setup_metrics_middleware(app):
    """
    Add Prometheus metrics middleware to FastAPI application.

    Args:
        app: FastAPI application instance
    """
    from greenverse.config import ENABLE_METRICS

    if not ENABLE_METRICS:
        logger.info("Metrics collection is disabled (ENABLE_METRICS=false)")
        return

    app.add_middleware(PrometheusMiddleware)
    logger.info("Prometheus metrics middleware added to FastAPI")
