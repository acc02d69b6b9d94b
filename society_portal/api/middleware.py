"""Host middleware: request correlation and per-route metrics"""

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from society_portal.infrastructure.observability.context import request_id_var
from society_portal.infrastructure.observability.metrics import request_duration_histogram

MAX_REQUEST_ID_LENGTH = 128
UNMATCHED_ROUTE = "unmatched"


def _is_valid_request_id(value: str) -> bool:
    return bool(value) and len(value) <= MAX_REQUEST_ID_LENGTH and value.isprintable()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an id, reusing a sane incoming X-Request-ID.

    The id is also exposed through request_id_var so the remote API client
    can forward it on every call made while serving this request.
    """

    async def dispatch(self, request: Request, call_next):
        incoming = (request.headers.get("x-request-id") or "").strip()
        request_id = incoming if _is_valid_request_id(incoming) else str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response


def route_label(request: Request) -> str:
    """Matched route template, so path parameters don't become label values"""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or UNMATCHED_ROUTE


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record request latency per method, route template and status"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        request_duration_histogram.labels(
            method=request.method,
            endpoint=route_label(request),
            status=response.status_code,
        ).observe(time.time() - start_time)
        return response
