"""Prometheus metrics middleware."""
import time

from fastapi import FastAPI, Request
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

# Metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
)

enhancements_total = Counter(
    "task_enhancements_total",
    "Task enhancement attempts by outcome",
    ["mode", "outcome"],
)

chat_inbound_total = Counter(
    "chat_inbound_messages_total",
    "Inbound WhatsApp messages by relay decision",
    ["decision"],
)

chat_outbound_total = Counter(
    "chat_outbound_messages_total",
    "Outbound WhatsApp sends by result",
    ["result"],
)

EXCLUDED_PATHS = {"/metrics", "/health"}


def _endpoint_label(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def setup_metrics(app: FastAPI) -> None:
    """Setup Prometheus metrics endpoint and request counters."""

    @app.middleware("http")
    async def record_request(request: Request, call_next):
        if request.url.path in EXCLUDED_PATHS:
            return await call_next(request)
        started = time.perf_counter()
        response = await call_next(request)
        endpoint = _endpoint_label(request)
        http_requests_total.labels(request.method, endpoint, str(response.status_code)).inc()
        http_request_duration_seconds.labels(request.method, endpoint).observe(
            time.perf_counter() - started
        )
        return response

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
