"""Logging, metrics, tracing and error reporting for the Biolink app.

Metric helpers at the bottom of this module are what the services call; the
services never touch prometheus_client directly.
"""

import logging
import time
import uuid

import sentry_sdk
import structlog
from fastapi import FastAPI, Request, Response
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from biolink.core.config import Settings

REQUEST_ID_HEADER = "X-Request-ID"

# HTTP
REQUEST_COUNT = Counter(
    "biolink_http_requests_total",
    "HTTP requests by route template",
    ["method", "endpoint", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "biolink_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

# Redirects and click recording
REDIRECTS = Counter(
    "biolink_redirects_total",
    "Redirect outcomes",
    ["status_code"],
)
CLICKS_RECORDED = Counter(
    "biolink_clicks_recorded_total",
    "Clicks written to the stats document",
)
CLICK_RECORD_FAILURES = Counter(
    "biolink_click_record_failures_total",
    "Clicks that could not be written",
)
CLICK_RECORD_LATENCY = Histogram(
    "biolink_click_record_duration_seconds",
    "Read-modify-write time of one click",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

# Analytics and storage
ANALYTICS_QUERIES = Counter(
    "biolink_analytics_queries_total",
    "Analytics queries by range",
    ["range"],
)
STORE_WRITES = Counter(
    "biolink_store_writes_total",
    "JSON documents written",
    ["key"],
)


def route_template(request: Request) -> str:
    """Matched route path (``/go/{slug}``), or the raw path for 404s."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Bind a request ID to the log context and echo it on the response.

    An incoming ``X-Request-ID`` is reused so IDs can be traced across a
    proxy; otherwise a new UUID is generated.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request once it completes and feed the HTTP metrics."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        endpoint = route_template(request)
        REQUEST_COUNT.labels(request.method, endpoint, response.status_code).inc()
        REQUEST_LATENCY.labels(request.method, endpoint).observe(duration)

        structlog.get_logger().info(
            "Request completed",
            endpoint=endpoint,
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
        )
        return response


def configure_structlog(debug: bool = False) -> None:
    """Route structlog through stdlib logging.

    Debug mode renders colored console lines; otherwise one JSON object
    per line.
    """
    renderer = (
        structlog.dev.ConsoleRenderer()
        if debug
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", level=logging.DEBUG if debug else logging.INFO)


def setup_opentelemetry(app: FastAPI, settings: Settings) -> None:
    """Export traces over OTLP when ``otlp_endpoint`` is set."""
    logger = structlog.get_logger()
    if not settings.otlp_endpoint:
        logger.info("Tracing disabled", reason="no OTLP endpoint")
        return

    provider = TracerProvider(
        resource=Resource.create({
            SERVICE_NAME: "biolink",
            SERVICE_VERSION: settings.app_version,
        })
    )
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint, insecure=True))
    )
    trace.set_tracer_provider(provider)
    # Skip /metrics and /health
    FastAPIInstrumentor.instrument_app(app, excluded_urls="metrics,health")
    logger.info("Tracing enabled", otlp_endpoint=settings.otlp_endpoint)


def setup_sentry(settings: Settings) -> None:
    """Report unhandled errors to Sentry when ``sentry_dsn`` is set."""
    logger = structlog.get_logger()
    if not settings.sentry_dsn:
        logger.info("Sentry disabled", reason="no DSN")
        return

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        release=f"biolink@{settings.app_version}",
        environment="development" if settings.debug else "production",
        traces_sample_rate=0.1,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        # Visitor IPs and user agents stay out of error reports
        send_default_pii=False,
    )
    logger.info("Sentry enabled")


def setup_observability(app: FastAPI, settings: Settings) -> None:
    """Configure logging, Sentry and tracing, and mount ``GET /metrics``.

    Request middleware is added by ``create_app``.
    """
    configure_structlog(debug=settings.debug)
    setup_sentry(settings)
    setup_opentelemetry(app, settings)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def record_redirect(status_code: int) -> None:
    REDIRECTS.labels(status_code=str(status_code)).inc()


def record_click_recorded(duration: float) -> None:
    CLICKS_RECORDED.inc()
    CLICK_RECORD_LATENCY.observe(duration)


def record_click_failed() -> None:
    CLICK_RECORD_FAILURES.inc()


def record_analytics_query(range_: str) -> None:
    ANALYTICS_QUERIES.labels(range=range_).inc()


def record_store_write(key: str) -> None:
    STORE_WRITES.labels(key=key).inc()
