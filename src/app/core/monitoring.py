"""Prometheus metrics, Sentry integration, and sync pass tracking.

Provides:
- MetricsMiddleware: ASGI middleware for HTTP request metrics
- record_sync_pass(): Records counters and duration for one finished sync pass
- init_sentry(): Initialize Sentry for error reporting
- get_metrics_response(): Exposition body for /metrics
"""

from __future__ import annotations

import time

import sentry_sdk
from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.app.sync.schemas import SyncPassResult

# ── HTTP Metrics ─────────────────────────────────────────────────────────────

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ── Sync Metrics ─────────────────────────────────────────────────────────────

erp_sync_passes_total = Counter(
    "erp_sync_passes_total",
    "ERP sync passes by kind and final status",
    ["kind", "status"],
)

erp_sync_records_total = Counter(
    "erp_sync_records_total",
    "ERP records reconciled by kind and outcome",
    ["kind", "outcome"],
)

erp_sync_pass_duration_seconds = Histogram(
    "erp_sync_pass_duration_seconds",
    "ERP sync pass duration in seconds",
    ["kind"],
    buckets=(0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0),
)

erp_sync_last_success_timestamp = Gauge(
    "erp_sync_last_success_timestamp",
    "Unix time of the last completed ERP sync pass",
    ["kind"],
)


# ── Metrics Middleware ───────────────────────────────────────────────────────


class MetricsMiddleware(BaseHTTPMiddleware):
    """ASGI middleware that records Prometheus metrics for every HTTP request.

    Skips the /metrics endpoint itself to avoid self-referential counting.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        # Route pattern keeps building ids out of the label set
        endpoint = getattr(request.scope.get("route"), "path", request.url.path)

        http_requests_total.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=str(response.status_code),
        ).inc()

        http_request_duration_seconds.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(duration)

        return response


# ── Sync Metrics Helper ─────────────────────────────────────────────────────


def record_sync_pass(result: SyncPassResult) -> None:
    """Record counters and duration for one finished sync pass."""
    kind = result.kind.value
    erp_sync_passes_total.labels(kind=kind, status=result.status.value).inc()

    for outcome, count in (
        ("created", result.created),
        ("updated", result.updated),
        ("inserted", result.inserted),
        ("skipped", result.skipped),
    ):
        if count:
            erp_sync_records_total.labels(kind=kind, outcome=outcome).inc(count)

    if result.duration_ms is not None:
        erp_sync_pass_duration_seconds.labels(kind=kind).observe(result.duration_ms / 1000)

    if result.succeeded and result.finished_at is not None:
        erp_sync_last_success_timestamp.labels(kind=kind).set(result.finished_at.timestamp())


# ── Sentry Integration ───────────────────────────────────────────────────────


def init_sentry(dsn: str, environment: str) -> None:
    """Initialize Sentry SDK.

    Args:
        dsn: Sentry DSN string.
        environment: Deployment environment (development, staging, production).
    """
    traces_sample_rate = 0.1 if environment == "production" else 1.0

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=traces_sample_rate,
        integrations=[
            StarletteIntegration(),
            FastApiIntegration(),
        ],
    )


# ── Metrics Endpoint ─────────────────────────────────────────────────────────


def get_metrics_response() -> Response:
    """Generate Prometheus exposition format response."""
    return Response(
        content=generate_latest(REGISTRY),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
