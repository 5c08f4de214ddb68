from __future__ import annotations

import time
from typing import Callable

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, Info, generate_latest

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_ERRORS = Counter(
    "http_request_errors_total",
    "Total HTTP requests resulting in server errors",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "path"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10),
)
IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "In-progress HTTP requests",
    ["method"],
)
UPTIME_SECONDS = Gauge(
    "app_uptime_seconds",
    "Application uptime in seconds",
)
APP_INFO = Info(
    "app",
    "Application metadata",
)
LIKE_TOGGLES = Counter(
    "like_toggles_total",
    "Like toggles by target kind and resulting state",
    ["target", "outcome"],
)
VIEWS_RECORDED = Counter(
    "photo_views_recorded_total",
    "View events appended",
)
COMMENT_EVENTS = Counter(
    "comments_total",
    "Comment lifecycle events",
    ["action"],
)
ORPHANS_SKIPPED = Counter(
    "orphaned_records_skipped_total",
    "Records dropped from a response because their owner could not be resolved",
    ["kind"],
)

_START_TIME = time.monotonic()

UNMATCHED_PATH = "unmatched"


def _route_path(request: Request) -> str:
    # Routing fills scope["route"] in place, so this is only known after call_next.
    route = request.scope.get("route")
    if route and getattr(route, "path", None):
        return route.path
    return UNMATCHED_PATH


def record_like_toggle(target: str, has_liked: bool) -> None:
    LIKE_TOGGLES.labels(target=target, outcome="liked" if has_liked else "unliked").inc()


def record_view() -> None:
    VIEWS_RECORDED.inc()


def record_comment(action: str) -> None:
    COMMENT_EVENTS.labels(action=action).inc()


def record_orphan(kind: str) -> None:
    ORPHANS_SKIPPED.labels(kind=kind).inc()


async def metrics_middleware(request: Request, call_next: Callable[[Request], Response]) -> Response:
    method = request.method
    start = time.perf_counter()
    IN_PROGRESS.labels(method=method).inc()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        IN_PROGRESS.labels(method=method).dec()
        path = _route_path(request)
        elapsed = time.perf_counter() - start
        REQUEST_LATENCY.labels(method=method, path=path).observe(elapsed)
        REQUEST_COUNT.labels(method=method, path=path, status=str(status_code)).inc()
        if status_code >= 500:
            REQUEST_ERRORS.labels(method=method, path=path, status=str(status_code)).inc()


def set_app_info(name: str, version: str) -> None:
    APP_INFO.info({"name": name, "version": version})


def metrics_endpoint() -> Response:
    UPTIME_SECONDS.set(time.monotonic() - _START_TIME)
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
