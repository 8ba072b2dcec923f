"""FastAPI application for the Reelgate API."""

from __future__ import annotations

import os
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable
from uuid import uuid4

import sentry_sdk
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.requests import Request
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from prometheus_client import Counter, Histogram
from slowapi.errors import RateLimitExceeded

from reelgate.api.errors import DomainError, to_http_exception
from reelgate.api.rate_limit import limiter
from reelgate.api.routes import assets, health, videos
from reelgate.api.routes import metrics as metrics_route
from reelgate.app_version import get_app_version
from reelgate.config import effective_video_provider_mode, get_settings, settings
from reelgate.observability.logging import logger, request_id_var
from reelgate.services.runtime import build_video_services


def _should_init_sentry() -> bool:
    """Guard Sentry initialization in tests/dev to avoid noisy pending-event logs."""
    if not settings.sentry_dsn:
        return False
    if os.getenv("PYTEST_CURRENT_TEST"):
        return False
    if os.getenv("DISABLE_SENTRY", "").lower() in ("1", "true", "yes"):
        return False
    return True


REQUEST_COUNT = Counter(
    "reelgate_http_requests_total", "Total HTTP requests", ["method", "path", "status"]
)
REQUEST_LATENCY = Histogram(
    "reelgate_http_request_duration_seconds",
    "HTTP request duration in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
    labelnames=["path"],
)


def _metrics_path(request: Request) -> str:
    """Return a low-cardinality path label for metrics."""
    route = request.scope.get("route")
    if route is not None:
        path = getattr(route, "path", None)
        if path:
            return str(path)
    return "unmatched"


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    retry_after_header = exc.headers.get("Retry-After") if exc.headers else None
    retry_after = retry_after_header or "60"
    logger.warning(
        "rate_limit_exceeded",
        path=str(request.url.path),
        method=request.method,
        limit=exc.detail,
        request_id=request.headers.get("X-Request-ID"),
    )
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limited",
            "detail": f"Too many requests. Retry after {retry_after} seconds.",
            "retry_after_seconds": int(retry_after) if str(retry_after).isdigit() else retry_after,
            "limit": exc.detail,
        },
        headers=exc.headers or {"Retry-After": str(retry_after)},
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the vendor adapters, object store and relocation services."""
    from reelgate.observability import init_observability

    init_observability()
    current = get_settings()
    logger.info(
        "api_starting",
        environment=current.environment,
        provider_mode=effective_video_provider_mode(current),
        storage_backend=current.storage_backend,
    )

    if _should_init_sentry():
        try:
            sentry_sdk.init(dsn=current.sentry_dsn, traces_sample_rate=0.1, shutdown_timeout=0)
        except Exception as exc:  # tolerates invalid/empty DSN in dev/test
            logger.warning("sentry_init_skipped", exc=str(exc))

    owns_services = getattr(app.state, "video_services", None) is None
    if owns_services:
        app.state.video_services = build_video_services(current)
    services = app.state.video_services
    logger.info(
        "api_ready",
        providers=[p.value for p in services.orchestrator.configured_providers],
        allowlist_size=len(services.allowlist.entries),
    )

    yield

    logger.info("api_stopping")
    if owns_services:
        await services.aclose()
        app.state.video_services = None


app = FastAPI(
    title="Reelgate API",
    description="Multi-vendor video generation with secure asset relocation",
    version=get_app_version(),
    lifespan=lifespan,
)


@app.middleware("http")
async def request_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Middleware to manage X-Request-ID header and contextvar propagation."""

    incoming_request_id = request.headers.get("X-Request-ID")
    request_id = incoming_request_id or str(uuid4())

    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)

    response.headers["X-Request-ID"] = request_id
    return response


@app.middleware("http")
async def timing_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    path_label = _metrics_path(request)
    REQUEST_COUNT.labels(
        method=request.method,
        path=path_label,
        status=response.status_code,
    ).inc()
    REQUEST_LATENCY.labels(path=path_label).observe(duration_ms / 1000.0)
    logger.info(
        "request_complete",
        path=str(request.url.path),
        method=request.method,
        status=response.status_code,
        duration_ms=round(duration_ms, 2),
        request_id=request.headers.get("X-Request-ID"),
    )
    # Streaming responses are timed to first byte only.
    response.headers["X-Response-Time-ms"] = f"{duration_ms:.2f}"
    return response


app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return consistent error envelope."""
    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error", "http_error")
        detail = detail.get("detail", detail)
    else:
        error_code = "http_error"
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": error_code,
            "detail": detail,
        },
        headers=exc.headers,
    )


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.info(
        "domain_error",
        path=str(request.url.path),
        error=exc.error,
        status=exc.status_code,
        detail=str(exc),
    )
    http_exc = to_http_exception(exc)
    return await http_exception_handler(request, http_exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed generation requests are client errors, reported as 400."""
    messages = []
    for item in exc.errors():
        location = ".".join(str(part) for part in item.get("loc", ()) if part != "body")
        messages.append(f"{location}: {item.get('msg')}" if location else str(item.get("msg")))
    return JSONResponse(
        status_code=400,
        content={"error": "validation_error", "detail": "; ".join(messages)},
    )


app.include_router(health.router)
app.include_router(videos.router)
app.include_router(assets.router)
app.include_router(metrics_route.router)

if settings.storage_backend == "local":
    # Serves relocated objects at the same base URL the local store advertises.
    os.makedirs(settings.storage_local_dir, exist_ok=True)
    app.mount(
        "/static",
        StaticFiles(directory=settings.storage_local_dir, check_dir=False),
        name="static",
    )


__all__ = ["app", "limiter"]
