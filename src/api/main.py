"""FastAPI application entrypoint for the rooms & blogs service."""

from __future__ import annotations

from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from src.auth.dependencies import endpoint_requires_auth, get_optional_auth_context
from src.auth.middleware import AUTH_CONTEXT_KEY, resolve_request_auth_context
from src.blogs.router import router as blogs_router
from src.core.config import get_settings
from src.core.errors import ServiceError, Unauthorized, summarize_validation_errors
from src.core.logger import bind_request_context, clear_request_context, get_logger
from src.core.metrics import record_http_request, record_rate_limit_block, render_prometheus_metrics
from src.core.observability import capture_exception, init_sentry, sentry_scope
from src.core.rate_limit import RateLimitDecision, get_ip_rate_limiter
from src.drafting.router import router as drafting_router
from src.media.router import router as media_router
from src.rooms.router import router as rooms_router
from src.storage.db import load_models
from src.storage.db import test_connection as test_db_connection
from src.storage.redis_client import test_connection as test_redis_connection


settings = get_settings()
logger = get_logger("roomblog.api")

app = FastAPI(title=settings.app_name, version=settings.app_version)


def _resolve_client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _apply_rate_limit_headers(response: Response, decision: RateLimitDecision) -> None:
    response.headers["x-rate-limit-limit"] = str(decision.limit)
    response.headers["x-rate-limit-remaining"] = str(decision.remaining)
    response.headers["x-rate-limit-reset"] = str(decision.reset_seconds)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    started_at = perf_counter()
    request_id = request.headers.get("x-request-id", str(uuid4()))
    auth_context = resolve_request_auth_context(request)
    setattr(request.state, AUTH_CONTEXT_KEY, auth_context)

    user_id = auth_context.user_id if auth_context is not None else None
    bind_request_context(request_id=request_id, user_id=user_id)

    response = None
    decision = None
    status_code = 500

    try:
        with sentry_scope(user_id=user_id, request_id=request_id):
            if settings.ip_rate_limit_enabled and settings.env.lower() in {"prod", "production"}:
                decision = get_ip_rate_limiter().check(ip=_resolve_client_ip(request))
                if not decision.allowed:
                    record_rate_limit_block(kind="ip")
                    response = JSONResponse(
                        status_code=429,
                        content={
                            "detail": "Rate limit exceeded",
                            "limit": decision.limit,
                            "remaining": decision.remaining,
                            "reset_seconds": decision.reset_seconds,
                        },
                    )
                else:
                    response = await call_next(request)
            else:
                response = await call_next(request)
        status_code = int(response.status_code)
    finally:
        if settings.metrics_enabled:
            record_http_request(
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_seconds=perf_counter() - started_at,
            )
        clear_request_context()

    if decision is not None:
        _apply_rate_limit_headers(response, decision)
    response.headers["x-request-id"] = request_id
    return response


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            path=request.url.path,
            status_code=exc.status_code,
            kind=exc.kind,
            detail=exc.message,
        )
        capture_exception(exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Request bodies are parsed before dependencies run; anonymous callers still get a 401.
    if get_optional_auth_context(request) is None and endpoint_requires_auth(request.scope.get("endpoint")):
        unauthorized = Unauthorized("Unauthorized")
        return JSONResponse(status_code=unauthorized.status_code, content=unauthorized.to_payload())
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid input", "errors": summarize_validation_errors(exc.errors())},
    )


@app.on_event("startup")
def on_startup() -> None:
    load_models()
    sentry_enabled = init_sentry()
    logger.info(
        "application_startup",
        env=settings.env,
        version=settings.app_version,
        sentry_enabled=sentry_enabled,
        metrics_enabled=settings.metrics_enabled,
        ip_rate_limit_enabled=settings.ip_rate_limit_enabled,
        upload_backend=settings.upload_backend,
        ai_provider=settings.ai_provider,
    )
    if not settings.sanity_project_id.strip():
        logger.warning("content_store_not_configured", dataset=settings.sanity_dataset)


@app.get("/health")
def health() -> JSONResponse:
    db_ok, db_error = test_db_connection()
    redis_ok, redis_error = test_redis_connection()

    healthy = db_ok and redis_ok
    payload = {
        "status": "ok" if healthy else "degraded",
        "env": settings.env,
        "services": {
            "database": {"ok": db_ok, "error": db_error},
            "redis": {"ok": redis_ok, "error": redis_error},
        },
    }
    return JSONResponse(content=payload, status_code=200 if healthy else 503)


@app.get("/version")
def version() -> dict[str, str]:
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "env": settings.env,
    }


@app.get("/metrics")
def metrics() -> PlainTextResponse:
    if not settings.metrics_enabled:
        return PlainTextResponse("metrics disabled\n", status_code=404)

    payload = render_prometheus_metrics(
        app_name=settings.app_name,
        app_version=settings.app_version,
        env=settings.env,
    )
    return PlainTextResponse(
        payload,
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )


app.include_router(rooms_router)
app.include_router(blogs_router)
app.include_router(media_router)
app.include_router(drafting_router)
