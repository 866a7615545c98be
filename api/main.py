"""
api/main.py -- FastAPI application factory for the JWT auth service.

Run with:      uvicorn asgi:app --reload

create_app() is the single place where configuration becomes running
objects: Settings -> KeyMaterial -> TokenIssuer / TokenValidator ->
Authenticator. All of them are built once, before the first request, and
stored on app.state. A missing or weak signing key raises here, so the
process never starts serving with bad key material.

Middleware stack (outermost to innermost):
  1. CORSMiddleware        -- adds CORS headers for allowed browser origins
  2. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter
  3. log_requests          -- method, path, status, latency per request
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.token import router as token_router
from auth.credentials import CredentialChecker, accept_any, reject_all
from auth.keys import KeyMaterial
from auth.pipeline import Authenticator
from auth.tokens import TokenIssuer, TokenValidator
from core.config import Settings, get_settings

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("jwtauth.api")


# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log the service boundaries. Key material is already loaded by create_app()."""
    logger.info("JWT auth API starting up (issuer=%s)", app.state.key_material.issuer)
    yield
    logger.info("JWT auth API shutdown complete")


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Pattern: Interceptor / Chain of Responsibility. Every request passes through
# this coroutine before reaching any route handler. Never logs headers -- the
# Authorization header carries the bearer token.
# ---------------------------------------------------------------------------


async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded.

    Retry-After tells clients exactly how many seconds to wait before retrying.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc),
            )
        ).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Route handlers and auth dependencies raise HTTPException with a dict
    detail ({"code", "message"}); use it directly as the error field. Headers
    on the exception (WWW-Authenticate on 401) are carried over.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=exc.headers,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
        headers=exc.headers,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# No auth and no rate limit -- load balancer probes must not be throttled.
# ---------------------------------------------------------------------------


async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=VERSION)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(
    settings: Optional[Settings] = None,
    credential_checker: Optional[CredentialChecker] = None,
) -> FastAPI:
    """Build the application with its key material and token services.

    Args:
        settings:           Defaults to get_settings().
        credential_checker: Username/password check used by POST /signin.
                            Defaults to accept_any in DEBUG mode and
                            reject_all otherwise.

    Raises KeyMaterialError if the signing configuration is unusable.
    """
    settings = settings or get_settings()
    material = KeyMaterial.load(settings)
    if credential_checker is None:
        credential_checker = accept_any if settings.debug else reject_all
        if not settings.debug:
            logger.warning("No credential checker configured -- every sign-in will be rejected")

    app = FastAPI(
        title="JWT Auth API",
        description="Issues and validates HS256 bearer tokens asserting user identity and roles.",
        version=VERSION,
        lifespan=lifespan,
    )

    validator = TokenValidator(material)
    app.state.key_material = material
    app.state.issuer = TokenIssuer(material)
    app.state.validator = validator
    app.state.authenticator = Authenticator(validator)
    app.state.credential_checker = credential_checker

    # Starlette makes the last-registered middleware the outermost, so
    # register innermost first: log_requests -> SlowAPI -> CORS.
    app.middleware("http")(log_requests)
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )

    # SlowAPI looks for app.state.limiter by convention.
    app.state.limiter = limiter

    app.include_router(token_router, tags=["Token"])
    app.add_api_route(
        "/api/v1/health",
        health,
        methods=["GET"],
        response_model=HealthResponse,
        tags=["Health"],
    )

    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
    return app
