"""
api/main.py -- FastAPI application entry point for Authgate.

Install deps:  pip install -e .
Run with:      python main.py
               uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware -- adds CORS headers for allowed browser origins
  2. log_requests   -- one log line per request with status and latency

Lifespan builds the service graph (store -> hasher -> issuer -> service)
from Settings and disposes the store on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import Envelope, HealthResponse
from api.routes.auth import router as auth_router
from auth.errors import STATUS_BY_KIND, AuthError, ErrorKind
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.config import Settings, get_settings

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("authgate.api")


# ---------------------------------------------------------------------------
# Service wiring
# ---------------------------------------------------------------------------


def build_services(app: FastAPI, settings: Settings, store: UserStore) -> None:
    """Attach the token issuer and auth service for store to app.state.

    Kept separate from the lifespan so tests can wire an isolated store with
    the same code path.
    """
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    issuer = TokenIssuer(secret=settings.jwt_secret, ttl_seconds=settings.token_ttl_seconds)
    app.state.settings = settings
    app.state.user_store = store
    app.state.token_issuer = issuer
    app.state.auth_service = AuthService(store=store, hasher=hasher, issuer=issuer)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the user store on startup and dispose it on shutdown."""
    settings = get_settings()
    logger.info("Authgate API starting up (environment=%s)", settings.environment)
    store = UserStore(settings.database_url)
    build_services(app, settings, store)
    logger.info("User store initialized")

    yield

    app.state.user_store.close()
    logger.info("Authgate API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Authgate API",
    description="User registration, login and bearer-token authentication.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler. Wall-clock time around call_next gives per-response latency.
# ---------------------------------------------------------------------------


@app.middleware("http")
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
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same Envelope shape so clients can parse errors
# uniformly: {"status": "error", "message": ..., "errors"?: [...]}.
# ---------------------------------------------------------------------------


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    detail: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    settings: Settings | None = getattr(request.app.state, "settings", None)
    show_detail = detail is not None and settings is not None and settings.is_development
    envelope = Envelope(status="error", message=message, error=detail if show_detail else None)
    return JSONResponse(status_code=status_code, content=envelope.to_json(), headers=headers)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render an AuthError; the status comes from its kind via STATUS_BY_KIND."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.kind.value)
    return _error_response(request, exc.status_code, exc.message, exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return VALIDATION_FAILED (400) with one entry per failing field."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]
    envelope = Envelope(status="error", message="Validation failed", errors=errors)
    return JSONResponse(status_code=STATUS_BY_KIND[ErrorKind.VALIDATION_FAILED], content=envelope.to_json())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap framework HTTP errors (404 unknown route, 405, ...) in the envelope.

    Headers set on the exception, such as Allow on a 405, are passed through.
    """
    return _error_response(request, exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The traceback goes to the log only. Outside development mode the client
    receives a generic message with no exception text.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(request, 500, "Internal server error", str(exc))


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state.
# ---------------------------------------------------------------------------


@app.get("/", tags=["Health"])
async def health(request: Request) -> HealthResponse:
    """Return service liveness, server time and the running environment."""
    settings: Settings = getattr(request.app.state, "settings", None) or get_settings()
    return HealthResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.environment,
    )
