"""
api/routes/auth.py -- Registration, login, profile and logout endpoints.

Routes:
  POST /auth/register  -- create account; 201 with user + token
  POST /auth/login     -- password login; 200 with user + token
  GET  /auth/profile   -- current user's public profile (requires token)
  POST /auth/logout    -- acknowledges logout (requires token); no server state

Every 4xx/expected failure is an AuthError raised by the service or the gate
and rendered by the handler in api/main.py. Unclassified 5xx failures are
re-raised with the route's own message ("Registration failed", ...) so the
client sees which operation broke without seeing internals.

Security:
  Cache-Control: no-store on every response that carries a token.
  Passwords and tokens are never logged.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import (
    AuthData,
    AuthEnvelope,
    Envelope,
    LoginRequest,
    ProfileData,
    ProfileEnvelope,
    RegisterRequest,
    UserResponse,
)
from auth.dependencies import require_token
from auth.errors import AuthError, ErrorKind
from auth.models import TokenClaims
from auth.service import AuthResult, AuthService

logger = logging.getLogger("authgate.api.auth")

# Auth policy:
# - POST /auth/register: public
# - POST /auth/login:    public
# - GET  /auth/profile:  requires token (require_token)
# - POST /auth/logout:   requires token (require_token)
router = APIRouter(prefix="/auth")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@contextmanager
def _server_failure(message: str) -> Iterator[None]:
    """Give 5xx failures inside the block the route's own message.

    Client errors (401/404/409) pass through untouched. Store failures keep
    their kind; anything unclassified becomes UNEXPECTED.
    """
    try:
        yield
    except AuthError as exc:
        if exc.status_code < 500:
            raise
        raise AuthError(exc.kind, message, detail=exc.detail or exc.message) from exc
    except Exception as exc:
        logger.exception("%s", message)
        raise AuthError(ErrorKind.UNEXPECTED, message, detail=str(exc)) from exc


def _service(request: Request) -> AuthService:
    return request.app.state.auth_service


def _auth_response(result: AuthResult, message: str, status_code: int) -> JSONResponse:
    envelope = AuthEnvelope(
        status="success",
        message=message,
        data=AuthData(user=UserResponse.from_user(result.user), token=result.token),
    )
    resp = JSONResponse(status_code=status_code, content=envelope.to_json())
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/register", response_model=AuthEnvelope, status_code=201)
async def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an account and return it with a bearer token.

    409 if the email is already registered.
    """
    with _server_failure("Registration failed"):
        result = await _service(request).register(body.email, body.password, body.name)
    return _auth_response(result, "User registered successfully", 201)


@router.post("/login", response_model=AuthEnvelope)
async def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return the user and a bearer token.

    Unknown email and wrong password share one message ("Invalid email or
    password"). A deactivated account gets its own message.
    """
    with _server_failure("Login failed"):
        result = await _service(request).login(body.email, body.password)
    return _auth_response(result, "Login successful", 200)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/profile", response_model=ProfileEnvelope)
async def profile(request: Request, claims: TokenClaims = Depends(require_token)) -> JSONResponse:
    """Return the public profile of the token's subject."""
    with _server_failure("Failed to retrieve profile"):
        user = await _service(request).get_by_id(claims.subject_id)
    envelope = ProfileEnvelope(
        status="success",
        message="Profile retrieved successfully",
        data=ProfileData(user=UserResponse.from_user(user)),
    )
    return JSONResponse(content=envelope.to_json())


@router.post("/logout", response_model=Envelope)
async def logout(claims: TokenClaims = Depends(require_token)) -> JSONResponse:
    """Acknowledge logout. Tokens are stateless; the client discards its copy."""
    logger.info("User %s logged out", claims.subject_id)
    envelope = Envelope(status="success", message="Logout successful. Please remove token from client side.")
    return JSONResponse(content=envelope.to_json())
