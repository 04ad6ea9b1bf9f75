"""
auth/dependencies.py -- FastAPI Depends() helper that gates protected routes.

require_token() reads the Authorization header, verifies the bearer token
with the app's TokenIssuer and stores the decoded claims on
request.state.user. Any failure raises AuthError, which api/main.py turns
into the error envelope -- the route handler is never entered.

Accepted header forms:
  Authorization: Bearer <token>
  Authorization: <token>

The gate does not consult the user store. A token stays authoritative until
it expires, even if the account is deactivated in the meantime.

Layer rule: auth/dependencies.py may import from fastapi (for Request)
because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.errors import AuthError, ErrorKind
from auth.models import TokenClaims
from auth.tokens import InvalidSignature, MalformedToken, TokenExpired, TokenIssuer

logger = logging.getLogger("authgate.auth.gate")

_BEARER = "Bearer"


def extract_token(header: str | None) -> str | None:
    """Return the token carried by an Authorization header value, or None.

    "Bearer <token>" has its prefix stripped; any other non-empty value is
    taken as the raw token. A bare "Bearer" counts as no token.
    """
    if not header:
        return None
    value = header.strip()
    if value == _BEARER:
        return None
    if value.startswith(_BEARER + " "):
        value = value[len(_BEARER) + 1 :].strip()
    return value or None


def require_token(request: Request) -> TokenClaims:
    """Require a valid bearer token. Raises AuthError with a 401/500 kind otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(claims: TokenClaims = Depends(require_token)): ...
    """
    token = extract_token(request.headers.get("Authorization"))
    if token is None:
        raise AuthError(ErrorKind.MISSING_TOKEN, "Access token is required")

    issuer: TokenIssuer = request.app.state.token_issuer
    try:
        claims = issuer.verify(token)
    except (MalformedToken, InvalidSignature) as exc:
        logger.info("Rejected token: %s", exc)
        raise AuthError(ErrorKind.INVALID_TOKEN, "Invalid token") from exc
    except TokenExpired as exc:
        raise AuthError(ErrorKind.TOKEN_EXPIRED, "Token expired") from exc
    except Exception as exc:
        logger.exception("Token verification failed")
        raise AuthError(ErrorKind.VERIFICATION_FAILED, "Token verification failed", detail=str(exc)) from exc

    request.state.user = claims
    return claims
