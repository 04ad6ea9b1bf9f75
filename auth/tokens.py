"""
auth/tokens.py -- Bearer token issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with JWT_SECRET and carry
       sub (user id), email, name, iat and exp. Nothing is stored server-side:
       a token is valid until exp as long as its signature checks out.

  Failure classes: verify() raises one of three TokenError subclasses so the
       gate can answer "Invalid token" vs "Token expired" without inspecting
       messages:
         MalformedToken   -- not a JWT, or required claims missing/ill-typed
         InvalidSignature -- MAC mismatch (wrong secret or disallowed alg)
         TokenExpired     -- now >= exp
       Signature is checked before expiry, so an expired token forged with
       another secret is reported as InvalidSignature.

  Expiry is checked here rather than by jose so the boundary is exact
  (jose treats now == exp as still valid).

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from jose import jwt
from jose.exceptions import JOSEError, JWTClaimsError

from auth.models import TokenClaims

logger = logging.getLogger("authgate.auth.tokens")

_ALGORITHM = "HS256"

# Claim name -> required Python type after JSON decoding.
_REQUIRED_CLAIMS: dict[str, type] = {
    "sub": str,
    "email": str,
    "name": str,
    "iat": int,
    "exp": int,
}


class TokenError(Exception):
    """Base class for token verification failures."""


class MalformedToken(TokenError):
    pass


class InvalidSignature(TokenError):
    pass


class TokenExpired(TokenError):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _from_timestamp(value: int) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


class TokenIssuer:
    """Mint and verify HS256 bearer tokens.

    Usage:
        issuer = TokenIssuer(secret=settings.jwt_secret, ttl_seconds=settings.token_ttl_seconds)
        token = issuer.issue(user.id, user.email, user.display_name)
        claims = issuer.verify(token)

    ttl_seconds may be zero or negative; such tokens are born expired.
    """

    def __init__(self, secret: str, ttl_seconds: int) -> None:
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self.ttl_seconds = ttl_seconds

    def issue(self, subject_id: str, email: str, display_name: str, ttl_seconds: int | None = None) -> str:
        """Encode a signed token for the given identity.

        Args:
            subject_id:   User id, stored as the sub claim.
            email:        User email.
            display_name: User display name, stored as the name claim.
            ttl_seconds:  Override the issuer's default lifetime.
        """
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        issued_at = int(_utcnow().timestamp())
        payload = {
            "sub": subject_id,
            "email": email,
            "name": display_name,
            "iat": issued_at,
            "exp": issued_at + ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """Verify signature and expiry; return the embedded claims.

        Raises:
            MalformedToken:   token is not a JWT or lacks required claims.
            InvalidSignature: signature does not match this issuer's secret.
            TokenExpired:     the token's exp has passed.
        """
        try:
            jwt.get_unverified_claims(token)
        except JOSEError as exc:
            raise MalformedToken(str(exc)) from exc

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                options={"verify_exp": False, "verify_aud": False, "verify_iat": False, "verify_sub": False},
            )
        except JWTClaimsError as exc:
            raise MalformedToken(str(exc)) from exc
        except JOSEError as exc:
            raise InvalidSignature(str(exc)) from exc

        for name, expected in _REQUIRED_CLAIMS.items():
            value = payload.get(name)
            # bool is an int subclass; reject it for the timestamp claims.
            if not isinstance(value, expected) or isinstance(value, bool):
                raise MalformedToken(f"Missing or invalid claim: {name}")

        if int(_utcnow().timestamp()) >= payload["exp"]:
            raise TokenExpired("Token has expired")

        return TokenClaims(
            subject_id=payload["sub"],
            email=payload["email"],
            display_name=payload["name"],
            issued_at=_from_timestamp(payload["iat"]),
            expires_at=_from_timestamp(payload["exp"]),
        )
