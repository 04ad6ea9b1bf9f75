"""
auth/errors.py -- Error taxonomy for the auth workflow and the token gate.

Every failure the service or the gate reports is an AuthError carrying an
ErrorKind. The HTTP boundary turns the kind into a status code through
STATUS_BY_KIND -- never by comparing message strings.

Layer rule: no imports from api/ or fastapi.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION_FAILED = "validation_failed"
    DUPLICATE_ACCOUNT = "duplicate_account"
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_DEACTIVATED = "account_deactivated"
    NOT_FOUND = "not_found"
    MISSING_TOKEN = "missing_token"
    INVALID_TOKEN = "invalid_token"
    TOKEN_EXPIRED = "token_expired"
    VERIFICATION_FAILED = "verification_failed"
    STORE_UNAVAILABLE = "store_unavailable"
    UNEXPECTED = "unexpected"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION_FAILED: 400,
    ErrorKind.DUPLICATE_ACCOUNT: 409,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.ACCOUNT_DEACTIVATED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.MISSING_TOKEN: 401,
    ErrorKind.INVALID_TOKEN: 401,
    ErrorKind.TOKEN_EXPIRED: 401,
    ErrorKind.VERIFICATION_FAILED: 500,
    ErrorKind.STORE_UNAVAILABLE: 500,
    ErrorKind.UNEXPECTED: 500,
}


class AuthError(Exception):
    """A classified auth failure.

    Args:
        kind:    Which failure occurred; decides the HTTP status.
        message: Client-facing message.
        detail:  Internal detail (exception text). Only surfaced to clients
                 in development mode.
    """

    def __init__(self, kind: ErrorKind, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.detail = detail

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def __repr__(self) -> str:
        return f"AuthError({self.kind.value!r}, {self.message!r})"
