"""
auth/service.py -- Registration, login and profile lookup.

AuthService receives its collaborators (store, hasher, issuer) through the
constructor; nothing here reads global state, so tests can hand it a fake
store or a short-lived issuer.

Every store call and every bcrypt call runs in a worker thread via
anyio.to_thread.run_sync. bcrypt is deliberately slow and the store is
synchronous SQLAlchemy; neither may stall the event loop that is serving
other requests.

Error mapping:
  - store IntegrityError on insert -> DUPLICATE_ACCOUNT (lost the race
    against a concurrent registration for the same email)
  - any other SQLAlchemyError      -> STORE_UNAVAILABLE
  - anything else propagates untouched and becomes UNEXPECTED at the edge

Known gaps, kept as observable behaviour:
  - Deactivating an account does not invalidate tokens already issued.
  - Login answers "Account is deactivated" for inactive accounts, which
    reveals that the email exists. Registration's duplicate check reveals
    the same thing.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, replace

import anyio
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import AuthError, ErrorKind
from auth.models import User
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenIssuer

logger = logging.getLogger("authgate.auth")

DUPLICATE_ACCOUNT_MESSAGE = "User already exists with this email"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
ACCOUNT_DEACTIVATED_MESSAGE = "Account is deactivated"
NOT_FOUND_MESSAGE = "User not found"
STORE_UNAVAILABLE_MESSAGE = "User store unavailable"


@dataclass(frozen=True)
class AuthResult:
    """A user record plus the token minted for it."""

    user: User
    token: str


class AuthService:
    """Orchestrates the credential and token lifecycle for user accounts."""

    def __init__(self, *, store: UserStore, hasher: PasswordHasher, issuer: TokenIssuer) -> None:
        self._store = store
        self._hasher = hasher
        self._issuer = issuer
        # Login runs one bcrypt verification even for unknown emails.
        self._dummy_hash = hasher.hash("authgate_timing_dummy")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run(self, func, *args, **kwargs):
        return await anyio.to_thread.run_sync(functools.partial(func, *args, **kwargs))

    async def _store_call(self, func, *args, **kwargs):
        try:
            return await self._run(func, *args, **kwargs)
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            logger.error("User store call %s failed: %s", getattr(func, "__name__", func), exc)
            raise AuthError(ErrorKind.STORE_UNAVAILABLE, STORE_UNAVAILABLE_MESSAGE, detail=str(exc)) from exc

    def _issue_for(self, user: User) -> str:
        return self._issuer.issue(user.id, user.email, user.display_name)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def register(self, email: str, password: str, display_name: str) -> AuthResult:
        """Create a new active account and return it with a fresh token.

        Raises:
            AuthError(DUPLICATE_ACCOUNT): the email is already registered,
                either found up front or rejected by the store's unique index.
            AuthError(STORE_UNAVAILABLE): the store failed.
        """
        existing = await self._store_call(self._store.get_by_email, email)
        if existing is not None:
            logger.info("Registration rejected: email already registered")
            raise AuthError(ErrorKind.DUPLICATE_ACCOUNT, DUPLICATE_ACCOUNT_MESSAGE)

        password_hash = await self._run(self._hasher.hash, password)
        new_user = User(email=email, password_hash=password_hash, display_name=display_name)
        try:
            created = await self._store_call(self._store.create_user, new_user)
        except IntegrityError as exc:
            logger.info("Registration rejected: unique constraint on email")
            raise AuthError(ErrorKind.DUPLICATE_ACCOUNT, DUPLICATE_ACCOUNT_MESSAGE) from exc

        logger.info("Registered user %s", created.id)
        return AuthResult(user=created, token=self._issue_for(created))

    async def login(self, email: str, password: str) -> AuthResult:
        """Check credentials, stamp last_login_at and return a fresh token.

        Raises:
            AuthError(INVALID_CREDENTIALS): unknown email or wrong password
                (same error for both), or the user vanished mid-login.
            AuthError(ACCOUNT_DEACTIVATED): the account exists but is inactive.
            AuthError(STORE_UNAVAILABLE): the store failed.
        """
        user = await self._store_call(self._store.get_by_email, email)
        if user is None:
            await self._run(self._hasher.verify, password, self._dummy_hash)
            logger.info("Login rejected: unknown email")
            raise AuthError(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

        if not user.is_active:
            logger.info("Login rejected: user %s is deactivated", user.id)
            raise AuthError(ErrorKind.ACCOUNT_DEACTIVATED, ACCOUNT_DEACTIVATED_MESSAGE)

        if not await self._run(self._hasher.verify, password, user.password_hash):
            logger.info("Login rejected: bad password for user %s", user.id)
            raise AuthError(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

        stamp = await self._store_call(self._store.update_last_login, user.id)
        if stamp is None:
            logger.info("Login rejected: user %s removed during login", user.id)
            raise AuthError(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)
        user = replace(user, last_login_at=stamp, updated_at=stamp)

        logger.info("User %s logged in", user.id)
        return AuthResult(user=user, token=self._issue_for(user))

    async def get_by_id(self, user_id: str) -> User:
        """Return the user with this id.

        Raises:
            AuthError(NOT_FOUND): no such user.
            AuthError(STORE_UNAVAILABLE): the store failed.
        """
        user = await self._store_call(self._store.get_by_id, user_id)
        if user is None:
            raise AuthError(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)
        return user
