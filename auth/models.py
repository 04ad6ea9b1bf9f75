"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). The store and the
service do the work; these classes only own the shape.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A stored user account.

    id is assigned by the store on insert and is None until then.
    password_hash is the bcrypt digest and must never leave the process --
    the API layer projects User through UserResponse.from_user() at every
    egress point.

    Timestamps are ISO 8601 UTC strings, written by the store.
    """

    email: str
    password_hash: str
    display_name: str
    id: str | None = None
    is_active: bool = True
    last_login_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Identity and timing data carried by a bearer token.

    Never persisted. Validity is purely a function of the signature and
    expires_at, so a token outlives a later account deactivation.
    """

    subject_id: str
    email: str
    display_name: str
    issued_at: datetime
    expires_at: datetime
