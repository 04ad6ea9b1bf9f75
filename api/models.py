"""
API request and response models for Authgate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Every user that leaves the service goes through UserResponse.from_user().
UserResponse has no password field, so the hash cannot be serialized by
accident.
"""

import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from auth.models import User

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"email": "user@example.com", "password": "Secret123", "name": "Jane Doe"},
        },
    )

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="8-128 characters with at least one lowercase letter, one uppercase letter and one digit",
    )
    name: str = Field(..., min_length=1, max_length=100, description="Display name")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: Any) -> Any:
        # Passwords are never stripped; only the display name is.
        return value.strip() if isinstance(value, str) else value

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        if not re.search(r"[a-z]", value):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"[A-Z]", value):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"\d", value):
            raise ValueError("Password must contain at least one digit")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"email": "user@example.com", "password": "Secret123"},
        },
    )

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user account."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str
    is_active: bool
    last_login_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        """Project a stored User onto its public fields."""
        return cls(
            id=user.id,
            email=user.email,
            name=user.display_name,
            is_active=user.is_active,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AuthData(BaseModel):
    """data payload for register and login."""

    model_config = ConfigDict(frozen=True)

    user: UserResponse
    token: str


class ProfileData(BaseModel):
    """data payload for GET /auth/profile."""

    model_config = ConfigDict(frozen=True)

    user: UserResponse


class Envelope(BaseModel):
    """Top-level envelope for every response.

    status is "success" or "error". data is present on successful calls that
    return something; errors carries field-level validation detail; error
    carries internal exception text in development mode only.
    """

    model_config = ConfigDict(frozen=True)

    status: str
    message: str
    data: Optional[Any] = None
    errors: Optional[list[dict]] = None
    error: Optional[str] = None

    def to_json(self) -> dict:
        """Dump for a JSONResponse, omitting unset top-level keys only."""
        return {k: v for k, v in self.model_dump(mode="json").items() if v is not None}


class AuthEnvelope(Envelope):
    data: AuthData


class ProfileEnvelope(Envelope):
    data: ProfileData


class HealthResponse(BaseModel):
    """Response for GET /."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    message: str = "Service is healthy"
    timestamp: str
    environment: str
